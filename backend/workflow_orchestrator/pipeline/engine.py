"""
Orchestrator — runs workflow steps sequentially against one context.

Responsibilities:
    - Validate the workflow before anything runs
    - Execute each step in declaration order with timing and logging
    - Route failures through the ErrorHandler (retry / fallback)
    - Abort on the first unrecovered failure when fallback is disabled
    - Clean up every started step and return an ExecutionReport

Run states: NOT_STARTED → VALIDATING → RUNNING → COMPLETED | ABORTED.

There is no per-step timeout: a step whose execute() never returns
stalls the whole run.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from workflow_orchestrator.core.config import settings
from workflow_orchestrator.core.constants import MIN_WORKFLOW_STEPS, RunState, StepStatus
from workflow_orchestrator.core.logging import get_logger
from workflow_orchestrator.pipeline.context import ExecutionContext, StepRecord, utc_now
from workflow_orchestrator.pipeline.definition import ErrorHandlingConfig, WorkflowDefinition
from workflow_orchestrator.pipeline.error_handler import ErrorHandler
from workflow_orchestrator.pipeline.errors import (
    ConfigurationError,
    StepRetryExhaustedError,
    WorkflowAbortError,
    WorkflowStateError,
)
from workflow_orchestrator.pipeline.registry import StepRegistry, default_registry
from workflow_orchestrator.pipeline.report import (
    ExecutionReport,
    MetricsProvider,
    collect_resource_usage,
)
from workflow_orchestrator.pipeline.retry import Sleeper
from workflow_orchestrator.pipeline.step import PipelineStep


class Orchestrator:
    """
    Runs an ordered list of PipelineStep objects against an ExecutionContext.

    Usage::

        orchestrator = Orchestrator(
            steps=[LoadStep("load"), CheckStep("check"), SaveStep("save")],
            error_handling=ErrorHandlingConfig(max_retries=2, fallback_enabled=False),
        )
        report = await orchestrator.execute()

    Usage (from a definition)::

        orchestrator = Orchestrator.from_definition(definition, registry)
        report = await orchestrator.execute()
    """

    def __init__(
        self,
        steps: Iterable[PipelineStep] | None = None,
        error_handling: ErrorHandlingConfig | None = None,
        *,
        name: str = "workflow",
        workflow_id: str | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        metrics_provider: MetricsProvider = collect_resource_usage,
        sleep: Sleeper | None = None,
    ) -> None:
        self.name = name
        self.workflow_id = workflow_id or str(uuid.uuid4())
        self.error_handling = error_handling or ErrorHandlingConfig.from_settings(settings)
        self.logger = logger or get_logger(__name__)
        self.error_handler = ErrorHandler(self.error_handling, logger=self.logger, sleep=sleep)
        self._metrics_provider = metrics_provider

        self._steps: list[PipelineStep] = []
        self._context = ExecutionContext()
        self._state = RunState.NOT_STARTED

        for step in steps or []:
            self.add_step(step)

    @classmethod
    def from_definition(
        cls,
        definition: WorkflowDefinition,
        registry: StepRegistry | None = None,
        **kwargs: Any,
    ) -> Orchestrator:
        """Build an orchestrator whose steps come from a registry."""
        steps = (registry or default_registry).build(definition.steps)
        return cls(
            steps,
            definition.error_handling,
            name=definition.name,
            workflow_id=definition.workflow_id,
            **kwargs,
        )

    # ─── Accessors ─────────────────────────────────────

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def steps(self) -> tuple[PipelineStep, ...]:
        return tuple(self._steps)

    def add_step(self, step: PipelineStep) -> None:
        """Append a step.  Only allowed before the run starts."""
        if self._state != RunState.NOT_STARTED:
            raise WorkflowStateError(
                "Cannot add steps once the workflow has started",
                execution_id=self._context.execution_id,
                step_name=step.name,
            )
        self._steps.append(step)
        self._context.metadata.total_steps = len(self._steps)
        self.logger.debug("Step added", step_name=step.name, total_steps=len(self._steps))

    # ─── Validation ────────────────────────────────────

    def validate_workflow(self) -> None:
        """
        Reject a workflow that cannot run.

        Raises:
            ConfigurationError: No steps, fewer than MIN_WORKFLOW_STEPS,
                a blank or duplicate step name, a non-mapping step config,
                or a step whose check_config() objects.
        """
        execution_id = self._context.execution_id

        if not self._steps:
            raise ConfigurationError(
                "No steps configured for workflow",
                execution_id=execution_id,
            )

        if len(self._steps) < MIN_WORKFLOW_STEPS:
            raise ConfigurationError(
                f"Workflow must have at least {MIN_WORKFLOW_STEPS} steps",
                execution_id=execution_id,
                details={"step_count": len(self._steps)},
            )

        seen: set[str] = set()
        for step in self._steps:
            if not isinstance(step.name, str) or not step.name.strip():
                raise ConfigurationError(
                    "Step name must be a non-empty string",
                    execution_id=execution_id,
                    details={"step": repr(step)},
                )
            if step.name in seen:
                raise ConfigurationError(
                    f"Duplicate step name '{step.name}'",
                    execution_id=execution_id,
                    step_name=step.name,
                )
            seen.add(step.name)

            if not isinstance(step.config, Mapping):
                raise ConfigurationError(
                    f"Config for step '{step.name}' must be a mapping",
                    execution_id=execution_id,
                    step_name=step.name,
                )
            try:
                step.check_config()
            except ConfigurationError:
                raise
            except Exception as exc:
                raise ConfigurationError(
                    f"Invalid config for step '{step.name}': {exc}",
                    execution_id=execution_id,
                    step_name=step.name,
                ) from exc

    # ─── Run ───────────────────────────────────────────

    async def execute(self) -> ExecutionReport:
        """
        Run the workflow once.

        Returns the ExecutionReport.  Its status is FAILED whenever any
        step ended failed, even though no exception was raised.

        Raises:
            ConfigurationError: The workflow failed validation; no step ran.
            WorkflowAbortError: A step failed with fallback disabled; later
                steps never ran.  The partial report is on `.report`.
            WorkflowStateError: This orchestrator already ran.
        """
        if self._state != RunState.NOT_STARTED:
            raise WorkflowStateError(
                f"Workflow already executed (state={self._state})",
                execution_id=self._context.execution_id,
            )

        ctx = self._context
        log = self.logger.bind(
            execution_id=ctx.execution_id,
            workflow_id=self.workflow_id,
            workflow_name=self.name,
        )

        ctx.metadata.started_at = utc_now()
        log.info("Workflow started", total_steps=len(self._steps))

        # ── Validate ──────────────────────────────────
        self._state = RunState.VALIDATING
        try:
            self.validate_workflow()
        except ConfigurationError as exc:
            ctx.metadata.finished_at = utc_now()
            self._state = RunState.ABORTED
            log.error("Workflow validation failed", error=str(exc), **exc.details)
            raise
        log.info("Workflow validation passed", total_steps=len(self._steps))

        # ── Run steps ─────────────────────────────────
        self._state = RunState.RUNNING
        started: list[PipelineStep] = []
        failed_step: PipelineStep | None = None

        try:
            for index, step in enumerate(self._steps):
                step_log = log.bind(step_name=step.name, step_index=index + 1)
                started.append(step)

                step_log.info(f"Step {index + 1}/{len(self._steps)}: {step.description}")
                await self._execute_step(step, step_log)

                if step.status == StepStatus.FAILED and not self.error_handling.fallback_enabled:
                    failed_step = step
                    break
        finally:
            await self._cleanup(started, log)

        # ── Finalise ──────────────────────────────────
        ctx.metadata.finished_at = utc_now()
        report = self._build_report()

        if failed_step is not None:
            self._state = RunState.ABORTED
            log.error(
                "Workflow aborted",
                failed_step=failed_step.name,
                completed_steps=ctx.metadata.completed_steps,
                skipped_steps=len(self._steps) - len(started),
            )
            raise WorkflowAbortError(
                f"Workflow failed at step: {failed_step.name}",
                execution_id=ctx.execution_id,
                step_name=failed_step.name,
                report=report,
            ) from failed_step.error

        self._state = RunState.COMPLETED
        log.info(
            "Workflow finished",
            status=report.status,
            completed_steps=report.summary.completed_steps,
            failed_steps=report.summary.failed_steps,
            duration_ms=report.duration_ms,
        )
        return report

    def get_execution_report(self) -> ExecutionReport:
        """Rebuild the report from the current context (run must be finished)."""
        return self._build_report()

    # ─── Internals ─────────────────────────────────────

    async def _execute_step(
        self,
        step: PipelineStep,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """Run one step and keep its StepRecord in sync with it."""
        ctx = self._context

        step.status = StepStatus.RUNNING
        step.started_at = utc_now()
        step.completed_at = None
        step.error = None

        record = StepRecord(status=StepStatus.RUNNING, started_at=step.started_at, attempts=1)
        ctx.step_outputs[step.name] = record

        try:
            output = await step.execute(ctx)
        except Exception as exc:
            await self._handle_failure(step, exc, record, log)
            return

        self._mark_completed(step, record, output)
        ctx.metadata.completed_steps += 1
        log.info("Step completed", duration_ms=step.duration_ms)

    async def _handle_failure(
        self,
        step: PipelineStep,
        error: Exception,
        record: StepRecord,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        ctx = self._context

        step.record_failure(error, ctx)
        record.status = StepStatus.FAILED
        record.completed_at = step.completed_at
        record.error = error
        record.duration_ms = step.duration_ms

        try:
            outcome = await self.error_handler.handle(error, step, ctx, log)
        except StepRetryExhaustedError as exhausted:
            # the last attempt's error is the one the step ends with
            last_error = exhausted.__cause__ or error
            step.error = record.error = last_error
            record.attempts += exhausted.attempts
            log.error("Step failed after retries", attempts=record.attempts)
            if self.error_handling.fallback_enabled:
                info = self.error_handler.classify(last_error, step.name)
                self.error_handler.fallback(info, step, ctx, log)
            return

        if outcome.recovered:
            record.attempts += outcome.retry_attempts
            self._mark_completed(step, record, outcome.output)
            # the failure recorded above turned out not to be final
            ctx.metadata.failed_steps -= 1
            ctx.metadata.completed_steps += 1
            log.info(
                "Step recovered on retry",
                attempts=record.attempts,
                duration_ms=step.duration_ms,
            )

    def _mark_completed(self, step: PipelineStep, record: StepRecord, output: Any) -> None:
        step.status = StepStatus.COMPLETED
        step.completed_at = utc_now()
        step.output = output
        step.error = None

        record.status = StepStatus.COMPLETED
        record.completed_at = step.completed_at
        record.output = output
        record.error = None
        record.duration_ms = step.duration_ms

    async def _cleanup(
        self,
        steps: list[PipelineStep],
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        for step in steps:
            try:
                await step.cleanup()
            except Exception as exc:
                log.warning("Step cleanup failed", step_name=step.name, error=str(exc))

    def _build_report(self) -> ExecutionReport:
        return ExecutionReport.from_context(
            self._context,
            workflow_id=self.workflow_id,
            metrics_provider=self._metrics_provider,
        )
