"""
ErrorHandler — classify a step failure, retry it, or fall back.

Flow for a failed step:
    1. classify() the exception into type / severity / retryable
    2. retryable, not HIGH severity, and retries configured?
         → re-run step.execute() up to max_retries times with backoff
         → first success wins; otherwise StepRetryExhaustedError
    3. not retried and fallback enabled → fallback() side effects

Classification trusts StepError tags.  Foreign exceptions are bucketed
by looking for "validation" / "timeout" / "network" in their message
(case-sensitive, so "Timeout" does not match).  This is deliberately
crude: it exists for errors raised by code that knows nothing about
this package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from workflow_orchestrator.core.constants import ErrorSeverity, ErrorType
from workflow_orchestrator.core.logging import get_logger
from workflow_orchestrator.pipeline.context import ExecutionContext
from workflow_orchestrator.pipeline.definition import ErrorHandlingConfig
from workflow_orchestrator.pipeline.errors import StepError, StepRetryExhaustedError
from workflow_orchestrator.pipeline.retry import BackoffStrategy, Sleeper, get_backoff
from workflow_orchestrator.pipeline.step import PipelineStep

# (substring, type, severity, retryable), checked in order
_MESSAGE_RULES: tuple[tuple[str, ErrorType, ErrorSeverity, bool], ...] = (
    ("validation", ErrorType.VALIDATION, ErrorSeverity.HIGH, False),
    ("timeout", ErrorType.TIMEOUT, ErrorSeverity.MEDIUM, True),
    ("network", ErrorType.NETWORK, ErrorSeverity.MEDIUM, True),
)


@dataclass(frozen=True)
class ErrorInfo:
    """Classification of a single failure."""

    error_type: ErrorType
    severity: ErrorSeverity
    retryable: bool
    origin_step: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.error_type,
            "severity": self.severity,
            "retryable": self.retryable,
            "origin_step": self.origin_step,
        }


@dataclass(frozen=True)
class HandlingOutcome:
    """What handle() did about a failure."""

    info: ErrorInfo
    recovered: bool = False
    output: Any = None
    retry_attempts: int = 0
    fallback_applied: bool = False


class ErrorHandler:
    """
    Applies an ErrorHandlingConfig to failed steps.

    Usage::

        handler = ErrorHandler(ErrorHandlingConfig(max_retries=2))
        outcome = await handler.handle(exc, step, ctx)
    """

    def __init__(
        self,
        config: ErrorHandlingConfig,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or get_logger(__name__)
        self.backoff: BackoffStrategy = get_backoff(config.retry_strategy, sleep=sleep)

    # ─── Classification ───────────────────────────────

    def classify(self, error: BaseException, step_name: str | None = None) -> ErrorInfo:
        """Bucket an exception.  Typed errors first, message heuristics otherwise."""
        if isinstance(error, StepError):
            return ErrorInfo(
                error_type=error.error_type,
                severity=error.severity,
                retryable=error.retryable,
                origin_step=error.step_name or step_name,
            )

        message = str(error)
        for needle, error_type, severity, retryable in _MESSAGE_RULES:
            if needle in message:
                return ErrorInfo(error_type, severity, retryable, step_name)

        return ErrorInfo(ErrorType.UNKNOWN, ErrorSeverity.HIGH, False, step_name)

    def should_retry(self, info: ErrorInfo) -> bool:
        return (
            info.retryable
            and info.severity != ErrorSeverity.HIGH
            and self.config.max_retries > 0
        )

    # ─── Entry point ──────────────────────────────────

    async def handle(
        self,
        error: BaseException,
        step: PipelineStep,
        ctx: ExecutionContext,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> HandlingOutcome:
        """
        Deal with a step failure that has already been recorded.

        Returns an outcome describing whether a retry recovered the step.
        Raises StepRetryExhaustedError (chained to the last attempt's
        exception) when every retry failed; the caller decides what
        happens next.
        """
        log = (log or self.logger).bind(step_name=step.name)
        info = self.classify(error, step.name)

        log.error(
            "Handling step error",
            error=str(error),
            error_type=info.error_type,
            severity=info.severity,
            retryable=info.retryable,
            completed_steps=ctx.metadata.completed_steps,
            failed_steps=ctx.metadata.failed_steps,
        )

        if self.should_retry(info):
            output, attempts = await self.retry(step, ctx, log)
            return HandlingOutcome(
                info=info,
                recovered=True,
                output=output,
                retry_attempts=attempts,
            )

        if self.config.fallback_enabled:
            self.fallback(info, step, ctx, log)
            return HandlingOutcome(info=info, fallback_applied=True)

        return HandlingOutcome(info=info)

    # ─── Retry ────────────────────────────────────────

    async def retry(
        self,
        step: PipelineStep,
        ctx: ExecutionContext,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> tuple[Any, int]:
        """
        Re-run step.execute() up to max_retries times.

        Calls execute() directly: the orchestrator's bookkeeping is not
        repeated for these attempts.  Each failed attempt is appended to
        ctx.errors but leaves the step counters alone.

        Returns (output, number_of_retries_used).
        """
        log = log or self.logger.bind(step_name=step.name)
        log.info("Retrying step", max_retries=self.config.max_retries)

        last_error: Exception | None = None
        for attempt in range(self.config.max_retries):
            wait_seconds = self.backoff.delay(attempt)
            log.info(
                f"Retry {attempt + 1}/{self.config.max_retries} in {wait_seconds}s",
                retry=attempt + 1,
                wait_seconds=wait_seconds,
            )
            await self.backoff.wait(attempt)

            try:
                output = await step.execute(ctx)
            except Exception as exc:
                last_error = exc
                # attempt 1 was the orchestrator's own call
                ctx.add_error(step.name, exc, attempt=attempt + 2)
                log.warning(
                    f"Retry {attempt + 1} failed",
                    retry=attempt + 1,
                    error=str(exc),
                )
                continue

            log.info("Step succeeded on retry", retry=attempt + 1)
            return output, attempt + 1

        log.error("All retries exhausted", attempts=self.config.max_retries)
        raise StepRetryExhaustedError(
            f"Step '{step.name}' failed after {self.config.max_retries} retries: {last_error}",
            attempts=self.config.max_retries,
            execution_id=ctx.execution_id,
            step_name=step.name,
        ) from last_error

    # ─── Fallback ─────────────────────────────────────

    def fallback(
        self,
        info: ErrorInfo,
        step: PipelineStep,
        ctx: ExecutionContext,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """
        Compensate for a failure the run is allowed to continue past.

        VALIDATION → ctx.data["<step>_fallback"] = True (degraded continuation)
        NETWORK    → ctx.data["<step>_fallback"] = "cached" (prefer cached data)
        otherwise  → nothing beyond the entry already in ctx.errors
        """
        log = log or self.logger.bind(step_name=step.name)
        key = f"{step.name}_fallback"

        if info.error_type == ErrorType.VALIDATION:
            ctx.set_data(key, True)
        elif info.error_type == ErrorType.NETWORK:
            ctx.set_data(key, "cached")
        else:
            log.warning("No fallback strategy for error type", error_type=info.error_type)
            return

        log.warning("Fallback applied", error_type=info.error_type, fallback_key=key)
