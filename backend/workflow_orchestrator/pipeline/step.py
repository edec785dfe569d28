"""
PipelineStep — abstract base class for all workflow steps.

Every step in a workflow inherits from this class.  The orchestrator
calls execute() and records timing, logging, and errors automatically.
Steps only need to implement the business logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any, final

from workflow_orchestrator.core.constants import StepStatus
from workflow_orchestrator.core.logging import get_logger
from workflow_orchestrator.pipeline.context import ExecutionContext, utc_now

logger = get_logger(__name__)


class PipelineStep(ABC):
    """
    Base class for every workflow step.

    Subclasses MUST implement:
        - execute(ctx)        — the actual business logic

    Subclasses MAY implement:
        - validate(input_)    — normalise / check input (default: identity)
        - cleanup()           — release resources; idempotent, must not raise
        - check_config()      — reject self-evidently bad static config

    record_failure() is shared bookkeeping and cannot be overridden.
    """

    description: str = "No description"

    def __init__(
        self,
        name: str,
        config: Mapping[str, Any] | None = None,
        *,
        description: str | None = None,
        dependencies: list[str] | None = None,
    ) -> None:
        """
        Args:
            name: Unique identifier for this step within a workflow.
            config: Static step configuration (opaque to the orchestrator).
            description: Human-readable label for logs.
            dependencies: Names of upstream steps.  Informational only,
                          the orchestrator never reorders or gates on them.
        """
        self.name = name
        self.config = {} if config is None else config
        if description is not None:
            self.description = description
        self.dependencies = list(dependencies or [])

        self.status = StepStatus.PENDING
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None
        self.error: BaseException | None = None
        self.output: Any = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "record_failure" in cls.__dict__:
            raise TypeError(
                f"{cls.__name__} must not override PipelineStep.record_failure"
            )

    @abstractmethod
    async def execute(self, ctx: ExecutionContext) -> Any:
        """
        Run the step's logic and return its output.

        Read from and write to `ctx` to pass data between steps.
        Raise a StepError subclass on failure so the error handler can
        classify it without guessing.
        """
        ...

    async def validate(self, input_: Any) -> Any:
        """Validate input before use.  Default: return it unchanged."""
        return input_

    async def cleanup(self) -> None:
        """Optional cleanup once the run is over."""
        pass

    def check_config(self) -> None:
        """Raise ConfigurationError if `self.config` cannot possibly work."""
        pass

    # ─── Derived state ─────────────────────────────────

    @property
    def duration_ms(self) -> int:
        """Milliseconds between start and end, 0 until both are set."""
        if self.started_at is None or self.completed_at is None:
            return 0
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    @property
    def is_terminal(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.FAILED)

    # ─── Shared bookkeeping ────────────────────────────

    @final
    def record_failure(self, error: BaseException, ctx: ExecutionContext) -> None:
        """
        Mark this step FAILED and log the error into the context.

        Called once per step failure by the orchestrator.  Retry attempts
        made by the error handler do not go through here.
        """
        self.error = error
        self.status = StepStatus.FAILED
        self.completed_at = utc_now()
        ctx.add_error(self.name, error)
        ctx.metadata.failed_steps += 1

        logger.error(
            "Step failed",
            step_name=self.name,
            execution_id=ctx.execution_id,
            error=str(error),
            error_class=type(error).__name__,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} status={self.status}>"
