"""
Domain-specific exception hierarchy for the workflow orchestrator.

All orchestrator exceptions inherit from PipelineError so callers can
catch broadly or narrowly as needed.  Each exception carries structured
context (step name, execution ID, etc.) for logging/debugging.

Step errors that know what went wrong are tagged at creation with an
error_type, severity and retryable flag; the ErrorHandler trusts those
tags and only falls back to message matching for foreign exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from workflow_orchestrator.core.constants import ErrorSeverity, ErrorType

if TYPE_CHECKING:
    from workflow_orchestrator.pipeline.report import ExecutionReport


class PipelineError(Exception):
    """Base exception for all orchestrator errors."""

    def __init__(
        self,
        message: str,
        *,
        execution_id: str | None = None,
        step_name: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.execution_id = execution_id
        self.step_name = step_name
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(PipelineError):
    """The workflow cannot run as configured.  Fatal, never retried."""
    pass


class WorkflowStateError(PipelineError):
    """An operation was attempted in the wrong run state."""
    pass


class WorkflowAbortError(PipelineError):
    """A step failed while fallback was disabled; the run stopped there."""

    def __init__(
        self,
        message: str,
        *,
        report: ExecutionReport | None = None,
        **kwargs: Any,
    ) -> None:
        self.report = report
        super().__init__(message, **kwargs)


# ═══════════════════════════════════════════════════════════
#  Classified step errors
# ═══════════════════════════════════════════════════════════

class StepError(PipelineError):
    """Base for step failures that carry their own classification."""

    error_type: ErrorType = ErrorType.EXECUTION
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    retryable: bool = False


class StepExecutionError(StepError):
    """A step failed during execution.  Retryable only when flagged so."""

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        **kwargs: Any,
    ) -> None:
        self.retryable = retryable
        super().__init__(message, **kwargs)


class StepValidationError(StepError):
    """Input or business-rule validation failed inside a step."""

    error_type = ErrorType.VALIDATION
    severity = ErrorSeverity.HIGH
    retryable = False


class StepTimeoutError(StepError):
    """A step gave up waiting on something it depends on."""

    error_type = ErrorType.TIMEOUT
    severity = ErrorSeverity.MEDIUM
    retryable = True


class StepNetworkError(StepError):
    """A step could not reach a remote resource."""

    error_type = ErrorType.NETWORK
    severity = ErrorSeverity.MEDIUM
    retryable = True


class StepRetryExhaustedError(PipelineError):
    """A retryable step exhausted all retry attempts."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int = 0,
        **kwargs: Any,
    ) -> None:
        self.attempts = attempts
        super().__init__(message, **kwargs)
