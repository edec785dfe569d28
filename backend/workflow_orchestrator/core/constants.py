"""Shared constants and enums used across the orchestrator."""

from enum import StrEnum


# Minimum number of steps a workflow must declare before it may run.
MIN_WORKFLOW_STEPS = 3


class WorkflowStatus(StrEnum):
    """Overall status reported for a finished workflow run."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RunState(StrEnum):
    """Lifecycle of a single orchestrator run."""

    NOT_STARTED = "NOT_STARTED"
    VALIDATING = "VALIDATING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"


class StepStatus(StrEnum):
    """Status of an individual pipeline step."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RetryStrategy(StrEnum):
    """Backoff strategies available to the error handler."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    FIXED = "fixed"


class ErrorType(StrEnum):
    """Classification buckets for step failures."""

    EXECUTION = "EXECUTION"
    VALIDATION = "VALIDATION"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    UNKNOWN = "UNKNOWN"


class ErrorSeverity(StrEnum):
    """How bad a classified failure is. HIGH failures are never retried."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
