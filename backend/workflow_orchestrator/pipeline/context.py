"""
ExecutionContext — mutable state object carried through every step.

This is the single source of truth for a workflow run.  Each step
reads from and writes to the shared `data` blackboard; the orchestrator
keeps run metadata, per-step records and the error log up to date.

Nothing here locks.  Steps run strictly one after another, so exactly
one component mutates the context at any time.

The blackboard is untyped: a key carries whatever the writing step put
there, and readers must agree on what each key holds.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from workflow_orchestrator.core.constants import StepStatus


def utc_now() -> datetime:
    """UTC-aware now."""
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════
#  StepRecord
# ═══════════════════════════════════════════════════════════

@dataclass
class StepRecord:
    """Execution record for one step, keyed by step name in the context."""

    status: StepStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None
    output: Any = None
    error: BaseException | None = None
    duration_ms: int = 0
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / API responses."""
        return {
            "status": self.status,
            "started_at": _isoformat(self.started_at),
            "completed_at": _isoformat(self.completed_at),
            "output": self.output,
            "error": str(self.error) if self.error else None,
            "duration_ms": self.duration_ms,
            "attempts": self.attempts,
        }


# ═══════════════════════════════════════════════════════════
#  ErrorRecord
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ErrorRecord:
    """One failure observed during the run (audit trail entry)."""

    step_name: str
    error: BaseException
    recorded_at: datetime = field(default_factory=utc_now)
    attempt: int = 1

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def error_class(self) -> str:
        return type(self.error).__name__


# ═══════════════════════════════════════════════════════════
#  RunMetadata
# ═══════════════════════════════════════════════════════════

@dataclass
class RunMetadata:
    """
    Aggregate counters for the run.

    Invariant: completed_steps + failed_steps <= total_steps whenever
    anything outside the orchestrator looks at it.
    """

    total_steps: int = 0
    completed_steps: int = 0
    failed_steps: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_steps": self.total_steps,
            "completed_steps": self.completed_steps,
            "failed_steps": self.failed_steps,
            "started_at": _isoformat(self.started_at),
            "finished_at": _isoformat(self.finished_at),
        }


# ═══════════════════════════════════════════════════════════
#  ExecutionContext
# ═══════════════════════════════════════════════════════════

@dataclass
class ExecutionContext:
    """
    Carries all state between workflow steps.

    Populated progressively: steps fill in `data`, the orchestrator
    fills in `metadata`, `step_outputs` and `errors`.
    """

    # ─── Identity (set at init, never changes) ─────────
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # ─── Shared blackboard ────────────────────────────
    data: dict[str, Any] = field(default_factory=dict)

    # ─── Execution tracking ────────────────────────────
    metadata: RunMetadata = field(default_factory=RunMetadata)
    step_outputs: dict[str, StepRecord] = field(default_factory=dict)
    errors: list[ErrorRecord] = field(default_factory=list)

    # ─── Blackboard helpers ────────────────────────────

    def set_data(self, key: str, value: Any) -> None:
        """Store data for downstream steps.  Last write wins."""
        self.data[key] = value

    def get_data(self, key: str, default: Any = None) -> Any:
        """Retrieve data stored by an upstream step, or `default` if absent."""
        return self.data.get(key, default)

    def has_data(self, key: str) -> bool:
        """True if some step has written `key`."""
        return key in self.data

    # ─── Step output helpers ──────────────────────────

    def set_step_output(self, step_name: str, output: Any) -> None:
        """
        Attach an output to a step's record.

        An existing record only has its output replaced.  Without one, a
        new record is created that assumes the step succeeded.
        """
        record = self.step_outputs.get(step_name)
        if record is not None:
            record.output = output
            return

        now = utc_now()
        self.step_outputs[step_name] = StepRecord(
            status=StepStatus.COMPLETED,
            started_at=now,
            completed_at=now,
            output=output,
        )

    def get_step_output(self, step_name: str) -> StepRecord | None:
        """Return the record for a step, or None if it never ran."""
        return self.step_outputs.get(step_name)

    # ─── Error log ────────────────────────────────────

    def add_error(
        self,
        step_name: str,
        error: BaseException,
        attempt: int = 1,
    ) -> ErrorRecord:
        """Append a failure to the audit trail.  Entries are never removed."""
        record = ErrorRecord(step_name=step_name, error=error, attempt=attempt)
        self.errors.append(record)
        return record

    def to_summary_dict(self) -> dict[str, Any]:
        """Compact summary for logging."""
        return {
            "execution_id": self.execution_id,
            "data_keys": sorted(self.data),
            "metadata": self.metadata.to_dict(),
            "steps": {name: rec.status for name, rec in self.step_outputs.items()},
            "errors": len(self.errors),
        }
