"""
ExecutionReport — the immutable outcome of a workflow run.

Built once from the ExecutionContext after the step loop ends.
Resource figures come from a metrics provider so tests (and other
hosts) can supply their own numbers.
"""

from __future__ import annotations

import resource
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from workflow_orchestrator.core.constants import StepStatus, WorkflowStatus
from workflow_orchestrator.pipeline.context import ExecutionContext


@dataclass(frozen=True)
class ResourceUsage:
    """Process resource figures sampled at report time."""

    memory_usage_bytes: int = 0
    cpu_time_seconds: float = 0.0


MetricsProvider = Callable[[], ResourceUsage]


def collect_resource_usage() -> ResourceUsage:
    """Peak RSS and CPU time of the current process."""
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    if sys.platform != "darwin":
        max_rss *= 1024
    return ResourceUsage(memory_usage_bytes=max_rss, cpu_time_seconds=time.process_time())


@dataclass(frozen=True)
class StepSummary:
    name: str
    status: StepStatus
    started_at: datetime | None
    completed_at: datetime | None
    duration_ms: int
    attempts: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "attempts": self.attempts,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ErrorSummary:
    step: str
    message: str
    type: str
    timestamp: datetime
    attempt: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "message": self.message,
            "type": self.type,
            "timestamp": self.timestamp.isoformat(),
            "attempt": self.attempt,
        }


@dataclass(frozen=True)
class RunSummary:
    total_steps: int
    completed_steps: int
    failed_steps: int
    success_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_steps": self.total_steps,
            "completed_steps": self.completed_steps,
            "failed_steps": self.failed_steps,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True)
class PerformanceMetrics:
    total_execution_time_ms: int
    average_step_time_ms: float
    memory_usage_bytes: int
    cpu_time_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_execution_time_ms": self.total_execution_time_ms,
            "average_step_time_ms": self.average_step_time_ms,
            "memory_usage_bytes": self.memory_usage_bytes,
            "cpu_time_seconds": self.cpu_time_seconds,
        }


@dataclass(frozen=True)
class ExecutionReport:
    """Final outcome of a workflow execution."""

    workflow_id: str
    execution_id: str
    status: WorkflowStatus
    started_at: datetime
    completed_at: datetime
    duration_ms: int
    summary: RunSummary
    metrics: PerformanceMetrics
    steps: tuple[StepSummary, ...] = field(default_factory=tuple)
    errors: tuple[ErrorSummary, ...] = field(default_factory=tuple)

    @classmethod
    def from_context(
        cls,
        ctx: ExecutionContext,
        *,
        workflow_id: str,
        metrics_provider: MetricsProvider = collect_resource_usage,
    ) -> ExecutionReport:
        """
        Snapshot a finished run.

        Raises ValueError if the run has not both started and finished.
        """
        meta = ctx.metadata
        if meta.started_at is None or meta.finished_at is None:
            raise ValueError("Execution report requires a started and finished run")

        duration_ms = int((meta.finished_at - meta.started_at).total_seconds() * 1000)

        steps = tuple(
            StepSummary(
                name=name,
                status=(
                    StepStatus.COMPLETED
                    if record.status == StepStatus.COMPLETED
                    else StepStatus.FAILED
                ),
                started_at=record.started_at,
                completed_at=record.completed_at,
                duration_ms=record.duration_ms,
                attempts=record.attempts,
                error=str(record.error) if record.error else None,
            )
            for name, record in ctx.step_outputs.items()
        )

        errors = tuple(
            ErrorSummary(
                step=entry.step_name,
                message=entry.message,
                type=entry.error_class,
                timestamp=entry.recorded_at,
                attempt=entry.attempt,
            )
            for entry in ctx.errors
        )

        total = meta.total_steps
        success_rate = (meta.completed_steps / total * 100) if total else 0.0

        usage = metrics_provider()

        return cls(
            workflow_id=workflow_id,
            execution_id=ctx.execution_id,
            status=WorkflowStatus.COMPLETED if meta.failed_steps == 0 else WorkflowStatus.FAILED,
            started_at=meta.started_at,
            completed_at=meta.finished_at,
            duration_ms=duration_ms,
            summary=RunSummary(
                total_steps=total,
                completed_steps=meta.completed_steps,
                failed_steps=meta.failed_steps,
                success_rate=success_rate,
            ),
            metrics=PerformanceMetrics(
                total_execution_time_ms=duration_ms,
                average_step_time_ms=(duration_ms / total) if total else 0.0,
                memory_usage_bytes=usage.memory_usage_bytes,
                cpu_time_seconds=usage.cpu_time_seconds,
            ),
            steps=steps,
            errors=errors,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "workflow_id": self.workflow_id,
            "execution_id": self.execution_id,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_ms": self.duration_ms,
            "steps": [s.to_dict() for s in self.steps],
            "summary": self.summary.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
            "metrics": self.metrics.to_dict(),
        }
