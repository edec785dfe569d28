"""Tests for ExecutionReport construction and serialisation."""

from datetime import timedelta

import pytest

from workflow_orchestrator.core.constants import StepStatus, WorkflowStatus
from workflow_orchestrator.pipeline.context import StepRecord, utc_now
from workflow_orchestrator.pipeline.report import (
    ExecutionReport,
    ResourceUsage,
    collect_resource_usage,
)


def _finish(ctx, total_steps=4, seconds=2):
    started = utc_now()
    ctx.metadata.total_steps = total_steps
    ctx.metadata.started_at = started
    ctx.metadata.finished_at = started + timedelta(seconds=seconds)


def test_unfinished_run_has_no_report(ctx, fixed_metrics):
    with pytest.raises(ValueError):
        ExecutionReport.from_context(ctx, workflow_id="wf", metrics_provider=fixed_metrics)

    ctx.metadata.started_at = utc_now()
    with pytest.raises(ValueError):
        ExecutionReport.from_context(ctx, workflow_id="wf", metrics_provider=fixed_metrics)


def test_summary_and_metrics(ctx, fixed_metrics):
    _finish(ctx)
    ctx.metadata.completed_steps = 3
    ctx.metadata.failed_steps = 1

    report = ExecutionReport.from_context(ctx, workflow_id="wf-1", metrics_provider=fixed_metrics)

    assert report.status == WorkflowStatus.FAILED
    assert report.duration_ms == 2000
    assert report.summary.success_rate == 75
    assert report.metrics.total_execution_time_ms == 2000
    assert report.metrics.average_step_time_ms == 500
    assert report.metrics.memory_usage_bytes == 4096


def test_zero_total_steps_does_not_divide(ctx, fixed_metrics):
    _finish(ctx, total_steps=0)

    report = ExecutionReport.from_context(ctx, workflow_id="wf", metrics_provider=fixed_metrics)

    assert report.status == WorkflowStatus.COMPLETED
    assert report.summary.success_rate == 0.0
    assert report.metrics.average_step_time_ms == 0.0


def test_unfinished_step_records_are_reported_failed(ctx, fixed_metrics):
    _finish(ctx)
    ctx.step_outputs["stuck"] = StepRecord(status=StepStatus.RUNNING, started_at=utc_now())
    ctx.set_step_output("done", 1)

    report = ExecutionReport.from_context(ctx, workflow_id="wf", metrics_provider=fixed_metrics)

    statuses = {s.name: s.status for s in report.steps}
    assert statuses == {"stuck": StepStatus.FAILED, "done": StepStatus.COMPLETED}


def test_to_dict_is_json_ready(ctx, fixed_metrics):
    _finish(ctx)
    ctx.set_step_output("load", {"rows": 2})
    ctx.add_error("load", ValueError("bad row"))

    data = ExecutionReport.from_context(
        ctx, workflow_id="wf-1", metrics_provider=fixed_metrics
    ).to_dict()

    assert data["workflow_id"] == "wf-1"
    assert data["execution_id"] == "exec-test-001"
    assert isinstance(data["started_at"], str)
    assert data["steps"][0]["name"] == "load"
    assert "error" not in data["steps"][0]
    assert data["errors"] == [
        {
            "step": "load",
            "message": "bad row",
            "type": "ValueError",
            "timestamp": ctx.errors[0].recorded_at.isoformat(),
            "attempt": 1,
        }
    ]
    assert data["metrics"]["cpu_time_seconds"] == 0.25
    assert set(data["summary"]) == {"total_steps", "completed_steps", "failed_steps", "success_rate"}


def test_collect_resource_usage_reports_real_figures():
    usage = collect_resource_usage()

    assert isinstance(usage, ResourceUsage)
    assert usage.memory_usage_bytes > 0
    assert usage.cpu_time_seconds >= 0
