"""Smoke test for the demo script's workflows."""

import pytest

from workflow_orchestrator.core.constants import StepStatus, WorkflowStatus

from scripts.demo_workflow import run_abort_flow, run_degraded_flow


@pytest.mark.asyncio
async def test_degraded_flow_finishes_with_provisional_value(fake_sleep, capsys):
    report = await run_degraded_flow(sleep=fake_sleep)

    assert report.status == WorkflowStatus.FAILED
    assert report.summary.completed_steps == 3
    assert report.summary.failed_steps == 1
    steps = {s.name: s for s in report.steps}
    assert steps["MarketFeed"].status == StepStatus.COMPLETED
    assert steps["MarketFeed"].attempts == 2
    assert steps["Validation"].status == StepStatus.FAILED
    assert fake_sleep.delays == [1.0]
    assert "DEMO 1" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_abort_flow_stops_at_validation(fake_sleep):
    exc = await run_abort_flow(sleep=fake_sleep)

    assert exc.step_name == "Validation"
    assert [s.name for s in exc.report.steps] == ["DataInput", "MarketFeed", "Validation"]
