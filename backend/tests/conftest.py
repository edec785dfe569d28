"""
Shared fixtures for the orchestrator test suite.

Nothing here touches the network or the filesystem, and backoff waits
go through a recording fake so retry tests never actually sleep.
"""

from __future__ import annotations

import pytest

from workflow_orchestrator.core.constants import RetryStrategy
from workflow_orchestrator.pipeline.context import ExecutionContext
from workflow_orchestrator.pipeline.definition import ErrorHandlingConfig
from workflow_orchestrator.pipeline.engine import Orchestrator
from workflow_orchestrator.pipeline.registry import StepRegistry
from workflow_orchestrator.pipeline.report import ResourceUsage

from tests.fixtures.steps import BrokenCleanupStep, FailingStep, RecordingStep


class FakeSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def ctx() -> ExecutionContext:
    return ExecutionContext(execution_id="exec-test-001")


@pytest.fixture
def fixed_metrics():
    """Deterministic resource figures for reports."""
    return lambda: ResourceUsage(memory_usage_bytes=4096, cpu_time_seconds=0.25)


@pytest.fixture
def continue_config() -> ErrorHandlingConfig:
    """Fallback on, no retries."""
    return ErrorHandlingConfig(max_retries=0, fallback_enabled=True)


@pytest.fixture
def abort_config() -> ErrorHandlingConfig:
    """Fallback off, no retries."""
    return ErrorHandlingConfig(max_retries=0, fallback_enabled=False)


@pytest.fixture
def retry_config() -> ErrorHandlingConfig:
    return ErrorHandlingConfig(
        max_retries=2,
        retry_strategy=RetryStrategy.EXPONENTIAL,
        fallback_enabled=True,
    )


@pytest.fixture
def make_orchestrator(fake_sleep, fixed_metrics):
    """Factory: build an Orchestrator wired to the fake sleep and metrics."""

    def _make(steps, error_handling, **kwargs):
        return Orchestrator(
            steps,
            error_handling,
            name=kwargs.pop("name", "test-workflow"),
            workflow_id=kwargs.pop("workflow_id", "wf-test-001"),
            metrics_provider=fixed_metrics,
            sleep=fake_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
def three_steps():
    return [RecordingStep("one"), RecordingStep("two"), RecordingStep("three")]


@pytest.fixture
def test_registry() -> StepRegistry:
    registry = StepRegistry()
    registry.register("Recording", RecordingStep)
    registry.register("Failing", FailingStep)
    registry.register("BrokenCleanup", BrokenCleanupStep)
    return registry
