#!/usr/bin/env python3
"""
Demo script — run the orchestrator locally on a small valuation workflow.

Shows a degraded-but-finished run (a flaky feed recovers on retry, a
validation failure falls back) and an aborted run with fallback off.

Usage:
    cd backend
    python -m scripts.demo_workflow
"""

import asyncio
from typing import Any

from workflow_orchestrator.core.constants import RetryStrategy
from workflow_orchestrator.pipeline import (
    ErrorHandlingConfig,
    ExecutionContext,
    ExecutionReport,
    Orchestrator,
    PipelineStep,
    StepDefinition,
    StepRegistry,
    WorkflowDefinition,
)
from workflow_orchestrator.pipeline.errors import (
    StepNetworkError,
    StepValidationError,
    WorkflowAbortError,
)

demo_registry = StepRegistry()


@demo_registry.register("DataInput")
class DataInputStep(PipelineStep):
    """Loads company financials from config (stands in for a real source)."""

    description = "Load company financials"

    async def execute(self, ctx: ExecutionContext) -> Any:
        financials = dict(self.config.get("financials", {}))
        ctx.set_data("financials", financials)
        return financials


@demo_registry.register("MarketFeed")
class MarketFeedStep(PipelineStep):
    """Fetches a market multiple; drops the first `flaky_calls` requests."""

    description = "Fetch market multiple"

    def __init__(self, name, config=None, **kwargs):
        super().__init__(name, config, **kwargs)
        self._calls = 0

    async def execute(self, ctx: ExecutionContext) -> Any:
        self._calls += 1
        if self._calls <= self.config.get("flaky_calls", 0):
            raise StepNetworkError("market feed unreachable", step_name=self.name)
        multiple = self.config.get("multiple", 8.0)
        ctx.set_data("market_multiple", multiple)
        return multiple


@demo_registry.register("Validation")
class ValidationStep(PipelineStep):
    description = "Validate financials"

    async def execute(self, ctx: ExecutionContext) -> Any:
        financials = ctx.get_data("financials", {})
        missing = [f for f in self.config.get("required", []) if f not in financials]
        if missing:
            raise StepValidationError(f"Missing fields: {', '.join(missing)}", step_name=self.name)
        return {"checked": sorted(financials)}


@demo_registry.register("Valuation")
class ValuationStep(PipelineStep):
    description = "Value company"

    async def execute(self, ctx: ExecutionContext) -> Any:
        ebitda = ctx.get_data("financials", {}).get("ebitda", 0)
        value = ebitda * ctx.get_data("market_multiple", 0)
        if ctx.get_data("Validation_fallback"):
            # unvalidated inputs: flag the figure instead of trusting it
            return {"value": value, "provisional": True}
        return {"value": value, "provisional": False}


def build_definition(*, required: list[str], fallback_enabled: bool) -> WorkflowDefinition:
    return WorkflowDefinition(
        workflow_id="demo-valuation-001",
        name="Valuation Workflow Demo",
        steps=[
            StepDefinition(
                name="DataInput",
                type="DataInput",
                config={"financials": {"revenue": 1200, "ebitda": 300}},
            ),
            StepDefinition(
                name="MarketFeed",
                type="MarketFeed",
                config={"flaky_calls": 1, "multiple": 7.5},
            ),
            StepDefinition(
                name="Validation",
                type="Validation",
                config={"required": required},
                dependencies=["DataInput"],
            ),
            StepDefinition(
                name="Valuation",
                type="Valuation",
                dependencies=["MarketFeed", "Validation"],
            ),
        ],
        error_handling=ErrorHandlingConfig(
            max_retries=2,
            retry_strategy=RetryStrategy.LINEAR,
            fallback_enabled=fallback_enabled,
        ),
    )


async def run_degraded_flow(sleep=None) -> ExecutionReport:
    """DEMO 1: fallback on — feed recovers on retry, validation falls back."""
    print("\n" + "=" * 70)
    print("  DEMO 1: Degraded run (fallback enabled)")
    print("=" * 70)

    definition = build_definition(required=["revenue", "ebitda", "net_debt"], fallback_enabled=True)
    orchestrator = Orchestrator.from_definition(definition, demo_registry, sleep=sleep)
    report = await orchestrator.execute()
    _print_report(report)
    return report


async def run_abort_flow(sleep=None) -> WorkflowAbortError:
    """DEMO 2: fallback off — the validation failure stops the run."""
    print("\n" + "=" * 70)
    print("  DEMO 2: Aborted run (fallback disabled)")
    print("=" * 70)

    definition = build_definition(required=["net_debt"], fallback_enabled=False)
    orchestrator = Orchestrator.from_definition(definition, demo_registry, sleep=sleep)
    try:
        await orchestrator.execute()
    except WorkflowAbortError as exc:
        print(f"\n  Aborted      : {exc} ({exc.__cause__})")
        if exc.report:
            _print_report(exc.report)
        return exc
    raise RuntimeError("Demo 2 was expected to abort")


def _print_report(report: ExecutionReport) -> None:
    """Pretty-print an ExecutionReport."""
    print(f"\n{'─' * 50}")
    print(f"  Execution ID : {report.execution_id[:12]}...")
    print(f"  Status       : {report.status}")
    print(f"  Steps        : {report.summary.completed_steps}/{report.summary.total_steps}")
    print(f"  Success rate : {report.summary.success_rate:.1f}%")
    print(f"  Duration     : {report.duration_ms}ms")

    print("\n  Step Results:")
    for step in report.steps:
        icon = "✓" if step.status == "COMPLETED" else "✗"
        print(f"    {icon} {step.name} ({step.duration_ms}ms, attempts={step.attempts})")
        if step.error:
            print(f"        error: {step.error}")

    if report.errors:
        print("\n  Error log:")
        for error in report.errors:
            print(f"    - {error.step} #{error.attempt}: {error.type}: {error.message}")

    print(f"{'─' * 50}\n")


async def main():
    from workflow_orchestrator.core.logging import setup_logging
    setup_logging("WARNING")     # quiet logs, show formatted output only

    print("\n╔" + "═" * 68 + "╗")
    print("║           WORKFLOW ORCHESTRATOR — VALUATION DEMO                   ║")
    print("╚" + "═" * 68 + "╝")

    await run_degraded_flow()
    await run_abort_flow()

    print("\n✅ All demos completed!\n")


if __name__ == "__main__":
    asyncio.run(main())
