"""
Dummy steps for engine and API tests.

Both are driven entirely by their config dict so they can be built
from a JSON workflow definition as well as directly in a test.
"""

from __future__ import annotations

from typing import Any

from workflow_orchestrator.pipeline.context import ExecutionContext
from workflow_orchestrator.pipeline.errors import (
    ConfigurationError,
    StepExecutionError,
    StepNetworkError,
    StepTimeoutError,
    StepValidationError,
)
from workflow_orchestrator.pipeline.step import PipelineStep

ERROR_KINDS: dict[str, Any] = {
    "runtime": lambda msg: RuntimeError(msg),
    "execution": lambda msg: StepExecutionError(msg),
    "execution_retryable": lambda msg: StepExecutionError(msg, retryable=True),
    "validation": lambda msg: StepValidationError(msg),
    "timeout": lambda msg: StepTimeoutError(msg),
    "network": lambda msg: StepNetworkError(msg),
}


class RecordingStep(PipelineStep):
    """
    Writes its output to ctx.data[name] and returns it.

    config:
        output: value to return (default "<name>-ok")
    """

    description = "Recording test step"

    def __init__(self, name: str, config: dict | None = None, **kwargs: Any) -> None:
        super().__init__(name, config, **kwargs)
        self.calls = 0
        self.cleanups = 0
        self.execution_log: list[str] | None = None

    async def execute(self, ctx: ExecutionContext) -> Any:
        self.calls += 1
        if self.execution_log is not None:
            self.execution_log.append(self.name)
        output = self.config.get("output", f"{self.name}-ok")
        ctx.set_data(self.name, output)
        return output

    async def cleanup(self) -> None:
        self.cleanups += 1

    def check_config(self) -> None:
        if self.config.get("invalid"):
            raise ConfigurationError(
                f"Step '{self.name}' is misconfigured",
                step_name=self.name,
            )


class FailingStep(RecordingStep):
    """
    Raises on its first `fail_times` calls (every call if unset).

    config:
        error: key of ERROR_KINDS (default "runtime")
        message: exception message (default "boom")
        fail_times: number of failing calls before succeeding
        number_messages: suffix each message with the call number ("boom #2")
    """

    description = "Failing test step"

    async def execute(self, ctx: ExecutionContext) -> Any:
        self.calls += 1
        if self.execution_log is not None:
            self.execution_log.append(self.name)

        fail_times = self.config.get("fail_times")
        if fail_times is None or self.calls <= fail_times:
            make_error = ERROR_KINDS[self.config.get("error", "runtime")]
            message = self.config.get("message", "boom")
            if self.config.get("number_messages"):
                message = f"{message} #{self.calls}"
            raise make_error(message)

        output = self.config.get("output", f"{self.name}-recovered")
        ctx.set_data(self.name, output)
        return output


class BrokenCleanupStep(RecordingStep):
    """Succeeds, but its cleanup raises."""

    async def cleanup(self) -> None:
        self.cleanups += 1
        raise OSError("cleanup exploded")
