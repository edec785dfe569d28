"""
StepRegistry — maps step type names to PipelineStep classes.

A WorkflowDefinition only names step types; the registry turns each
StepDefinition into a step instance, in declaration order.

To add a new step type:
    1. Subclass PipelineStep
    2. Register it:  @default_registry.register("DataInput")
    3. Reference "DataInput" as the `type` of a step definition
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from workflow_orchestrator.core.logging import get_logger
from workflow_orchestrator.pipeline.definition import StepDefinition
from workflow_orchestrator.pipeline.errors import ConfigurationError
from workflow_orchestrator.pipeline.step import PipelineStep

logger = get_logger(__name__)

StepClass = type[PipelineStep]


class StepRegistry:
    """Resolves step definitions to ready-to-run step instances."""

    def __init__(self, registry: dict[str, StepClass] | None = None) -> None:
        self.registry: dict[str, StepClass] = dict(registry or {})

    def register(
        self, type_name: str, step_cls: StepClass | None = None
    ) -> StepClass | Callable[[StepClass], StepClass]:
        """
        Register a step class under `type_name`.

        Works as a plain call or as a class decorator::

            registry.register("Output", OutputStep)

            @registry.register("Output")
            class OutputStep(PipelineStep): ...
        """
        def _register(cls: StepClass) -> StepClass:
            if not (isinstance(cls, type) and issubclass(cls, PipelineStep)):
                raise TypeError(f"{cls!r} is not a PipelineStep subclass")
            if type_name in self.registry and self.registry[type_name] is not cls:
                logger.warning(
                    "Step type re-registered",
                    step_type=type_name,
                    previous=self.registry[type_name].__name__,
                    new=cls.__name__,
                )
            self.registry[type_name] = cls
            return cls

        if step_cls is None:
            return _register
        return _register(step_cls)

    def create(self, definition: StepDefinition) -> PipelineStep:
        """
        Instantiate the step for one definition.

        Raises:
            ConfigurationError: If the step type is not registered.
        """
        step_cls = self.registry.get(definition.type)
        if step_cls is None:
            raise ConfigurationError(
                f"Unknown step type '{definition.type}' for step '{definition.name}'",
                step_name=definition.name,
                details={"available_types": self.available_types()},
            )
        return step_cls(
            definition.name,
            definition.config,
            dependencies=definition.dependencies,
        )

    def build(self, definitions: Iterable[StepDefinition]) -> list[PipelineStep]:
        """Instantiate every definition, preserving order."""
        steps = [self.create(d) for d in definitions]
        logger.info(
            "Steps resolved",
            step_names=[s.name for s in steps],
        )
        return steps

    def available_types(self) -> list[str]:
        """Return all registered step type names."""
        return sorted(self.registry)


default_registry = StepRegistry()
