"""Shared dependencies for API routes."""

from __future__ import annotations

from workflow_orchestrator.pipeline.registry import StepRegistry, default_registry


def get_step_registry() -> StepRegistry:
    """
    Registry used to resolve step types in posted workflow definitions.

    The package ships no business steps, so `default_registry` starts
    empty.  A host registers its step types on it at import time
    (``@default_registry.register("DataInput")``) or overrides this
    dependency with its own registry.
    """
    return default_registry
