"""
Workflow definition models — what a caller hands the orchestrator.

These mirror the JSON a client posts to the API: an error-handling
policy plus an ordered list of step definitions, each naming a step
type registered in a StepRegistry.
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from workflow_orchestrator.core.config import Settings, settings
from workflow_orchestrator.core.constants import RetryStrategy


class ErrorHandlingConfig(BaseModel):
    """Retry / fallback policy.  Fixed for the lifetime of a run."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(3, ge=0)
    retry_strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
    fallback_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> ErrorHandlingConfig:
        """Build the policy from environment-driven defaults."""
        return cls(
            max_retries=settings.WORKFLOW_MAX_RETRIES,
            retry_strategy=settings.WORKFLOW_RETRY_STRATEGY,
            fallback_enabled=settings.WORKFLOW_FALLBACK_ENABLED,
        )


class StepDefinition(BaseModel):
    """One step in a workflow definition."""

    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1)
    config: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)


class WorkflowDefinition(BaseModel):
    """A complete, runnable workflow."""

    workflow_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "workflow"
    version: str = "1.0.0"
    steps: list[StepDefinition] = Field(default_factory=list)
    error_handling: ErrorHandlingConfig = Field(
        default_factory=lambda: ErrorHandlingConfig.from_settings(settings)
    )
