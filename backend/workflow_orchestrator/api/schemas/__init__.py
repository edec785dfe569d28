"""API schema package."""

from workflow_orchestrator.api.schemas.workflow import (
    ErrorDetail,
    ErrorResponse,
    StepTypesResponse,
    WorkflowExecutionResponse,
)

__all__ = ["ErrorDetail", "ErrorResponse", "StepTypesResponse", "WorkflowExecutionResponse"]
