"""
Workflow endpoints — run a posted workflow definition and list step types.

Pure adapter: builds the orchestrator from the request, runs it, and
serialises the ExecutionReport.  No orchestration logic lives here.

Step types come from the `get_step_registry` dependency.  Until the host
registers some on `default_registry` (or overrides the dependency), every
definition is rejected with 400 INVALID_WORKFLOW for an unknown step type.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from workflow_orchestrator.api.deps import get_step_registry
from workflow_orchestrator.api.schemas.workflow import (
    ErrorDetail,
    ErrorResponse,
    StepTypesResponse,
    WorkflowExecutionResponse,
)
from workflow_orchestrator.core.logging import get_logger
from workflow_orchestrator.pipeline.definition import WorkflowDefinition
from workflow_orchestrator.pipeline.engine import Orchestrator
from workflow_orchestrator.pipeline.errors import ConfigurationError, WorkflowAbortError
from workflow_orchestrator.pipeline.registry import StepRegistry

logger = get_logger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def _error_response(
    status_code: int,
    code: str,
    message: str,
    *,
    step: str | None = None,
    result: dict | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            step=step,
        ),
        result=result,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# ─── Execute ──────────────────────────────────────────────
@router.post(
    "/execute",
    response_model=WorkflowExecutionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def execute_workflow(
    definition: WorkflowDefinition,
    registry: StepRegistry = Depends(get_step_registry),
):
    """
    Run a workflow definition to completion.

    1. Resolves each step type through the registry
    2. Runs the orchestrator (retries / fallback per error_handling)
    3. Returns the execution report; an aborted run returns 500 with
       the partial report attached
    """
    log = logger.bind(workflow_id=definition.workflow_id, workflow_name=definition.name)
    log.info("Workflow execution requested", step_count=len(definition.steps))

    try:
        orchestrator = Orchestrator.from_definition(definition, registry)
        report = await orchestrator.execute()
    except ConfigurationError as exc:
        log.warning("Workflow rejected", error=str(exc))
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_WORKFLOW",
            str(exc),
            step=exc.step_name,
        )
    except WorkflowAbortError as exc:
        log.error("Workflow execution failed", error=str(exc), step_name=exc.step_name)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "WORKFLOW_EXECUTION_FAILED",
            str(exc),
            step=exc.step_name,
            result=exc.report.to_dict() if exc.report else None,
        )

    return WorkflowExecutionResponse(
        workflow_id=definition.workflow_id,
        result=report.to_dict(),
        execution_time_ms=report.duration_ms,
    )


# ─── Step types ───────────────────────────────────────────
@router.get("/step-types", response_model=StepTypesResponse)
async def list_step_types(registry: StepRegistry = Depends(get_step_registry)):
    """List the step types a workflow definition may reference."""
    return StepTypesResponse(step_types=registry.available_types())
