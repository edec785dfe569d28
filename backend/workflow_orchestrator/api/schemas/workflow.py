"""Workflow execution request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class WorkflowExecutionResponse(BaseModel):
    """Successful (possibly degraded) workflow run."""

    success: bool = True
    workflow_id: str
    result: dict[str, Any]
    execution_time_ms: int = Field(..., ge=0)


class ErrorDetail(BaseModel):
    code: str
    message: str
    timestamp: datetime
    step: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope shared by every failing workflow endpoint."""

    success: bool = False
    error: ErrorDetail
    result: dict[str, Any] | None = None


class StepTypesResponse(BaseModel):
    step_types: list[str]
