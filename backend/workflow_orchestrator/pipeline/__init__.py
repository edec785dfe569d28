"""
Workflow engine — runs an ordered list of steps against a shared context.

This package provides the orchestrator, the step contract, the error
handler with its retry/fallback policy, and the execution report.
"""

from workflow_orchestrator.pipeline.context import ExecutionContext, StepRecord
from workflow_orchestrator.pipeline.definition import (
    ErrorHandlingConfig,
    StepDefinition,
    WorkflowDefinition,
)
from workflow_orchestrator.pipeline.engine import Orchestrator
from workflow_orchestrator.pipeline.error_handler import ErrorHandler, ErrorInfo
from workflow_orchestrator.pipeline.registry import StepRegistry, default_registry
from workflow_orchestrator.pipeline.report import ExecutionReport
from workflow_orchestrator.pipeline.step import PipelineStep

__all__ = [
    "ErrorHandler",
    "ErrorHandlingConfig",
    "ErrorInfo",
    "ExecutionContext",
    "ExecutionReport",
    "Orchestrator",
    "PipelineStep",
    "StepDefinition",
    "StepRecord",
    "StepRegistry",
    "WorkflowDefinition",
    "default_registry",
]
