"""
Workflow Orchestrator — sequential step execution with retry and fallback.

The core lives in `workflow_orchestrator.pipeline`; `workflow_orchestrator.api`
is a thin FastAPI adapter around it.
"""

__version__ = "0.1.0"
