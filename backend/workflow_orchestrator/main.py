"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from workflow_orchestrator import __version__
from workflow_orchestrator.api.v1 import workflows
from workflow_orchestrator.core.config import settings
from workflow_orchestrator.core.logging import get_logger, setup_logging, shutdown_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging(
        settings.LOG_LEVEL,
        json_logs=settings.LOG_JSON,
        log_file=settings.LOG_FILE,
        console=settings.LOG_CONSOLE,
    )
    logger = get_logger("startup")
    logger.info("Application starting", env=settings.APP_ENV)
    yield
    logger.info("Application shutting down")
    shutdown_logging()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Workflow Orchestrator API",
        description="Sequential workflow execution with retry and fallback",
        version=__version__,
        lifespan=lifespan,
    )

    API_PREFIX = "/api/v1"
    app.include_router(workflows.router, prefix=API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Public health-check endpoint."""
        return {"status": "ok", "env": settings.APP_ENV}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
