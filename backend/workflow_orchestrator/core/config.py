"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings

from workflow_orchestrator.core.constants import RetryStrategy


class Settings(BaseSettings):
    # ── Application ───────────────────────────
    APP_ENV: str = "development"

    # ── Logging ───────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: str | None = None
    LOG_CONSOLE: bool = True

    # ── Workflow error handling defaults ──────
    WORKFLOW_MAX_RETRIES: int = 3
    WORKFLOW_RETRY_STRATEGY: RetryStrategy = RetryStrategy.EXPONENTIAL
    WORKFLOW_FALLBACK_ENABLED: bool = True

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
