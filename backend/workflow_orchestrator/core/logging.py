"""
Structured logging setup (structlog on top of stdlib logging).

Call setup_logging() once at process startup (the FastAPI lifespan does
this).  Every module then grabs its own logger with get_logger(__name__),
and components that need per-run context accept a bound logger instead.

Usage:
    from workflow_orchestrator.core.logging import get_logger, setup_logging

    setup_logging("INFO")
    logger = get_logger(__name__)
    logger.info("Workflow started", execution_id="abc")
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_configured = False
_handlers: list[logging.Handler] = []


def setup_logging(
    level: str = "INFO",
    *,
    json_logs: bool = False,
    log_file: str | None = None,
    console: bool = True,
    force: bool = False,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Minimum log level name ("DEBUG", "INFO", ...).
        json_logs: Render JSON lines instead of the colored console format.
        log_file: Optional path for an additional file handler.
        console: Attach a stderr handler.
        force: Reconfigure even if logging was already set up.
    """
    global _configured

    if _configured and not force:
        return

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    json_processors = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    if json_logs:
        console_processors = json_processors
    else:
        console_processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=console_processors,
    )

    _remove_handlers()
    root = logging.getLogger()

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        _handlers.append(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared_processors,
                processors=json_processors,
            )
        )
        _handlers.append(file_handler)

    for handler in _handlers:
        root.addHandler(handler)
    root.setLevel(level.upper())
    _configured = True


def shutdown_logging() -> None:
    """Flush and close the handlers installed by setup_logging()."""
    global _configured

    _remove_handlers()
    _configured = False


def _remove_handlers() -> None:
    # Only our own handlers; anything else on the root logger is left alone.
    root = logging.getLogger()
    while _handlers:
        handler = _handlers.pop()
        handler.flush()
        handler.close()
        root.removeHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger for the given module / component name."""
    return structlog.get_logger(name)
