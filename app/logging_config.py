"""Structured logging configuration."""

import logging
import sys

import structlog


def configure_logging(log_level: str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        log_level: Logging level name, defaults to settings.log_level
        json_output: Render JSON lines instead of console output,
            defaults to settings.log_json
    """
    from app.config import settings

    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    if json_output is None:
        json_output = settings.log_json

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module."""
    return structlog.get_logger(name)
