"""Logging configuration for the daily menu newsletter."""

import logging
import sys

import structlog
from rich.logging import RichHandler

# Third-party loggers that drown the pipeline events at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite", "aiosmtplib", "asyncio", "CSSUTILS")


def setup_logging(level: str = "INFO", format_type: str = "text") -> structlog.stdlib.BoundLogger:
    """Route structlog events to the console.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "text" for rich console output, "structured" for JSON
            lines on stdout

    Returns:
        The package logger
    """
    log_level = getattr(logging, level.upper())
    structured = format_type == "structured"

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False)
            if structured
            else structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if structured:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    else:
        # Timestamps come from the structlog processors
        handler = RichHandler(rich_tracebacks=True, show_path=False, show_time=False)
    handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s", force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = structlog.get_logger("mamita_newsletter")
    logger.info("Logging configured", level=level, format=format_type)
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance, usually for ``__name__``."""
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives service classes a ``logger`` named after the class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
