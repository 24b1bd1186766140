"""Error types and handling utilities for the newsletter pipeline."""

import functools
from typing import Any, Callable, Optional, Type, TypeVar, cast

import structlog

F = TypeVar('F', bound=Callable[..., Any])
logger = structlog.get_logger(__name__)


class NewsletterError(Exception):
    """Base class for every error surfaced to the admin caller."""


class ConfigurationError(NewsletterError):
    """Required configuration is missing. Raised before any data is read."""


class DataNotFoundError(NewsletterError):
    """A document the pipeline depends on does not exist."""


class SettingsNotFoundError(DataNotFoundError):
    """The homepage text settings document is absent."""


class MenuNotFoundError(DataNotFoundError):
    """The settings document holds no menu for the requested outlet."""


class ContentGenerationError(NewsletterError):
    """The generative model returned no usable structured output."""


class DeliveryError(NewsletterError):
    """The mail transport rejected or failed the submission."""


class SubscriberError(NewsletterError):
    """An external subscriber list operation was refused."""


class MenuEditError(NewsletterError):
    """An admin menu edit named a section or footer slot that does not exist."""


def handle_service_errors(
    service_name: str,
    log_level: str = "error",
    reraise: bool = True
) -> Callable[[F], F]:
    """
    Decorator for service-level error handling.

    Args:
        service_name: Name of the service for logging context
        log_level: Logging level ('error', 'warning', 'info')
        reraise: Whether to re-raise the exception after logging

    Usage:
        @handle_service_errors("OpenAI Formatter")
        async def format_menu(self, menu, outlet) -> GeneratedContent:
            ...
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                log_func = getattr(logger, log_level, logger.error)
                log_func(
                    f"Error in {service_name}.{func.__name__}",
                    error=str(e),
                    exception_type=type(e).__name__,
                )

                if reraise:
                    raise
                return None

        return cast(F, wrapper)
    return decorator


class ErrorContext:
    """Async context manager that logs a failed workflow stage.

    Exceptions that are not already a ``NewsletterError`` are wrapped in
    ``wrap_as`` when given, so callers only ever see the pipeline taxonomy.
    """

    def __init__(
        self,
        stage: str,
        operation: str,
        wrap_as: Optional[Type[NewsletterError]] = None,
        **context: Any,
    ):
        self.stage = stage
        self.operation = operation
        self.wrap_as = wrap_as
        self.context = context

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False

        logger.error(
            f"Error during {self.operation}",
            stage=self.stage,
            error=str(exc_val),
            exception_type=exc_type.__name__,
            **self.context,
        )

        if self.wrap_as is not None and not isinstance(exc_val, NewsletterError):
            raise self.wrap_as(f"{self.operation} failed: {exc_val}") from exc_val

        # Don't suppress the exception
        return False
