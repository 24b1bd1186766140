"""Infrastructure layer for configuration, logging and persistence."""

from .config import ApplicationConfig, SMTPSettings, load_config
from .database import Database, DocumentStore, init_database
from .error_handling import (
    ConfigurationError,
    ContentGenerationError,
    DataNotFoundError,
    DeliveryError,
    ErrorContext,
    MenuEditError,
    MenuNotFoundError,
    NewsletterError,
    SettingsNotFoundError,
    SubscriberError,
    handle_service_errors,
)
from .logging import setup_logging

__all__ = [
    "ApplicationConfig",
    "SMTPSettings",
    "load_config",
    "Database",
    "DocumentStore",
    "init_database",
    "ConfigurationError",
    "ContentGenerationError",
    "DataNotFoundError",
    "DeliveryError",
    "ErrorContext",
    "MenuEditError",
    "MenuNotFoundError",
    "NewsletterError",
    "SettingsNotFoundError",
    "SubscriberError",
    "handle_service_errors",
    "setup_logging",
]
