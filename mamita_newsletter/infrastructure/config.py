"""Configuration management for the daily menu newsletter."""

from pathlib import Path
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mamita_newsletter.infrastructure.error_handling import ConfigurationError


class ApplicationConfig(BaseSettings):
    """Application configuration with environment variable support."""

    # Database
    database_url: str = Field(
        default="sqlite:///newsletter.db",
        description="Database connection URL"
    )

    # OpenAI Configuration
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key for menu formatting"
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used to format the daily menu"
    )
    openai_max_tokens: int = Field(
        default=2000,
        description="Maximum tokens for OpenAI API calls"
    )
    openai_temperature: float = Field(
        default=0.1,
        description="Temperature setting for OpenAI API calls"
    )

    # SMTP Settings
    smtp_host: Optional[str] = Field(
        default=None,
        description="SMTP server host"
    )
    smtp_port: Optional[int] = Field(
        default=None,
        description="SMTP server port (465 uses implicit TLS)"
    )
    smtp_user: Optional[str] = Field(
        default=None,
        description="SMTP username"
    )
    smtp_password: Optional[str] = Field(
        default=None,
        description="SMTP password"
    )
    smtp_from_email: Optional[str] = Field(
        default=None,
        description="Sender address for newsletters"
    )
    smtp_timeout: int = Field(
        default=60,
        description="SMTP connection timeout in seconds"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="text",
        description="Log format: structured or text"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        if v not in ("structured", "text"):
            raise ValueError("log_format must be 'structured' or 'text'")
        return v

    @property
    def async_database_url(self) -> str:
        """Database URL with the async driver for SQLite."""
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        return self.database_url

    @property
    def smtp(self) -> "SMTPSettings":
        """SMTP settings extracted from the environment, not yet validated."""
        return SMTPSettings(
            host=self.smtp_host,
            port=self.smtp_port,
            username=self.smtp_user,
            password=self.smtp_password,
            from_email=self.smtp_from_email,
            timeout=self.smtp_timeout,
        )

    model_config = SettingsConfigDict(
        env_prefix="NEWSLETTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class SMTPSettings(BaseModel):
    """Mail transport settings passed explicitly into the delivery pipeline."""

    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    from_email: Optional[str] = None
    timeout: int = 60

    # Names match the environment variables so the error points at the fix
    REQUIRED_SETTINGS: ClassVar[Dict[str, str]] = {
        "host": "NEWSLETTER_SMTP_HOST",
        "port": "NEWSLETTER_SMTP_PORT",
        "username": "NEWSLETTER_SMTP_USER",
        "password": "NEWSLETTER_SMTP_PASSWORD",
        "from_email": "NEWSLETTER_SMTP_FROM_EMAIL",
    }

    @property
    def use_tls(self) -> bool:
        """Implicit TLS on the SMTPS port."""
        return self.port == 465

    def missing_settings(self) -> List[str]:
        """Environment names of the required settings that are absent."""
        return [
            env_name for attr, env_name in self.REQUIRED_SETTINGS.items()
            if getattr(self, attr) in (None, "")
        ]

    def require_complete(self) -> "SMTPSettings":
        """Fail fast when any transport setting is missing.

        Raises:
            ConfigurationError: If host, port, username, password or
                from-address is absent.
        """
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(
                "SMTP configuration is incomplete. Missing: "
                + ", ".join(missing)
                + ". Check the environment or the .env file."
            )
        return self


def load_config() -> ApplicationConfig:
    """Load application configuration from environment and files."""
    return ApplicationConfig()


def get_templates_dir() -> Path:
    """Get the bundled templates directory."""
    return Path(__file__).parent.parent / "templates"
