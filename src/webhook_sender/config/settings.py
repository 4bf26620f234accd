"""
Module: settings.py
Description: Client configuration using pydantic-settings.

Loads default client settings from environment variables (prefixed with
WEBHOOK_) with validation. Supports .env files for local development.
Values here are defaults only; the builder can override them per client.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebhookSettings(BaseSettings):
    """Webhook client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Endpoint settings
    api_base_url: str = Field(
        default="https://discord.com/api/v8",
        description="Base URL of the webhook API"
    )
    user_agent: str = Field(
        default="webhook-sender (https://github.com, 0.1.0)",
        description="User-Agent header sent with every request"
    )

    # HTTP settings
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="HTTP timeout in seconds for a single delivery attempt"
    )
    connect_timeout: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="HTTP connect timeout in seconds"
    )

    # Rate limit settings
    default_retry_after: float = Field(
        default=1.0,
        ge=0,
        description="Delay in seconds used when a 429 response carries no retry delay"
    )

    # Worker settings
    thread_daemon: bool = Field(
        default=False,
        description="Whether the private worker thread is a daemon thread"
    )
    wait_for_message: bool = Field(
        default=True,
        description="Whether sends ask the server to echo and parse the created message"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('api_base_url')
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate the base URL and strip any trailing slash."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("api_base_url must be a valid HTTP/HTTPS URL")
        return v.rstrip('/')

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


# Global settings instance
settings = WebhookSettings()
