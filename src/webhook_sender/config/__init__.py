"""
Package: config
Description: Environment-driven default settings and per-client configuration.
"""

from .client_config import ClientConfig, DefaultThreadFactory, parse_webhook_url, validate_identity
from .settings import WebhookSettings, settings

__all__ = [
    "ClientConfig",
    "DefaultThreadFactory",
    "parse_webhook_url",
    "validate_identity",
    "WebhookSettings",
    "settings",
]
