"""
Package: webhook_sender
Description: Rate limited, ordered delivery of messages to webhooks.

Exports the client, its builder, the message models and the error types.
"""

from .builder import WebhookClientBuilder
from .client import ClientState, WebhookClient
from .config.client_config import ClientConfig
from .exceptions import (
    ClosedError,
    HttpStatusError,
    ParseError,
    TransportError,
    ValidationError,
    WebhookError,
)
from .models import (
    NO_CONTENT,
    AllowedMentions,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedMedia,
    MessageAttachment,
    ReadonlyMessage,
    WebhookEmbed,
    WebhookMessage,
)

__version__ = "0.1.0"

__all__ = [
    "WebhookClient",
    "WebhookClientBuilder",
    "ClientConfig",
    "ClientState",
    "ClosedError",
    "HttpStatusError",
    "ParseError",
    "TransportError",
    "ValidationError",
    "WebhookError",
    "NO_CONTENT",
    "AllowedMentions",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedMedia",
    "MessageAttachment",
    "ReadonlyMessage",
    "WebhookEmbed",
    "WebhookMessage",
]
