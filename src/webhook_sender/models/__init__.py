"""
Package: models
Description: Pydantic data models for outgoing and received webhook messages.

All models are exported here for convenient importing.
"""

from .mentions import AllowedMentions
from .message import (
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedMedia,
    MessageAttachment,
    WebhookEmbed,
    WebhookMessage,
)
from .response import (
    NO_CONTENT,
    NoContent,
    ReadonlyAttachment,
    ReadonlyEmbed,
    ReadonlyMessage,
    ReadonlyUser,
)

__all__ = [
    "AllowedMentions",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedMedia",
    "MessageAttachment",
    "WebhookEmbed",
    "WebhookMessage",
    "NO_CONTENT",
    "NoContent",
    "ReadonlyAttachment",
    "ReadonlyEmbed",
    "ReadonlyMessage",
    "ReadonlyUser",
]
