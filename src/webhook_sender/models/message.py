"""
Module: message.py
Description: Outgoing webhook message models.

Defines the message, embed and attachment models a caller builds before
sending. Pydantic validation enforces the endpoint's protocol limits so
that an unsendable message is rejected before it is queued.

Key Components:
- WebhookMessage: content, identity overrides, embeds and files
- WebhookEmbed: rich embed with fields, footer, author and media
- MessageAttachment: a file uploaded alongside the message

Dependencies: pydantic, typing, datetime
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .mentions import AllowedMentions

MAX_CONTENT_LENGTH = 2000
MAX_EMBEDS = 10
MAX_FILES = 10
MAX_EMBED_FIELDS = 25
MAX_EMBED_TOTAL_LENGTH = 6000


class EmbedField(BaseModel):
    """A name/value pair rendered inside an embed."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=256)
    value: str = Field(..., min_length=1, max_length=1024)
    inline: bool = False


class EmbedFooter(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, max_length=2048)
    icon_url: Optional[str] = None


class EmbedAuthor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=256)
    url: Optional[str] = None
    icon_url: Optional[str] = None


class EmbedMedia(BaseModel):
    """Image or thumbnail reference."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)


class WebhookEmbed(BaseModel):
    """
    Rich embed attached to a message.

    Attributes:
        title: Embed title
        description: Main embed text
        url: Link applied to the title
        timestamp: Timestamp shown in the footer
        color: RGB color as an integer (0xRRGGBB)
        footer: Footer text and icon
        author: Author line
        image: Large image
        thumbnail: Small image in the corner
        fields: Up to 25 name/value fields
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")

    title: Optional[str] = Field(default=None, max_length=256)
    description: Optional[str] = Field(default=None, max_length=4096)
    url: Optional[str] = None
    timestamp: Optional[datetime] = None
    color: Optional[int] = Field(default=None, ge=0, le=0xFFFFFF)
    footer: Optional[EmbedFooter] = None
    author: Optional[EmbedAuthor] = None
    image: Optional[EmbedMedia] = None
    thumbnail: Optional[EmbedMedia] = None
    fields: List[EmbedField] = Field(default_factory=list, max_length=MAX_EMBED_FIELDS)

    @model_validator(mode='after')
    def validate_not_empty(self) -> "WebhookEmbed":
        """An embed must render something."""
        if not (self.title or self.description or self.fields or self.image
                or self.thumbnail or self.author or self.footer):
            raise ValueError("embed cannot be empty")
        return self

    def text_length(self) -> int:
        """Number of characters counted against the 6000 character embed limit."""
        total = len(self.title or "") + len(self.description or "")
        total += sum(len(f.name) + len(f.value) for f in self.fields)
        if self.footer:
            total += len(self.footer.text)
        if self.author:
            total += len(self.author.name)
        return total

    def to_payload(self) -> Dict[str, Any]:
        """Render the embed object sent on the wire."""
        payload = self.model_dump(mode="json", exclude_none=True)
        if not payload.get("fields"):
            payload.pop("fields", None)
        return payload


class MessageAttachment(BaseModel):
    """A file uploaded with the message as multipart form data."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1, max_length=255)
    data: bytes
    content_type: str = "application/octet-stream"


class WebhookMessage(BaseModel):
    """
    Message sent through a webhook.

    Attributes:
        content: Plain text content (up to 2000 characters)
        username: Overrides the webhook's default username
        avatar_url: Overrides the webhook's default avatar
        tts: Send as a text-to-speech message
        embeds: Up to 10 embeds
        files: Up to 10 file attachments
        allowed_mentions: Mention whitelist; falls back to the client default
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    content: Optional[str] = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    username: Optional[str] = Field(default=None, min_length=1, max_length=80)
    avatar_url: Optional[str] = None
    tts: bool = False
    embeds: List[WebhookEmbed] = Field(default_factory=list, max_length=MAX_EMBEDS)
    files: List[MessageAttachment] = Field(default_factory=list, max_length=MAX_FILES)
    allowed_mentions: Optional[AllowedMentions] = None

    @field_validator('avatar_url')
    @classmethod
    def validate_avatar_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate avatar_url is an HTTP(S) URL if provided."""
        if v is not None and not v.startswith(('http://', 'https://')):
            raise ValueError("avatar_url must be a valid HTTP/HTTPS URL")
        return v

    @model_validator(mode='after')
    def validate_sendable(self) -> "WebhookMessage":
        """A message needs content, an embed or a file, within the embed text budget."""
        if not self.content and not self.embeds and not self.files:
            raise ValueError("message must have content, embeds or files")

        total = sum(embed.text_length() for embed in self.embeds)
        if total > MAX_EMBED_TOTAL_LENGTH:
            raise ValueError(
                f"combined embed text is {total} characters, limit is {MAX_EMBED_TOTAL_LENGTH}"
            )
        return self

    @classmethod
    def of(cls, content: str) -> "WebhookMessage":
        """Build a plain text message."""
        return cls(content=content)

    @classmethod
    def of_embeds(cls, *embeds: WebhookEmbed) -> "WebhookMessage":
        """Build a message carrying only embeds."""
        return cls(embeds=list(embeds))

    @property
    def is_file(self) -> bool:
        """Whether the message must be sent as multipart form data."""
        return bool(self.files)
