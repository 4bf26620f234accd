"""
Module: response.py
Description: Read-only models for messages echoed back by the endpoint.

When a client waits for the created message, the 2xx response body is
decoded into a ReadonlyMessage. Otherwise the future resolves to the
NO_CONTENT marker.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .message import EmbedAuthor, EmbedField, EmbedFooter, EmbedMedia


class _ReadonlyModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ReadonlyUser(_ReadonlyModel):
    """Author or mentioned user of a received message."""

    id: int
    username: str
    discriminator: Optional[str] = None
    avatar: Optional[str] = None
    bot: bool = False


class ReadonlyEmbed(_ReadonlyModel):
    """Embed as rendered by the endpoint, including link previews."""

    type: str = "rich"
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[datetime] = None
    color: Optional[int] = None
    footer: Optional[EmbedFooter] = None
    author: Optional[EmbedAuthor] = None
    image: Optional[EmbedMedia] = None
    thumbnail: Optional[EmbedMedia] = None
    fields: List[EmbedField] = Field(default_factory=list)


class ReadonlyAttachment(_ReadonlyModel):
    """File attached to a received message."""

    id: int
    filename: str
    size: int = 0
    url: str
    proxy_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class ReadonlyMessage(_ReadonlyModel):
    """
    Message created by a webhook send.

    Attributes:
        id: Message snowflake id
        channel_id: Channel the message was posted to
        webhook_id: Webhook that created the message
        author: The webhook's user representation
        content: Text content
        tts: Whether the message was sent as TTS
        mention_everyone: Whether @everyone/@here was resolved
        mentions: Users mentioned in the message
        mention_roles: Role ids mentioned in the message
        embeds: Embeds as rendered by the endpoint
        attachments: Uploaded files
        timestamp: Creation time
    """

    id: int
    channel_id: int
    webhook_id: Optional[int] = None
    author: ReadonlyUser
    content: str = ""
    tts: bool = False
    mention_everyone: bool = False
    mentions: List[ReadonlyUser] = Field(default_factory=list)
    mention_roles: List[int] = Field(default_factory=list)
    embeds: List[ReadonlyEmbed] = Field(default_factory=list)
    attachments: List[ReadonlyAttachment] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


class NoContent:
    """Result of a send whose response was not parsed or had no body."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_CONTENT"

    def __bool__(self) -> bool:
        return False


NO_CONTENT = NoContent()
