"""
Module: codec.py
Description: Payload encoding and response decoding.

Turns caller input into a transport-ready request body and turns a
successful response body into a ReadonlyMessage. Both directions are pure;
encode failures surface as ValidationError before a request is queued and
decode failures as ParseError on the request's future.
"""

import json
from typing import Any, Dict, Optional, Tuple, Union

import pydantic
from pydantic import BaseModel, ConfigDict

from webhook_sender.exceptions import ParseError, ValidationError
from webhook_sender.models.mentions import AllowedMentions
from webhook_sender.models.message import MessageAttachment, WebhookEmbed, WebhookMessage
from webhook_sender.models.response import ReadonlyMessage

MessageLike = Union[str, WebhookEmbed, WebhookMessage]


class EncodedBody(BaseModel):
    """
    Transport-ready request body.

    Attributes:
        payload_json: Compact JSON message payload
        files: Attachments sent as multipart parts next to payload_json
    """

    model_config = ConfigDict(frozen=True)

    payload_json: bytes
    files: Tuple[MessageAttachment, ...] = ()

    @property
    def is_multipart(self) -> bool:
        return bool(self.files)

    def request_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for httpx request construction."""
        if not self.files:
            return {
                "content": self.payload_json,
                "headers": {"Content-Type": "application/json"},
            }
        return {
            "data": {"payload_json": self.payload_json.decode("utf-8")},
            "files": [
                (f"file{index}", (attachment.filename, attachment.data, attachment.content_type))
                for index, attachment in enumerate(self.files)
            ],
        }


def _format_errors(error: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'message'}: {item['msg']}"
        for item in error.errors()
    )


def coerce_message(message: MessageLike) -> WebhookMessage:
    """
    Build a WebhookMessage from a string, an embed or a message.

    Raises:
        ValidationError: If the result violates protocol constraints
    """
    if isinstance(message, WebhookMessage):
        return message
    try:
        if isinstance(message, str):
            return WebhookMessage(content=message)
        if isinstance(message, WebhookEmbed):
            return WebhookMessage(embeds=[message])
    except pydantic.ValidationError as e:
        raise ValidationError(_format_errors(e)) from e
    raise ValidationError(f"cannot send object of type {type(message).__name__}")


def build_message(**fields: Any) -> WebhookMessage:
    """Construct a WebhookMessage, converting pydantic errors to ValidationError."""
    try:
        return WebhookMessage(**fields)
    except pydantic.ValidationError as e:
        raise ValidationError(_format_errors(e)) from e


def encode_message(
    message: WebhookMessage,
    default_mentions: Optional[AllowedMentions] = None
) -> EncodedBody:
    """
    Encode a message into a request body.

    Args:
        message: Validated message to encode
        default_mentions: Mention policy used when the message has none

    Returns:
        EncodedBody with compact JSON and any file parts

    Raises:
        ValidationError: If message is not a WebhookMessage
    """
    if not isinstance(message, WebhookMessage):
        raise ValidationError("message must be a WebhookMessage instance")

    payload: Dict[str, Any] = {}
    if message.content:
        payload["content"] = message.content
    if message.username:
        payload["username"] = message.username
    if message.avatar_url:
        payload["avatar_url"] = message.avatar_url
    payload["tts"] = message.tts
    if message.embeds:
        payload["embeds"] = [embed.to_payload() for embed in message.embeds]

    mentions = message.allowed_mentions or default_mentions or AllowedMentions.all()
    payload["allowed_mentions"] = mentions.to_payload()

    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return EncodedBody(payload_json=body, files=tuple(message.files))


def decode_message(body: bytes) -> ReadonlyMessage:
    """
    Decode a successful response body.

    Raises:
        ParseError: If the body is not JSON or does not describe a message
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"response body is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object, got {type(data).__name__}")

    try:
        return ReadonlyMessage.model_validate(data)
    except pydantic.ValidationError as e:
        raise ParseError(f"response body is not a message: {_format_errors(e)}") from e
