"""
Module: client_config.py
Description: Per-client configuration record.

ClientConfig holds every option a WebhookClient is constructed with. Any
option left unset falls back to the environment-driven defaults in
settings; the record is frozen and only read at construction time.
"""

import re
import threading
from concurrent.futures import Executor
from typing import Callable, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from webhook_sender.config.settings import settings
from webhook_sender.exceptions import ValidationError
from webhook_sender.models.mentions import AllowedMentions

ThreadFactory = Callable[[Callable[[], None]], threading.Thread]

WEBHOOK_URL_PATTERN = re.compile(
    r"^https?://(?:[\w-]+\.)?discord(?:app)?\.com/api(?:/v\d+)?/webhooks/(\d+)/([\w-]+)/?(?:\?.*)?$"
)


class DefaultThreadFactory:
    """Creates the private worker thread for a webhook."""

    def __init__(self, webhook_id: int, daemon: bool = False):
        self.webhook_id = webhook_id
        self.daemon = daemon

    def __call__(self, target: Callable[[], None]) -> threading.Thread:
        return threading.Thread(
            target=target,
            name=f"Webhook-RateLimit Thread WebhookID: {self.webhook_id}",
            daemon=self.daemon,
        )


class ClientConfig(BaseModel):
    """
    Options applied when a WebhookClient is built.

    Attributes:
        executor: Runs the send queue worker instead of a private thread;
            never shut down by the client
        http_client: httpx client used instead of a private one; never
            closed by the client
        thread_factory: Creates the private worker thread; ignored when
            an executor is supplied
        daemon: Daemon flag of the default worker thread; ignored when an
            executor or thread factory is supplied
        allowed_mentions: Mention policy for messages that set none
        wait: Ask the endpoint to echo the created message and parse it
        api_base_url: Base URL webhook paths are appended to
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    executor: Optional[Executor] = None
    http_client: Optional[httpx.Client] = None
    thread_factory: Optional[Callable[..., threading.Thread]] = None
    daemon: bool = Field(default_factory=lambda: settings.thread_daemon)
    allowed_mentions: AllowedMentions = Field(default_factory=AllowedMentions.all)
    wait: bool = Field(default_factory=lambda: settings.wait_for_message)
    api_base_url: str = Field(default_factory=lambda: settings.api_base_url)

    @field_validator('api_base_url')
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        if not v.startswith(('http://', 'https://')):
            raise ValueError("api_base_url must be a valid HTTP/HTTPS URL")
        return v.rstrip('/')

    def thread_factory_for(self, webhook_id: int) -> ThreadFactory:
        """Thread factory for the private worker: the configured one or the default."""
        if self.thread_factory is not None:
            return self.thread_factory
        return DefaultThreadFactory(webhook_id, self.daemon)


def validate_identity(webhook_id: int, token: str) -> Tuple[int, str]:
    """
    Validate a webhook id and token.

    Raises:
        ValidationError: If the id is not a positive integer or the token is empty
    """
    if isinstance(webhook_id, bool) or not isinstance(webhook_id, int) or webhook_id <= 0:
        raise ValidationError("webhook_id must be a positive integer")
    if not token or not isinstance(token, str) or not token.strip():
        raise ValidationError("token must be a non-empty string")
    return webhook_id, token.strip()


def parse_webhook_url(url: str) -> Tuple[int, str]:
    """
    Split a webhook URL into id and token.

    Raises:
        ValidationError: If the URL is not a webhook URL
    """
    match = WEBHOOK_URL_PATTERN.match(url.strip()) if isinstance(url, str) else None
    if match is None:
        raise ValidationError("url is not a valid webhook URL")
    return int(match.group(1)), match.group(2)
