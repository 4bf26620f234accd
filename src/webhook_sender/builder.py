"""
Module: builder.py
Description: Fluent builder for WebhookClient instances.

Collects optional overrides and produces a frozen ClientConfig. Options
that are never set keep the defaults from settings.
"""

from concurrent.futures import Executor
from typing import Any, Dict, Optional

import httpx
import pydantic

from webhook_sender.client import WebhookClient
from webhook_sender.config.client_config import (
    ClientConfig,
    ThreadFactory,
    parse_webhook_url,
    validate_identity,
)
from webhook_sender.exceptions import ValidationError
from webhook_sender.models.mentions import AllowedMentions


class WebhookClientBuilder:
    """
    Builder for a WebhookClient.

    Example:
        >>> client = (
        ...     WebhookClientBuilder(1234, "token")
        ...     .set_wait(False)
        ...     .set_daemon(True)
        ...     .build()
        ... )
    """

    def __init__(self, webhook_id: int, token: str):
        """
        Create a builder for the given webhook.

        Raises:
            ValidationError: If the id or token is invalid
        """
        self.webhook_id, self.token = validate_identity(webhook_id, token)
        self._options: Dict[str, Any] = {}

    @classmethod
    def from_url(cls, url: str) -> "WebhookClientBuilder":
        """
        Create a builder from a webhook URL.

        Raises:
            ValidationError: If the URL is not a webhook URL
        """
        webhook_id, token = parse_webhook_url(url)
        return cls(webhook_id, token)

    def set_executor(self, executor: Optional[Executor]) -> "WebhookClientBuilder":
        """Run the send queue worker on this executor. The client never shuts it down."""
        self._options["executor"] = executor
        return self

    def set_http_client(self, client: Optional[httpx.Client]) -> "WebhookClientBuilder":
        """Send requests through this httpx client. The client never closes it."""
        self._options["http_client"] = client
        return self

    def set_thread_factory(self, factory: Optional[ThreadFactory]) -> "WebhookClientBuilder":
        """Create the private worker thread with this factory."""
        self._options["thread_factory"] = factory
        return self

    def set_daemon(self, daemon: bool) -> "WebhookClientBuilder":
        """
        Whether the default worker thread is a daemon thread.

        Has no effect if an executor or thread factory is set.
        """
        self._options["daemon"] = daemon
        return self

    def set_allowed_mentions(self, mentions: Optional[AllowedMentions]) -> "WebhookClientBuilder":
        """Default mention whitelist; None restores AllowedMentions.all()."""
        self._options["allowed_mentions"] = mentions if mentions is not None else AllowedMentions.all()
        return self

    def set_wait(self, wait: bool) -> "WebhookClientBuilder":
        """
        Whether sends wait for the created message.

        With wait disabled, futures resolve to NO_CONTENT instead of a
        ReadonlyMessage.
        """
        self._options["wait"] = wait
        return self

    def set_api_base_url(self, url: str) -> "WebhookClientBuilder":
        self._options["api_base_url"] = url
        return self

    def config(self) -> ClientConfig:
        """
        Build the ClientConfig for the current options.

        Raises:
            ValidationError: If an option has the wrong type or value
        """
        try:
            return ClientConfig(**self._options)
        except pydantic.ValidationError as e:
            raise ValidationError(f"invalid client options: {e}") from e

    def build(self) -> WebhookClient:
        """Build a WebhookClient with the current options."""
        return WebhookClient(self.webhook_id, self.token, self.config())
