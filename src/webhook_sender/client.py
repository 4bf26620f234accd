"""
Module: client.py
Description: Public webhook client.

WebhookClient validates and encodes messages on the caller's thread,
queues them on the webhook's SendQueue and returns a Future right away.
A single worker, either a private thread or a task on a caller-supplied
executor, delivers the queued messages in order under the webhook's rate
limit.

Key Components:
- ClientState: OPEN -> CLOSING -> CLOSED
- WebhookClient: send*, close and context manager support
"""

import threading
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, Union

from webhook_sender.config.client_config import (
    ClientConfig,
    parse_webhook_url,
    validate_identity,
)
from webhook_sender.delivery.codec import (
    MessageLike,
    build_message,
    coerce_message,
    encode_message,
)
from webhook_sender.delivery.queue import SendQueue, SendRequest
from webhook_sender.delivery.ratelimit import RateLimiter
from webhook_sender.delivery.transport import HttpTransport
from webhook_sender.exceptions import ClosedError, ValidationError
from webhook_sender.models.message import MessageAttachment, WebhookEmbed, WebhookMessage
from webhook_sender.utils.logger import get_logger

logger = get_logger(__name__)

FileLike = Union[bytes, str, Path, BinaryIO]


class ClientState(str, Enum):
    """Lifecycle of a WebhookClient."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class WebhookClient:
    """
    Sends messages to one webhook, in order, under its rate limit.

    Every send returns a concurrent.futures.Future resolved with a
    ReadonlyMessage (when waiting for messages and the endpoint returned
    one), NO_CONTENT, or a WebhookError.

    Example:
        >>> with WebhookClient.from_url(url) as client:
        ...     client.send("Hello World").result()
    """

    def __init__(self, webhook_id: int, token: str, config: Optional[ClientConfig] = None):
        """
        Initialize the client and start its worker.

        Args:
            webhook_id: Webhook id
            token: Webhook token
            config: Client options; defaults from settings if None

        Raises:
            ValidationError: If the id or token is invalid
        """
        webhook_id, token = validate_identity(webhook_id, token)
        self.config = config if config is not None else ClientConfig()

        self._webhook_id = webhook_id
        self._url = f"{self.config.api_base_url}/webhooks/{webhook_id}/{token}"
        self.allowed_mentions = self.config.allowed_mentions
        self.parse_message = self.config.wait

        self._transport = HttpTransport(self.config.http_client)
        self._queue = SendQueue(
            self._url,
            self._transport,
            RateLimiter(),
            webhook_id=webhook_id,
            executor=self.config.executor
        )
        self._queue.on_stopped = self._worker_stopped

        # Reentrant: a future callback fired by close() may call close() again
        self._lock = threading.RLock()
        self._state = ClientState.OPEN
        self._release_on_worker_exit = False

        # With an executor, drain steps are submitted per wakeup and no thread is kept
        self._thread: Optional[threading.Thread] = None
        if self.config.executor is None:
            self._thread = self.config.thread_factory_for(webhook_id)(self._queue.run)
            self._thread.start()

        logger.info(
            "Webhook client initialized",
            webhook_id=webhook_id,
            wait=self.parse_message,
            custom_executor=self.config.executor is not None,
            custom_http_client=not self._transport.owns_client
        )

    @classmethod
    def create(cls, webhook_id: int, token: str) -> "WebhookClient":
        """Create a client with default options."""
        return cls(webhook_id, token)

    @classmethod
    def from_url(cls, url: str) -> "WebhookClient":
        """
        Create a client with default options from a webhook URL.

        Raises:
            ValidationError: If the URL is not a webhook URL
        """
        webhook_id, token = parse_webhook_url(url)
        return cls(webhook_id, token)

    @property
    def webhook_id(self) -> int:
        return self._webhook_id

    @property
    def url(self) -> str:
        """Webhook URL; contains the token."""
        return self._url

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is not ClientState.OPEN

    @property
    def pending(self) -> int:
        """Number of messages queued but not yet dispatched."""
        return self._queue.pending

    def send(self, message: MessageLike) -> Future:
        """
        Queue a message for delivery.

        Args:
            message: Text content, a single embed or a WebhookMessage

        Returns:
            Future resolved with a ReadonlyMessage, NO_CONTENT or a WebhookError

        Raises:
            ClosedError: If the client is closing or closed
            ValidationError: If the message violates protocol constraints
        """
        self._ensure_open()
        return self._submit(coerce_message(message))

    def send_embeds(self, *embeds: WebhookEmbed) -> Future:
        """Queue a message made of one or more embeds."""
        self._ensure_open()
        if not embeds:
            raise ValidationError("at least one embed is required")
        return self._submit(build_message(embeds=list(embeds)))

    def send_file(
        self,
        file: FileLike,
        filename: Optional[str] = None,
        content: Optional[str] = None
    ) -> Future:
        """
        Queue a message with one attached file.

        Args:
            file: Raw bytes, a path or a binary file object
            filename: Name shown for the attachment; defaults to the path's name
            content: Optional text content

        Raises:
            ClosedError: If the client is closing or closed
            ValidationError: If the file or message is invalid
        """
        self._ensure_open()

        if isinstance(file, (str, Path)):
            path = Path(file)
            filename = filename or path.name
            try:
                data = path.read_bytes()
            except OSError as e:
                raise ValidationError(f"cannot read file {path}: {e}") from e
        elif isinstance(file, bytes):
            data = file
        elif hasattr(file, "read"):
            data = file.read()
            filename = filename or Path(getattr(file, "name", "") or "").name or None
        else:
            raise ValidationError(f"cannot attach object of type {type(file).__name__}")

        if not filename:
            raise ValidationError("filename is required")

        attachment = MessageAttachment(filename=filename, data=data)
        return self._submit(build_message(content=content, files=[attachment]))

    def close(self, drain: bool = False) -> None:
        """
        Stop accepting messages and release owned resources.

        Args:
            drain: Wait for every queued message to finish; otherwise queued
                messages fail with ClosedError. A dispatch already in flight
                always completes.

        Calling close more than once is a no-op. Supplied executors and
        httpx clients are left open.
        """
        on_worker = threading.get_ident() == self._queue.worker_ident
        # The worker must not wait on a closer that is joining the worker
        if not self._lock.acquire(blocking=not on_worker):
            return
        try:
            if self._state is not ClientState.OPEN:
                return
            self._state = ClientState.CLOSING
            logger.info("Closing webhook client", webhook_id=self._webhook_id, drain=drain)

            if on_worker:
                # Called from a future callback; the worker releases on exit
                self._release_on_worker_exit = True
                self._queue.shutdown(drain)
                return

            self._queue.shutdown(drain)

            self._wait_for_worker()
            self._release()
        finally:
            self._lock.release()

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(drain=True)

    def __repr__(self) -> str:
        return f"WebhookClient(webhook_id={self._webhook_id}, state={self._state.value})"

    def _ensure_open(self) -> None:
        if self._state is not ClientState.OPEN:
            raise ClosedError("webhook client is closed")

    def _submit(self, message: WebhookMessage) -> Future:
        body = encode_message(message, self.allowed_mentions)
        request = SendRequest(body, parse=self.parse_message)
        self._queue.enqueue(request)
        return request.future

    def _worker_stopped(self) -> None:
        if self._release_on_worker_exit:
            self._release()

    def _wait_for_worker(self) -> None:
        if self._thread is not None:
            self._thread.join()
        else:
            self._queue.join()

    def _release(self) -> None:
        self._transport.close()
        self._state = ClientState.CLOSED
        logger.info("Webhook client closed", webhook_id=self._webhook_id)
