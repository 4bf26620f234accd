"""
Module: transport.py
Description: Synchronous HTTP transport for webhook delivery.

Wraps an httpx.Client. The client is either supplied by the caller (and
never closed here) or created privately with the configured timeouts
(and closed by close()). Network failures are converted to TransportError;
HTTP status handling is left to the send queue.
"""

from typing import Optional

import httpx

from webhook_sender.config.settings import settings
from webhook_sender.delivery.codec import EncodedBody
from webhook_sender.exceptions import TransportError
from webhook_sender.utils.logger import get_logger

logger = get_logger(__name__)


def default_http_client() -> httpx.Client:
    """Create the private httpx client used when none is supplied."""
    return httpx.Client(
        timeout=httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
        headers={"User-Agent": settings.user_agent},
    )


class HttpTransport:
    """
    POSTs encoded bodies through an httpx client.

    Attributes:
        client: The httpx client requests are sent through
        owns_client: Whether close() releases the client
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        """
        Initialize the transport.

        Args:
            client: Caller-supplied httpx client; a private one is created if None
        """
        if client is not None and not isinstance(client, httpx.Client):
            raise ValueError("client must be an httpx.Client instance")

        self.owns_client = client is None
        self.client = default_http_client() if client is None else client
        self._closed = False

    def post(self, url: str, body: EncodedBody) -> httpx.Response:
        """
        Send one POST request.

        Args:
            url: Fully qualified webhook URL
            body: Encoded message body

        Returns:
            The httpx response, whatever its status

        Raises:
            TransportError: If the request could not be completed
        """
        try:
            return self.client.post(url, **body.request_kwargs())

        except httpx.TimeoutException as e:
            logger.warning("Webhook request timeout", error=str(e))
            raise TransportError(f"request timed out: {e}") from e

        except httpx.HTTPError as e:
            logger.warning(
                "Webhook request network error",
                error=str(e),
                error_type=type(e).__name__
            )
            raise TransportError(f"request failed: {e}") from e

    def close(self) -> None:
        """Close the underlying client if it was created here."""
        if self._closed:
            return
        self._closed = True
        if self.owns_client:
            self.client.close()
            logger.debug("Private http client closed")
