"""
Module: exceptions.py
Description: Exception hierarchy for webhook delivery.

Every failure a caller can observe derives from WebhookError. Errors are
raised synchronously only for misuse (invalid payloads, sending after
close); everything that happens on the worker is delivered through the
request's future.

Key Components:
- ValidationError: payload or identity violates protocol constraints
- ClosedError: client is closing or closed
- TransportError: network/IO failure reaching the endpoint
- HttpStatusError: terminal non-2xx response
- ParseError: successful send with an unusable response body
- ThrottledRetry: internal signal for a 429 response
"""

from typing import Optional


class WebhookError(Exception):
    """Base class for all webhook client errors."""


class ValidationError(WebhookError):
    """Raised when a message or webhook identity violates protocol constraints."""


class ClosedError(WebhookError):
    """Raised when work is submitted to, or cancelled by, a closed client."""


class TransportError(WebhookError):
    """Raised when the request could not reach the endpoint."""


class HttpStatusError(WebhookError):
    """
    Terminal HTTP error response.

    Attributes:
        status_code: HTTP status returned by the endpoint
        body: Response body text (truncated)
    """

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Webhook request failed with HTTP {status_code}: {body}")


class ParseError(WebhookError):
    """Raised when a successful response body cannot be decoded."""


class ThrottledRetry(WebhookError):
    """
    Internal signal raised for a 429 response.

    Never set on a caller's future; the worker catches it and re-queues
    the request at the head of the queue.
    """

    def __init__(self, retry_after: float, is_global: bool = False, body: Optional[str] = None):
        self.retry_after = retry_after
        self.is_global = is_global
        self.body = body
        super().__init__(f"Rate limited, retry after {retry_after:.3f}s")
