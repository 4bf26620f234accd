"""
Package: delivery
Description: Rate limited delivery pipeline for webhook messages.

Provides the payload codec, the httpx transport, per-webhook rate limit
bookkeeping and the ordered send queue that ties them together.
"""

from .codec import EncodedBody, build_message, coerce_message, decode_message, encode_message
from .queue import RequestState, SendQueue, SendRequest
from .ratelimit import RateLimiter, retry_after_from
from .transport import HttpTransport

__all__ = [
    "EncodedBody",
    "build_message",
    "coerce_message",
    "decode_message",
    "encode_message",
    "RequestState",
    "SendQueue",
    "SendRequest",
    "RateLimiter",
    "retry_after_from",
    "HttpTransport",
]
