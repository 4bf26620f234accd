"""
Module: ratelimit.py
Description: Per-webhook rate limit bookkeeping.

Tracks when the next request to a webhook may be dispatched, based on the
rate limit headers of every response and the retry delay of 429 responses.
All times are on a monotonic clock; server delays are applied as relative
durations so wall clock skew does not matter.

The limiter has no lock: it is owned by a single send queue worker and is
only touched from that worker's thread.
"""

import json
import time
from typing import Callable, Optional

import httpx

from webhook_sender.config.settings import settings
from webhook_sender.utils.logger import get_logger

logger = get_logger(__name__)

HEADER_REMAINING = "X-RateLimit-Remaining"
HEADER_RESET = "X-RateLimit-Reset"
HEADER_RESET_AFTER = "X-RateLimit-Reset-After"
HEADER_RETRY_AFTER = "Retry-After"


def _header_float(response: httpx.Response, name: str) -> Optional[float]:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring malformed rate limit header", header=name, value=value)
        return None


def retry_after_from(response: httpx.Response, default: Optional[float] = None) -> float:
    """
    Extract the retry delay in seconds from a 429 response.

    The JSON body's retry_after wins, then the Retry-After header, then
    X-RateLimit-Reset-After, then the configured default.
    """
    try:
        data = json.loads(response.content or b"null")
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("retry_after"), (int, float)):
        return max(0.0, float(data["retry_after"]))

    for header in (HEADER_RETRY_AFTER, HEADER_RESET_AFTER):
        value = _header_float(response, header)
        if value is not None:
            return max(0.0, value)

    return settings.default_retry_after if default is None else default


def is_global_limit(response: httpx.Response) -> bool:
    """Whether a 429 response reports the global rather than the per-route limit."""
    if response.headers.get("X-RateLimit-Global", "").lower() == "true":
        return True
    try:
        data = json.loads(response.content or b"null")
    except ValueError:
        return False
    return isinstance(data, dict) and bool(data.get("global"))


class RateLimiter:
    """
    Rate limit state for one webhook.

    Attributes:
        remaining: Requests left in the current bucket (None until known)
        reset_at: Monotonic time at which the bucket resets
        locked_until: Monotonic time before which no request may be sent
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the rate limiter.

        Args:
            clock: Monotonic time source in seconds
        """
        self._clock = clock
        self.remaining: Optional[int] = None
        self.reset_at = 0.0
        self.locked_until = 0.0

    def delay(self) -> float:
        """
        Seconds to wait before the next dispatch; 0.0 means go now.

        A throttling lock whose resume time has passed is cleared.
        """
        now = self._clock()

        if self.locked_until:
            if now < self.locked_until:
                return self.locked_until - now
            self.locked_until = 0.0

        if self.remaining is not None and self.remaining <= 0:
            if now < self.reset_at:
                return self.reset_at - now
            # Bucket has reset; the next response will report the real count
            self.remaining = None

        return 0.0

    def update(self, response: httpx.Response) -> None:
        """Record the bucket state reported by a response's headers."""
        now = self._clock()

        remaining = _header_float(response, HEADER_REMAINING)
        if remaining is not None:
            self.remaining = int(remaining)

        reset_after = _header_float(response, HEADER_RESET_AFTER)
        if reset_after is not None:
            self.reset_at = now + max(0.0, reset_after)
        else:
            reset = _header_float(response, HEADER_RESET)
            if reset is not None:
                # Absolute epoch seconds; convert to a relative wait
                self.reset_at = now + max(0.0, reset - time.time())

    def throttle(self, retry_after: float) -> float:
        """
        Lock the limiter after a 429 response.

        The resume time never moves backward while a lock is active.

        Args:
            retry_after: Server-advertised delay in seconds

        Returns:
            Monotonic time at which dispatching may resume
        """
        resume_at = self._clock() + max(0.0, retry_after)
        self.locked_until = max(self.locked_until, resume_at)
        # The 429 delay replaces any local estimate of when the bucket resets
        self.remaining = 0
        self.reset_at = self.locked_until

        logger.debug(
            "Rate limit lock set",
            retry_after=retry_after,
            locked_for=self.locked_until - self._clock()
        )
        return self.locked_until
