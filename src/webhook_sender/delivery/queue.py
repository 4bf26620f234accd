"""
Module: queue.py
Description: Ordered, rate limited send queue for one webhook.

A SendQueue owns an unbounded FIFO of SendRequests and a RateLimiter. A
single worker drains it: it waits out rate limit locks, dispatches the head
request through the transport and completes the request's future. A 429
response puts the same request back at the head of the queue, so requests
are always dispatched in submission order and at most one is in flight at a
time.

The worker is either a private thread running run(), or a series of short
drain steps submitted to a caller-supplied executor. A step returns as soon
as the queue is empty or rate limited, so several queues can share one
executor; a rate limit wait is resumed by a timer that submits the next step.

Key Components:
- RequestState: lifecycle of a queued request
- SendRequest: encoded body, parse flag, future and attempt counters
- SendQueue: enqueue/shutdown from any thread, run() or drain steps on the worker
"""

import threading
from collections import deque
from concurrent.futures import Executor, Future
from enum import Enum
from typing import Any, Callable, Deque, Optional

import httpx

from webhook_sender.delivery.codec import EncodedBody, decode_message
from webhook_sender.delivery.ratelimit import RateLimiter, is_global_limit, retry_after_from
from webhook_sender.delivery.transport import HttpTransport
from webhook_sender.exceptions import (
    ClosedError,
    HttpStatusError,
    ThrottledRetry,
    WebhookError,
)
from webhook_sender.models.response import NO_CONTENT
from webhook_sender.utils.logger import get_logger

logger = get_logger(__name__)

# Response bodies attached to errors and logs are truncated to this length
MAX_ERROR_BODY = 500


class RequestState(str, Enum):
    """Lifecycle of a SendRequest."""

    PENDING = "pending"
    DISPATCHING = "dispatching"
    THROTTLED = "throttled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.SUCCEEDED, RequestState.FAILED, RequestState.CANCELLED)


class SendRequest:
    """
    One queued message and the future its caller holds.

    State transitions: PENDING -> DISPATCHING -> (THROTTLED -> PENDING)
    until SUCCEEDED or FAILED; PENDING -> CANCELLED when the caller cancels
    the future or the queue is closed without draining before the first
    dispatch. A throttled request rejected by a close ends FAILED.

    Attributes:
        body: Encoded message body
        parse: Whether the response body should be decoded
        future: Future completed with the result or failure
        state: Current RequestState
        attempts: Number of dispatches to the transport
        throttles: Number of 429 responses received
    """

    def __init__(self, body: EncodedBody, parse: bool = True, future: Optional[Future] = None):
        self.body = body
        self.parse = parse
        self.future: Future = future if future is not None else Future()
        self.state = RequestState.PENDING
        self.attempts = 0
        self.throttles = 0

    def __repr__(self) -> str:
        return (
            f"SendRequest(state={self.state.value}, attempts={self.attempts}, "
            f"throttles={self.throttles}, parse={self.parse})"
        )

    def begin_dispatch(self) -> bool:
        """
        Move to DISPATCHING.

        Returns:
            False if the caller cancelled the future before its first dispatch
        """
        if self.attempts == 0 and not self.future.set_running_or_notify_cancel():
            self.state = RequestState.CANCELLED
            return False
        self.attempts += 1
        self.state = RequestState.DISPATCHING
        return True

    def mark_throttled(self) -> None:
        self.throttles += 1
        self.state = RequestState.THROTTLED

    def requeue(self) -> None:
        self.state = RequestState.PENDING

    def succeed(self, result: Any) -> None:
        self.state = RequestState.SUCCEEDED
        self.future.set_result(result)

    def fail(self, error: BaseException) -> None:
        self.state = RequestState.FAILED
        self.future.set_exception(error)

    def cancel(self, error: BaseException) -> None:
        """Reject a queued request that will not be dispatched again."""
        if self.future.done():
            # Cancelled by its caller while waiting in the queue
            self.state = RequestState.CANCELLED
            return

        if self.attempts:
            # Throttled and re-queued; its future has been running since the first dispatch
            self.fail(error)
            return

        self.state = RequestState.CANCELLED
        if self.future.set_running_or_notify_cancel():
            self.future.set_exception(error)


class SendQueue:
    """
    FIFO send queue with a single consumer.

    enqueue() and shutdown() may be called from any thread. Without an
    executor, run() must be executed by exactly one worker thread; with an
    executor, drain steps are submitted to it on demand and run() is unused.
    """

    def __init__(
        self,
        url: str,
        transport: HttpTransport,
        limiter: Optional[RateLimiter] = None,
        webhook_id: Optional[int] = None,
        executor: Optional[Executor] = None
    ):
        """
        Initialize the send queue.

        Args:
            url: Webhook URL without query string
            transport: Transport that performs the POST
            limiter: Rate limiter for this webhook; a new one if None
            webhook_id: Webhook id used as logging context
            executor: Runs drain steps instead of a dedicated run() thread
        """
        if not url or not isinstance(url, str):
            raise ValueError("url must be a non-empty string")

        self.url = url
        self.transport = transport
        self.limiter = limiter if limiter is not None else RateLimiter()
        self.webhook_id = webhook_id
        self.executor = executor

        # Called once, from the worker, after the last dispatch
        self.on_stopped: Optional[Callable[[], None]] = None

        self._queue: Deque[SendRequest] = deque()
        self._cond = threading.Condition()
        self._accepting = True
        self._stopping = False
        self._in_flight: Optional[SendRequest] = None
        self._stopped = threading.Event()
        self.worker_ident: Optional[int] = None

        # Executor mode: a drain step is submitted or running / a rate limit timer is pending
        self._step_scheduled = False
        self._timer: Optional[threading.Timer] = None

    @property
    def pending(self) -> int:
        """Number of requests waiting to be dispatched."""
        with self._cond:
            return len(self._queue)

    @property
    def accepting(self) -> bool:
        with self._cond:
            return self._accepting

    @property
    def stopped(self) -> bool:
        """Whether the worker has finished its last dispatch."""
        return self._stopped.is_set()

    def request_url(self, request: SendRequest) -> str:
        return f"{self.url}?wait=true" if request.parse else self.url

    def enqueue(self, request: SendRequest) -> None:
        """
        Append a request to the tail of the queue.

        Raises:
            ClosedError: If the queue has been shut down, or its executor
                no longer accepts work
        """
        with self._cond:
            if not self._accepting:
                raise ClosedError("webhook client is closed")
            self._queue.append(request)
            self._cond.notify_all()

            if self.executor is not None and self._timer is None:
                try:
                    self._schedule_step()
                except RuntimeError as e:
                    self._queue.pop()
                    raise ClosedError(f"executor rejected the send queue worker: {e}") from e

    def shutdown(self, drain: bool = True) -> int:
        """
        Stop accepting requests.

        Args:
            drain: Let queued requests finish; otherwise cancel them with
                ClosedError and stop after the in-flight dispatch

        Returns:
            Number of requests cancelled
        """
        with self._cond:
            self._accepting = False
            cancelled = []
            if not drain:
                cancelled = list(self._queue)
                self._queue.clear()
                self._stopping = True
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
            self._cond.notify_all()
            finished = self.executor is not None and self._finish_if_idle()

        self._cancel_all(cancelled)
        if finished:
            self._notify_stopped()
        return len(cancelled)

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the worker has stopped after a shutdown.

        Returns:
            True if the worker stopped within the timeout
        """
        return self._stopped.wait(timeout)

    def run(self) -> None:
        """Drain the queue until it is shut down (and, when draining, empty)."""
        self.worker_ident = threading.get_ident()
        logger.debug("Send queue worker started", webhook_id=self.webhook_id)

        try:
            while True:
                request = self._next_request()
                if request is None:
                    break
                self._dispatch_in_flight(request)
        finally:
            self._stopped.set()
            logger.debug("Send queue worker stopped", webhook_id=self.webhook_id)
            self._notify_stopped()

    def run_step(self) -> None:
        """
        Dispatch requests until the queue is empty or rate limited.

        Executor mode only; submitted by enqueue() and by the rate limit timer.
        """
        with self._cond:
            self.worker_ident = threading.get_ident()

        finished = False
        try:
            while True:
                with self._cond:
                    request = self._take_ready()
                    if request is None:
                        finished = self._finish_if_idle()
                        break
                self._dispatch_in_flight(request)
        finally:
            with self._cond:
                self.worker_ident = None

        if finished:
            self._notify_stopped()

    def _next_request(self) -> Optional[SendRequest]:
        """Block until the head request may be dispatched, or return None to stop."""
        with self._cond:
            while True:
                if self._stopping:
                    return None

                if not self._queue:
                    if not self._accepting:
                        return None
                    self._cond.wait()
                    continue

                # wait() releases the lock so callers can keep enqueueing
                delay = self.limiter.delay()
                if delay > 0:
                    self._log_wait(delay)
                    self._cond.wait(timeout=delay)
                    continue

                request = self._queue.popleft()
                self._in_flight = request
                return request

    def _take_ready(self) -> Optional[SendRequest]:
        """
        Pop the head request if it may be dispatched now.

        Otherwise ends the current step, arming the rate limit timer when
        the queue is waiting on a lock. Called with the lock held.
        """
        if self._stopping or not self._queue:
            self._step_scheduled = False
            return None

        delay = self.limiter.delay()
        if delay > 0:
            self._log_wait(delay)
            self._step_scheduled = False
            self._timer = threading.Timer(delay, self._resume)
            self._timer.daemon = True
            self._timer.start()
            return None

        request = self._queue.popleft()
        self._in_flight = request
        return request

    def _schedule_step(self) -> None:
        """Submit a drain step unless one is already pending. Called with the lock held."""
        if self._step_scheduled:
            return
        self._step_scheduled = True
        try:
            self.executor.submit(self.run_step)
        except RuntimeError:
            self._step_scheduled = False
            raise

    def _resume(self) -> None:
        """Rate limit timer callback: continue draining on the executor."""
        with self._cond:
            self._timer = None
            if self._stopping:
                return
            try:
                self._schedule_step()
                return
            except RuntimeError as e:
                logger.error(
                    "Executor rejected the send queue worker",
                    webhook_id=self.webhook_id,
                    error=str(e)
                )
                self._accepting = False
                self._stopping = True
                cancelled = list(self._queue)
                self._queue.clear()
                finished = self._finish_if_idle()

        self._cancel_all(cancelled)
        if finished:
            self._notify_stopped()

    def _finish_if_idle(self) -> bool:
        """
        Mark an executor-mode queue stopped once nothing is left to run.

        Called with the lock held. Returns True on the transition.
        """
        if self._stopped.is_set() or self._accepting:
            return False
        if self._queue and not self._stopping:
            return False
        if self._in_flight is not None or self._step_scheduled or self._timer is not None:
            return False
        self._stopped.set()
        logger.debug("Send queue worker stopped", webhook_id=self.webhook_id)
        return True

    def _notify_stopped(self) -> None:
        if self.on_stopped is not None:
            self.on_stopped()

    def _cancel_all(self, requests) -> None:
        for request in requests:
            request.cancel(ClosedError("webhook client closed before the request was sent"))

        if requests:
            logger.info(
                "Cancelled queued webhook requests",
                webhook_id=self.webhook_id,
                count=len(requests)
            )

    def _log_wait(self, delay: float) -> None:
        logger.debug(
            "Waiting for rate limit",
            webhook_id=self.webhook_id,
            delay_seconds=round(delay, 3),
            pending=len(self._queue)
        )

    def _dispatch_in_flight(self, request: SendRequest) -> None:
        try:
            self._dispatch(request)
        finally:
            with self._cond:
                self._in_flight = None
                self._cond.notify_all()

    def _dispatch(self, request: SendRequest) -> None:
        """Send one request and complete, fail or re-queue it."""
        if not request.begin_dispatch():
            logger.debug("Skipping cancelled webhook request", webhook_id=self.webhook_id)
            return

        try:
            result = self._execute(request)

        except ThrottledRetry as e:
            self.limiter.throttle(e.retry_after)
            request.mark_throttled()
            logger.warning(
                "Webhook rate limited, retrying",
                webhook_id=self.webhook_id,
                retry_after=e.retry_after,
                is_global=e.is_global,
                attempt=request.attempts,
                throttles=request.throttles
            )
            with self._cond:
                stopping = self._stopping
                if not stopping:
                    request.requeue()
                    self._queue.appendleft(request)
            if stopping:
                request.fail(ClosedError("webhook client closed before the request could be retried"))

        except WebhookError as e:
            logger.warning(
                "Webhook request failed",
                webhook_id=self.webhook_id,
                error=str(e),
                error_type=type(e).__name__,
                attempt=request.attempts
            )
            request.fail(e)

        except Exception as e:
            logger.error(
                "Unexpected error delivering webhook request",
                webhook_id=self.webhook_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
            request.fail(e)

        else:
            request.succeed(result)

    def _execute(self, request: SendRequest) -> Any:
        """
        Perform one attempt and interpret the response.

        Raises:
            TransportError: If the request never reached the endpoint
            ThrottledRetry: On a 429 response
            HttpStatusError: On any other non-2xx response
            ParseError: If a requested response body cannot be decoded
        """
        url = self.request_url(request)
        logger.debug(
            "Dispatching webhook request",
            webhook_id=self.webhook_id,
            attempt=request.attempts,
            multipart=request.body.is_multipart
        )

        response: httpx.Response = self.transport.post(url, request.body)
        self.limiter.update(response)

        if response.status_code == 429:
            raise ThrottledRetry(
                retry_after_from(response),
                is_global=is_global_limit(response),
                body=response.text[:MAX_ERROR_BODY]
            )

        if not response.is_success:
            raise HttpStatusError(response.status_code, response.text[:MAX_ERROR_BODY])

        logger.debug(
            "Webhook request delivered",
            webhook_id=self.webhook_id,
            status_code=response.status_code
        )

        if request.parse and response.content:
            return decode_message(response.content)
        return NO_CONTENT
