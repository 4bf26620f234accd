"""
Module: conftest.py
Description: Shared pytest fixtures for webhook client tests.

Provides a scripted HTTP endpoint (served through httpx.MockTransport),
client and send queue factories with automatic teardown, and sample
response payloads.
"""

import threading
import time
from collections import deque
from typing import Any, Dict, List, Optional

import httpx
import pytest

from webhook_sender.builder import WebhookClientBuilder
from webhook_sender.delivery.queue import SendQueue
from webhook_sender.delivery.ratelimit import RateLimiter
from webhook_sender.delivery.transport import HttpTransport

WEBHOOK_ID = 1234
WEBHOOK_TOKEN = "abcdefToken_-123"


class ScriptedEndpoint:
    """
    Fake webhook endpoint for httpx.MockTransport.

    Replies with the scripted responses in order (exceptions are raised,
    callables are invoked with the request) and with 204 once the script
    is exhausted. Records every request, its arrival time and the peak
    number of concurrent requests.
    """

    def __init__(self, *responses: Any, delay: float = 0.0):
        self._lock = threading.Lock()
        self.script = deque(responses)
        self.delay = delay
        self.gate: Optional[threading.Event] = None
        self.requests: List[httpx.Request] = []
        self.times: List[float] = []
        self.active = 0
        self.max_active = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.requests.append(request)
            self.times.append(time.monotonic())
        try:
            if self.gate is not None:
                self.gate.wait(5)
            if self.delay:
                time.sleep(self.delay)
            with self._lock:
                item = self.script.popleft() if self.script else None
            if item is None:
                return httpx.Response(204)
            if isinstance(item, Exception):
                raise item
            if callable(item):
                return item(request)
            return item
        finally:
            with self._lock:
                self.active -= 1

    def add(self, *responses: Any) -> None:
        with self._lock:
            self.script.extend(responses)

    def block(self) -> threading.Event:
        """Hold every request until the returned event is set."""
        self.gate = threading.Event()
        return self.gate

    def wait_for_requests(self, count: int, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.requests) >= count:
                    return True
            time.sleep(0.005)
        return False

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def message_json(content: str = "Hello World", message_id: int = 1) -> Dict[str, Any]:
    """Message object as echoed by the endpoint with ?wait=true."""
    return {
        "id": str(message_id),
        "type": 0,
        "channel_id": "555",
        "webhook_id": str(WEBHOOK_ID),
        "author": {
            "id": str(WEBHOOK_ID),
            "username": "Captain Hook",
            "discriminator": "0000",
            "avatar": None,
            "bot": True
        },
        "content": content,
        "tts": False,
        "mention_everyone": False,
        "mentions": [],
        "mention_roles": [],
        "embeds": [],
        "attachments": [],
        "timestamp": "2020-11-05T18:00:00.000000+00:00"
    }


def throttled(retry_after: float, is_global: bool = False) -> httpx.Response:
    """429 response with a JSON retry_after in seconds."""
    return httpx.Response(
        429,
        json={"message": "You are being rate limited.", "retry_after": retry_after, "global": is_global}
    )


@pytest.fixture
def endpoint():
    """Provide a fresh scripted endpoint."""
    endpoint = ScriptedEndpoint()
    yield endpoint
    # Never leave a worker stuck on the gate
    if endpoint.gate is not None:
        endpoint.gate.set()


@pytest.fixture
def http_client(endpoint):
    """Provide an httpx client that talks to the scripted endpoint."""
    client = endpoint.http_client()
    yield client
    client.close()


@pytest.fixture
def make_client(http_client):
    """
    Provide a factory for WebhookClients bound to the scripted endpoint.

    Every client created is closed (without draining) at teardown.
    """
    clients = []

    def factory(wait: bool = False, webhook_id: int = WEBHOOK_ID, client: Optional[httpx.Client] = None, **options):
        builder = (
            WebhookClientBuilder(webhook_id, WEBHOOK_TOKEN)
            .set_http_client(client or http_client)
            .set_wait(wait)
            .set_daemon(True)
        )
        for name, value in options.items():
            getattr(builder, f"set_{name}")(value)
        webhook = builder.build()
        clients.append(webhook)
        return webhook

    yield factory

    for webhook in clients:
        webhook.close()


@pytest.fixture
def make_queue(http_client):
    """
    Provide a factory for SendQueues with a running worker thread.

    Queues are shut down without draining and their workers joined at teardown.
    """
    running = []

    def factory(limiter: Optional[RateLimiter] = None, start: bool = True) -> SendQueue:
        queue = SendQueue(
            f"https://discord.com/api/v8/webhooks/{WEBHOOK_ID}/{WEBHOOK_TOKEN}",
            HttpTransport(http_client),
            limiter,
            webhook_id=WEBHOOK_ID
        )
        thread = threading.Thread(target=queue.run, daemon=True)
        queue.worker_thread = thread
        running.append((queue, thread))
        if start:
            thread.start()
        return queue

    yield factory

    for queue, thread in running:
        queue.shutdown(drain=False)
        if thread.is_alive():
            thread.join(5)


@pytest.fixture
def sample_message_json():
    """Provide a typical echoed message body."""
    return message_json()


@pytest.fixture
def echoed_message():
    """Provide a factory for echoed message bodies."""
    return message_json


@pytest.fixture
def rate_limited():
    """Provide a factory for 429 responses."""
    return throttled


@pytest.fixture
def make_endpoint():
    """Provide a factory for additional scripted endpoints."""
    return ScriptedEndpoint
