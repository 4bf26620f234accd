"""
Module: test_send_flow.py
Description: Integration tests for end-to-end webhook delivery.

Drives a fully built client (private worker thread, private httpx client)
against pytest-httpx mocked responses, covering the wire contract and
rate limit handling across several requests.
"""

import json
import time

import httpx
import pytest

from webhook_sender import (
    NO_CONTENT,
    HttpStatusError,
    ReadonlyMessage,
    TransportError,
    WebhookClientBuilder,
    WebhookEmbed,
)


@pytest.fixture
def client():
    """Provide a default client that waits for messages."""
    client = WebhookClientBuilder(1234, "token").set_daemon(True).build()
    yield client
    client.close()


class TestSendFlow:
    """End-to-end delivery scenarios."""

    def test_wait_url_and_parsed_result(self, client, httpx_mock, sample_message_json):
        httpx_mock.add_response(
            method="POST",
            url=f"{client.url}?wait=true",
            json=sample_message_json,
            headers={"X-RateLimit-Remaining": "4", "X-RateLimit-Reset-After": "1.5"}
        )

        result = client.send("Hello World").result(timeout=5)

        assert isinstance(result, ReadonlyMessage)
        assert result.content == "Hello World"
        request = httpx_mock.get_requests()[0]
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"].startswith("webhook-sender")

    def test_rate_limited_then_delivered(self, client, httpx_mock, echoed_message):
        """A 429 is honored and the same message is delivered afterwards."""
        httpx_mock.add_response(
            url=f"{client.url}?wait=true",
            status_code=429,
            json={"message": "You are being rate limited.", "retry_after": 0.25, "global": False}
        )
        httpx_mock.add_response(
            url=f"{client.url}?wait=true",
            json=echoed_message("embed only", message_id=9)
        )

        started = time.monotonic()
        result = client.send(WebhookEmbed(title="deploy finished")).result(timeout=5)

        assert time.monotonic() - started >= 0.25
        assert result.id == 9
        first, second = httpx_mock.get_requests()
        assert first.content == second.content
        assert json.loads(second.content)["embeds"] == [{"title": "deploy finished"}]

    def test_terminal_errors_reach_the_future(self, client, httpx_mock):
        httpx_mock.add_response(status_code=404, json={"message": "Unknown Webhook", "code": 10015})
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        not_found = client.send("first")
        timed_out = client.send("second")

        with pytest.raises(HttpStatusError) as exc_info:
            not_found.result(timeout=5)
        assert exc_info.value.status_code == 404
        with pytest.raises(TransportError, match="timed out"):
            timed_out.result(timeout=5)

    def test_no_wait_client(self, httpx_mock):
        client = WebhookClientBuilder(1234, "token").set_wait(False).set_daemon(True).build()
        httpx_mock.add_response(url=client.url, status_code=204)

        with client:
            future = client.send("fire and forget")

        assert future.result(timeout=1) is NO_CONTENT
