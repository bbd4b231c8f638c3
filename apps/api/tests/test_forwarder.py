"""Tests for the best-effort n8n forwarder."""

import asyncio
import logging

import httpx
import pytest

from relay.schemas.shopify import RelayEnvelope, WebhookMetadata
from relay.services.forwarder import WebhookForwarder
from tests.conftest import N8N_TEST_URL


def _envelope() -> RelayEnvelope:
    return RelayEnvelope(
        shopify=WebhookMetadata(topic="refunds/create", webhook_id="wh-1", shop_domain="s.myshopify.com"),
        body={"id": 1},
    )


class TestForward:
    async def test_posts_envelope_json(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        forwarder = WebhookForwarder(N8N_TEST_URL, transport=httpx.MockTransport(handler))
        await forwarder.forward(_envelope())

        assert len(seen) == 1
        assert seen[0].headers["Content-Type"] == "application/json"
        assert b'"webhook_id":"wh-1"' in seen[0].content

    async def test_transport_error_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        forwarder = WebhookForwarder(N8N_TEST_URL, transport=httpx.MockTransport(handler))
        await forwarder.forward(_envelope())

        assert "Failed to forward webhook wh-1" in caplog.text

    async def test_non_2xx_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        forwarder = WebhookForwarder(
            N8N_TEST_URL,
            transport=httpx.MockTransport(lambda _r: httpx.Response(404, text="no workflow")),
        )
        await forwarder.forward(_envelope())

        assert "n8n rejected webhook wh-1" in caplog.text

    async def test_unexpected_error_is_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        def handler(_request: httpx.Request) -> httpx.Response:
            raise RuntimeError("boom")

        forwarder = WebhookForwarder(N8N_TEST_URL, transport=httpx.MockTransport(handler))
        await forwarder.forward(_envelope())

        assert "Unexpected error forwarding webhook wh-1" in caplog.text

    async def test_missing_url(self, caplog: pytest.LogCaptureFixture) -> None:
        forwarder = WebhookForwarder("")

        with caplog.at_level(logging.ERROR):
            await forwarder.forward(_envelope())

        assert "N8N_RETURNS_WEBHOOK_URL is not set" in caplog.text

    async def test_success_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        forwarder = WebhookForwarder(
            N8N_TEST_URL,
            transport=httpx.MockTransport(lambda _r: httpx.Response(200)),
        )

        with caplog.at_level(logging.INFO):
            await forwarder.forward(_envelope())

        assert "Forwarded webhook wh-1" in caplog.text


class TestDispatch:
    async def test_dispatch_returns_before_forward_completes(self) -> None:
        release = asyncio.Event()

        async def handler(_request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200)

        forwarder = WebhookForwarder(N8N_TEST_URL, transport=httpx.MockTransport(handler))
        task = forwarder.dispatch(_envelope())

        await asyncio.sleep(0)
        assert not task.done()
        assert forwarder.pending == 1

        release.set()
        await task
        assert forwarder.pending == 0

    async def test_drain_cancels_after_timeout(self, caplog: pytest.LogCaptureFixture) -> None:
        async def handler(_request: httpx.Request) -> httpx.Response:
            await asyncio.Event().wait()
            return httpx.Response(200)

        forwarder = WebhookForwarder(N8N_TEST_URL, transport=httpx.MockTransport(handler))
        task = forwarder.dispatch(_envelope())

        await forwarder.drain(timeout=0.05)
        await asyncio.gather(task, return_exceptions=True)

        assert task.cancelled()
        assert "still running at shutdown" in caplog.text

    async def test_drain_with_nothing_pending(self) -> None:
        forwarder = WebhookForwarder(N8N_TEST_URL)
        await forwarder.drain()
        assert forwarder.pending == 0
