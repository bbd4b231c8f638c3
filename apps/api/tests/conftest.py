"""Pytest configuration and fixtures for the relay test suite.

Provides:
- Fixture settings (no environment or .env leakage)
- An application built from those settings and an ASGI test client
- Shopify webhook signing helpers
- Mock Shopify Admin API and mock n8n transports that record every request
"""

import base64
import hashlib
import hmac
import json
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from relay.core.config import Settings
from relay.core.deps import get_admin_transport, get_forwarder
from relay.main import create_app
from relay.services.forwarder import WebhookForwarder

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SHOPIFY_TEST_WEBHOOK_SECRET = "test-shopify-webhook-secret"
SHOPIFY_TEST_SHOP = "test-store.myshopify.com"
SHOPIFY_TEST_ACCESS_TOKEN = "shpat_env_fallback_token"
SHOPIFY_TEST_API_VERSION = "2026-01"
N8N_TEST_URL = "https://n8n.example.com/webhook/shopify-returns"


# ---------------------------------------------------------------------------
# Settings & app
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Fully specified settings so nothing is read from the host environment."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        environment="development",
        debug=False,
        shopify_webhook_secret=SHOPIFY_TEST_WEBHOOK_SECRET,
        n8n_returns_webhook_url=N8N_TEST_URL,
        shopify_admin_access_token=SHOPIFY_TEST_ACCESS_TOKEN,
        shopify_shop_domain=SHOPIFY_TEST_SHOP,
        shopify_api_version=SHOPIFY_TEST_API_VERSION,
        sentry_dsn="",
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client talking to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Recording transports
# ---------------------------------------------------------------------------


@dataclass
class RecordingTransport:
    """A MockTransport whose response can be changed per test and that records requests.

    ``handler`` may be replaced with any sync or async callable taking an
    ``httpx.Request``; by default it answers ``status_code`` with ``payload``.
    """

    status_code: int = 200
    payload: Any = field(default_factory=dict)
    text: str | None = None
    requests: list[httpx.Request] = field(default_factory=list)
    handler: Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]] | None = None

    def _default(self, request: httpx.Request) -> httpx.Response:
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)

    def _handle(self, request: httpx.Request) -> httpx.Response | Awaitable[httpx.Response]:
        self.requests.append(request)
        return (self.handler or self._default)(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    @property
    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def shopify_api(app: FastAPI) -> RecordingTransport:
    """Mock Shopify Admin API wired into the app via dependency override."""
    recorder = RecordingTransport(payload={"ok_from_shopify": True})
    transport = recorder.transport
    app.dependency_overrides[get_admin_transport] = lambda: transport
    return recorder


@pytest.fixture
def n8n(app: FastAPI, test_settings: Settings) -> tuple[RecordingTransport, WebhookForwarder]:
    """Mock n8n endpoint plus the forwarder that posts to it."""
    recorder = RecordingTransport(payload={"received": True})
    forwarder = WebhookForwarder(
        test_settings.n8n_returns_webhook_url,
        timeout=test_settings.forward_timeout_seconds,
        transport=recorder.transport,
    )
    app.dependency_overrides[get_forwarder] = lambda: forwarder
    return recorder, forwarder


# ---------------------------------------------------------------------------
# Shopify webhook signing
# ---------------------------------------------------------------------------


@pytest.fixture
def shopify_webhook_signature() -> Callable[[bytes], str]:
    """Generate a valid Shopify webhook HMAC signature for a given body.

    Usage:
        signature = shopify_webhook_signature(b'{"id": 123}')
        headers = {"X-Shopify-Hmac-Sha256": signature, ...}
    """

    def _sign(body: bytes) -> str:
        return base64.b64encode(
            hmac.new(
                SHOPIFY_TEST_WEBHOOK_SECRET.encode(),
                body,
                hashlib.sha256,
            ).digest()
        ).decode()

    return _sign


@pytest.fixture
def shopify_webhook_headers(
    shopify_webhook_signature: Callable[[bytes], str],
) -> Callable[..., dict[str, str]]:
    """Generate complete Shopify webhook headers for a given body.

    Usage:
        body = b'{"id": 123}'
        headers = shopify_webhook_headers(body, topic="refunds/create")
        response = await client.post("/shopify/webhooks", content=body, headers=headers)
    """

    def _headers(
        body: bytes,
        *,
        topic: str = "refunds/create",
        shop: str = SHOPIFY_TEST_SHOP,
        webhook_id: str = "b54557e4-bdd9-4b37-8a5f-bf7d70bcd043",
        test: bool = False,
    ) -> dict[str, str]:
        return {
            "X-Shopify-Hmac-Sha256": shopify_webhook_signature(body),
            "X-Shopify-Topic": topic,
            "X-Shopify-Webhook-Id": webhook_id,
            "X-Shopify-Shop-Domain": shop,
            "X-Shopify-Triggered-At": "2026-01-15T10:00:00.000Z",
            "X-Shopify-Test": "true" if test else "false",
            "Content-Type": "application/json",
        }

    return _headers


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_refund() -> dict[str, Any]:
    return {
        "currency": "USD",
        "notify": False,
        "note": "Damaged in transit",
        "shipping": {"full_refund": True},
        "refund_line_items": [
            {"line_item_id": 518995019, "quantity": 1, "restock_type": "return", "location_id": 487838322},
        ],
    }


@pytest.fixture
def sample_fulfillment() -> dict[str, Any]:
    return {
        "message": "Shipped via relay",
        "notify_customer": False,
        "tracking_info": {"number": "1Z001985YW99744790", "company": "UPS"},
        "line_items_by_fulfillment_order": [
            {"fulfillment_order_id": 1046000818, "fulfillment_order_line_items": [{"id": 1, "quantity": 1}]},
        ],
    }
