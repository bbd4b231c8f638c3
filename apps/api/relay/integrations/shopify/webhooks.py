"""Shopify webhook HMAC verification and relay envelope construction."""

import base64
import hashlib
import hmac
import json
from collections.abc import Mapping
from typing import Any

from relay.schemas.shopify import RelayEnvelope, WebhookMetadata

HMAC_HEADER = "X-Shopify-Hmac-Sha256"


def compute_signature(data: bytes, secret: str) -> str:
    """Compute the base64-encoded HMAC-SHA256 of ``data``."""
    return base64.b64encode(
        hmac.new(
            secret.encode("utf-8"),
            data,
            hashlib.sha256,
        ).digest()
    ).decode("utf-8")


def verify_webhook(data: bytes | None, hmac_header: str | None, secret: str | None) -> bool:
    """Verify a Shopify webhook's HMAC-SHA256 signature.

    The digest is computed over the exact raw body bytes; a re-serialized
    JSON document would not reproduce Shopify's digest.

    Args:
        data: The raw request body bytes, or None if it was not captured.
        hmac_header: The X-Shopify-Hmac-Sha256 header value.
        secret: The webhook shared secret. An empty secret never verifies.

    Returns:
        True if the signature is valid.
    """
    if data is None or not hmac_header or not secret:
        return False

    try:
        expected = compute_signature(data, secret)
        return hmac.compare_digest(expected.encode("utf-8"), hmac_header.strip().encode("utf-8"))
    except (UnicodeEncodeError, TypeError, ValueError):
        return False


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return value


def extract_metadata(headers: Mapping[str, str]) -> WebhookMetadata:
    """Pull the X-Shopify-* event metadata out of request headers.

    Starlette ``Headers`` are case-insensitive already; plain dicts are
    lowercased first so both behave the same.
    """
    if isinstance(headers, dict):
        headers = {k.lower(): v for k, v in headers.items()}

    return WebhookMetadata(
        topic=_header(headers, "x-shopify-topic"),
        webhook_id=_header(headers, "x-shopify-webhook-id"),
        shop_domain=_header(headers, "x-shopify-shop-domain"),
        triggered_at=_header(headers, "x-shopify-triggered-at"),
        test=_header(headers, "x-shopify-test") == "true",
        api_version=_header(headers, "x-shopify-api-version"),
        event_id=_header(headers, "x-shopify-event-id"),
    )


def parse_body(data: bytes) -> Any:
    """Parse a verified webhook body, keeping undecodable text as ``{"raw": ...}``."""
    if not data:
        return {}
    try:
        return json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {"raw": data.decode("utf-8", errors="replace")}


def build_relay_envelope(metadata: WebhookMetadata, body: Any) -> RelayEnvelope:
    """Shape a verified webhook for the downstream consumer."""
    return RelayEnvelope(shopify=metadata, body=body)
