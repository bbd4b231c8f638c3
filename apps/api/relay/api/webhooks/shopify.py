"""Shopify webhook receiver: verify, acknowledge, then forward to n8n."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request

from relay.core.deps import AppSettings, Forwarder
from relay.core.exceptions import WebhookVerificationFailed
from relay.integrations.shopify.webhooks import (
    HMAC_HEADER,
    build_relay_envelope,
    extract_metadata,
    parse_body,
    verify_webhook,
)
from relay.schemas.shopify import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: AppSettings,
    forwarder: Forwarder,
) -> WebhookAck:
    """Acknowledge a signed Shopify webhook and relay it downstream.

    The forward is scheduled to start after the 200 has been sent and is not
    awaited by this request, so a slow or failing n8n never makes Shopify
    see the delivery as failed.
    """
    body = await request.body()
    if not verify_webhook(body, request.headers.get(HMAC_HEADER), settings.shopify_webhook_secret):
        logger.warning(
            "Rejected webhook with invalid HMAC from %s",
            request.headers.get("X-Shopify-Shop-Domain", "unknown"),
        )
        raise WebhookVerificationFailed("Invalid HMAC")

    metadata = extract_metadata(request.headers)
    envelope = build_relay_envelope(metadata, parse_body(body))
    logger.info("Accepted webhook %s (%s) from %s", metadata.webhook_id, metadata.topic, metadata.shop_domain)

    background_tasks.add_task(forwarder.schedule, envelope)
    return WebhookAck()
