"""Pydantic schemas for Shopify webhooks and Admin API commands."""

from typing import Any

from pydantic import Field

from relay.schemas.common import BaseSchema


class WebhookMetadata(BaseSchema):
    """Event metadata Shopify sends as X-Shopify-* headers."""

    topic: str | None = None
    webhook_id: str | None = None
    shop_domain: str | None = None
    triggered_at: str | None = None
    test: bool = False
    api_version: str | None = None
    event_id: str | None = None


class RelayEnvelope(BaseSchema):
    """Payload forwarded to the downstream automation endpoint."""

    shopify: WebhookMetadata
    body: Any = None


class WebhookAck(BaseSchema):
    ok: bool = True


class WouldCall(BaseSchema):
    """The exact Admin API request a command resolves to."""

    method: str
    url: str
    headers: dict[str, str]
    body: dict[str, Any] | None = None


class DryRunResponse(BaseSchema):
    ok: bool = True
    dry_run: bool = Field(default=True, serialization_alias="dryRun")
    would_call: WouldCall = Field(serialization_alias="wouldCall")
