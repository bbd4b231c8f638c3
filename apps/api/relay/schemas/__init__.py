"""Pydantic schemas for request/response validation."""

from relay.schemas.common import ErrorResponse, HealthResponse
from relay.schemas.shopify import DryRunResponse, RelayEnvelope, WebhookMetadata, WouldCall

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "DryRunResponse",
    "RelayEnvelope",
    "WebhookMetadata",
    "WouldCall",
]
