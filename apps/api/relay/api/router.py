"""API router combining all route modules."""

from fastapi import APIRouter

from relay.api import health, shopify
from relay.api.webhooks import shopify as shopify_webhooks

api_router = APIRouter()

# Include health check routes (no prefix)
api_router.include_router(health.router)

# Shopify webhooks (no auth - verified via HMAC)
api_router.include_router(
    shopify_webhooks.router,
    prefix="/shopify",
    tags=["webhooks"],
)

# Shopify Admin API commands
api_router.include_router(
    shopify.router,
    prefix="/shopify",
    tags=["shopify"],
)
