"""Health check endpoints."""

from fastapi import APIRouter

from relay.core.deps import AppSettings
from relay.schemas.common import ConfigFlags, HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: AppSettings) -> HealthResponse:
    """
    Health check endpoint.

    Reports which settings are present, never their values.
    """
    return HealthResponse(
        status="healthy",
        version=settings.version,
        environment=settings.environment,
        api_version=settings.shopify_api_version,
        config=ConfigFlags(
            webhook_secret_set=bool(settings.shopify_webhook_secret),
            forward_url_set=bool(settings.n8n_returns_webhook_url),
            admin_token_set=bool(settings.shopify_admin_access_token),
            default_shop_domain_set=bool(settings.shopify_shop_domain),
        ),
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness check for container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}
