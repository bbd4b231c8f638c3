"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response

from relay.api.router import api_router
from relay.core.config import Settings, get_settings
from relay.core.exceptions import register_exception_handlers
from relay.core.logging_config import (
    generate_request_id,
    request_id_var,
    setup_logging,
)
from relay.services.forwarder import WebhookForwarder

logger = logging.getLogger(__name__)

# Upper bound on how long shutdown waits for in-flight webhook forwards
SHUTDOWN_DRAIN_SECONDS = 15.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    setup_logging(debug=settings.debug)
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    logger.info("Environment: %s", settings.environment)
    logger.info("Shopify API version: %s", settings.shopify_api_version)
    if not settings.shopify_webhook_secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET is not set; every webhook will be rejected")
    if not settings.n8n_returns_webhook_url:
        logger.warning("N8N_RETURNS_WEBHOOK_URL is not set; verified webhooks will not be forwarded")
    yield
    logger.info("Shutting down...")
    await app.state.forwarder.drain(timeout=SHUTDOWN_DRAIN_SECONDS)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    # Sentry/GlitchTip init (before middleware)
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            send_default_pii=False,
        )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.forwarder = WebhookForwarder(
        settings.n8n_returns_webhook_url,
        timeout=settings.forward_timeout_seconds,
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        rid = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(rid)
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    app.include_router(api_router)
    register_exception_handlers(app)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with service information."""
        return {
            "name": settings.project_name,
            "version": settings.version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
