"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SHOPIFY_API_VERSION = "2026-01"


class Settings(BaseSettings):
    """Process-wide configuration loaded once from environment variables.

    Instances are immutable. The application factory stores one on
    ``app.state`` and routes receive it through ``get_app_settings``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Service
    project_name: str = "Shopify Webhook Relay"
    version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3000

    # Shopify webhooks
    shopify_webhook_secret: str = ""

    # Downstream automation (n8n)
    n8n_returns_webhook_url: str = ""
    forward_timeout_seconds: float = 10.0

    # Shopify Admin API
    shopify_admin_access_token: str = ""
    shopify_shop_domain: str = ""
    shopify_api_version: str = DEFAULT_SHOPIFY_API_VERSION

    # Error reporting
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
