"""Common Pydantic schemas used across the API."""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class ConfigFlags(BaseSchema):
    """Which pieces of process configuration are present (never their values)."""

    webhook_secret_set: bool
    forward_url_set: bool
    admin_token_set: bool
    default_shop_domain_set: bool


class HealthResponse(BaseSchema):
    """Health check response schema."""

    ok: bool = True
    status: str
    version: str
    environment: str
    api_version: str
    config: ConfigFlags


class ErrorResponse(BaseSchema):
    """Error response schema."""

    error: str
    detail: str | None = None
    field: str | None = None
