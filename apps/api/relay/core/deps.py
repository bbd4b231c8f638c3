"""Dependency injection for FastAPI routes."""

from typing import Annotated, Any

import httpx
from fastapi import Depends, Request

from relay.core.config import Settings
from relay.core.exceptions import InvalidJSONBody
from relay.services.forwarder import WebhookForwarder


def get_app_settings(request: Request) -> Settings:
    """The immutable settings the application was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_forwarder(request: Request) -> WebhookForwarder:
    forwarder: WebhookForwarder = request.app.state.forwarder
    return forwarder


def get_admin_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for Admin API calls. ``None`` means httpx's default network transport."""
    return None


async def get_json_body(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object; an empty body is ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError as e:
        raise InvalidJSONBody(f"Request body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise InvalidJSONBody("Request body must be a JSON object")
    return body


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Forwarder = Annotated[WebhookForwarder, Depends(get_forwarder)]
AdminTransport = Annotated[httpx.AsyncBaseTransport | None, Depends(get_admin_transport)]
JSONBody = Annotated[dict[str, Any], Depends(get_json_body)]
