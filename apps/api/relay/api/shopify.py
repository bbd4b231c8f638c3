"""Shopify Admin API command endpoints (refunds and fulfillments)."""

from collections.abc import Callable, Mapping
from typing import Any

import httpx
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from relay.core.config import Settings
from relay.core.deps import AdminTransport, AppSettings, JSONBody
from relay.integrations.shopify.client import AdminCommand
from relay.integrations.shopify.credentials import resolve_admin_credentials
from relay.schemas.shopify import DryRunResponse
from relay.services.commands import (
    AdminCommandService,
    build_fulfillment_command,
    build_refund_command,
    is_dry_run,
)

router = APIRouter()


async def _run(
    request: Request,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None,
    body: dict[str, Any],
    build: Callable[[Mapping[str, Any]], AdminCommand],
) -> Response:
    # Validation first: a malformed request is rejected before credentials are looked at.
    command = build(body)
    credentials = resolve_admin_credentials(
        settings,
        headers=request.headers,
        query=request.query_params,
        body=body,
    )
    service = AdminCommandService(credentials, transport=transport)
    result = await service.execute(command, dry_run=is_dry_run(request.query_params, body))

    if isinstance(result, DryRunResponse):
        return JSONResponse(content=result.model_dump(mode="json", by_alias=True))
    if result.status_code == status.HTTP_204_NO_CONTENT:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.payload)


@router.post("/refund")
async def create_refund(
    request: Request,
    settings: AppSettings,
    transport: AdminTransport,
    body: JSONBody,
) -> Response:
    """Create a refund on an order.

    Body: ``{order_id | orderId, refund: {...}, shopDomain?, apiVersion?, dryRun?}``.
    ``?dryRun=true`` returns the request that would be sent instead of sending it.
    """
    return await _run(request, settings, transport, body, lambda b: build_refund_command(b, calculate=False))


@router.post("/refund/calculate")
async def calculate_refund(
    request: Request,
    settings: AppSettings,
    transport: AdminTransport,
    body: JSONBody,
) -> Response:
    """Ask Shopify to calculate a refund without creating it."""
    return await _run(request, settings, transport, body, lambda b: build_refund_command(b, calculate=True))


@router.post("/fulfillments")
@router.post("/fulfillments/create")
async def create_fulfillment(
    request: Request,
    settings: AppSettings,
    transport: AdminTransport,
    body: JSONBody,
) -> Response:
    """Create a fulfillment for one or more fulfillment orders.

    ``fulfillment.line_items_by_fulfillment_order[0].fulfillment_order_id``
    must be a JSON integer.
    """
    return await _run(request, settings, transport, body, build_fulfillment_command)
