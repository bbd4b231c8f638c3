"""Validation and execution of Admin API commands (refunds, fulfillments).

Numeric strictness differs per endpoint on purpose:

- Refunds accept ``order_id``/``orderId`` as a number or a string,
  because the id only ever lands in the URL path.
- Fulfillments require ``fulfillment_order_id`` to be a JSON number, because
  it is sent in the request body and Shopify rejects string ids there.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from relay.core.exceptions import RequestValidationFailed
from relay.integrations.shopify.client import (
    AdminCommand,
    ShopifyAdminClient,
    UpstreamResult,
    fulfillment_command,
    refund_command,
)
from relay.integrations.shopify.credentials import AdminCredentials
from relay.schemas.shopify import DryRunResponse

logger = logging.getLogger(__name__)

FULFILLMENT_ORDER_ID_FIELD = "fulfillment.line_items_by_fulfillment_order[0].fulfillment_order_id"


def _json_type(value: Any) -> str:
    """Name a Python value by its JSON type, for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_dry_run(query: Mapping[str, str], body: Mapping[str, Any]) -> bool:
    """``?dryRun=true`` (any case) or a body ``dryRun`` of ``true``/``"true"``."""
    if query.get("dryRun", "").strip().lower() == "true":
        return True
    flag = body.get("dryRun")
    if isinstance(flag, bool):
        return flag
    return isinstance(flag, str) and flag.strip().lower() == "true"


def parse_order_id(body: Mapping[str, Any]) -> str:
    """Accept ``order_id`` or ``orderId`` as a positive number or non-blank string."""
    order_id = body.get("order_id")
    if order_id is None:
        order_id = body.get("orderId")

    if isinstance(order_id, bool) or not isinstance(order_id, int | str):
        raise RequestValidationFailed(
            "Missing order_id (number/string) in request body. Provide order_id or orderId.",
            field="order_id",
        )
    if isinstance(order_id, int) and order_id <= 0:
        raise RequestValidationFailed(
            "Missing order_id (number/string) in request body. Provide order_id or orderId.",
            field="order_id",
        )
    order_id = str(order_id).strip()
    if not order_id:
        raise RequestValidationFailed(
            "Missing order_id (number/string) in request body. Provide order_id or orderId.",
            field="order_id",
        )
    return order_id


def parse_refund(body: Mapping[str, Any]) -> dict[str, Any]:
    refund = body.get("refund")
    if not isinstance(refund, dict):
        raise RequestValidationFailed(
            "Missing refund object in request body. Provide { order_id, refund: { ... } }",
            field="refund",
        )
    return refund


def parse_fulfillment(body: Mapping[str, Any]) -> dict[str, Any]:
    """Check the fulfillment payload down to its first fulfillment_order_id."""
    fulfillment = body.get("fulfillment")
    if not isinstance(fulfillment, dict):
        raise RequestValidationFailed(
            "Missing fulfillment object in request body. Provide { fulfillment: { ... } }",
            field="fulfillment",
        )

    line_items = fulfillment.get("line_items_by_fulfillment_order")
    if not isinstance(line_items, list) or not line_items or not isinstance(line_items[0], dict):
        raise RequestValidationFailed(
            "fulfillment.line_items_by_fulfillment_order must be a non-empty array of objects",
            field="fulfillment.line_items_by_fulfillment_order",
        )

    fulfillment_order_id = line_items[0].get("fulfillment_order_id")
    if isinstance(fulfillment_order_id, bool) or not isinstance(fulfillment_order_id, int):
        raise RequestValidationFailed(
            f"{FULFILLMENT_ORDER_ID_FIELD} must be an integer "
            f"(received {_json_type(fulfillment_order_id)})",
            field=FULFILLMENT_ORDER_ID_FIELD,
        )
    return fulfillment


def build_refund_command(body: Mapping[str, Any], *, calculate: bool) -> AdminCommand:
    return refund_command(parse_order_id(body), parse_refund(body), calculate=calculate)


def build_fulfillment_command(body: Mapping[str, Any]) -> AdminCommand:
    return fulfillment_command(parse_fulfillment(body))


class AdminCommandService:
    """Runs a validated command against Shopify, or previews it."""

    def __init__(
        self,
        credentials: AdminCredentials,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client = ShopifyAdminClient(credentials, transport=transport)

    def preview(self, command: AdminCommand) -> DryRunResponse:
        would_call = self.client.preview(command)
        logger.info("Dry run: %s %s", would_call.method, would_call.url)
        return DryRunResponse(would_call=would_call)

    async def execute(self, command: AdminCommand, *, dry_run: bool = False) -> DryRunResponse | UpstreamResult:
        """Return a dry-run preview or the upstream status and payload.

        Upstream failures propagate as ``ShopifyAdminError`` or
        ``ShopifyUnreachableError`` for the exception handlers to translate.
        """
        if dry_run:
            return self.preview(command)
        return await self.client.send(command)
