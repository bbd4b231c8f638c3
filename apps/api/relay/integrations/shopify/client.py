"""Shopify Admin API client using httpx."""

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from relay.core.exceptions import ShopifyAdminError, ShopifyUnreachableError
from relay.integrations.shopify.credentials import ACCESS_TOKEN_HEADER, AdminCredentials, mask_token
from relay.schemas.shopify import WouldCall

logger = logging.getLogger(__name__)

ADMIN_API_PREFIX = "/admin/api"


@dataclass(frozen=True)
class AdminCommand:
    """One Admin API call: method, path relative to the versioned prefix, optional JSON body."""

    method: str
    path: str
    body: dict[str, Any] | None = None


@dataclass(frozen=True)
class UpstreamResult:
    """A successful Admin API response: its 2xx status and parsed payload."""

    status_code: int
    payload: Any


def parse_response_text(text: str) -> Any:
    """Parse an upstream body as JSON, keeping plain text as ``{"raw": text}``."""
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"raw": text}


def encode_path_segment(value: str) -> str:
    return quote(value, safe="")


class ShopifyAdminClient:
    """Async client for the Shopify Admin REST API.

    One instance per request; credentials are resolved by the caller and are
    never cached here beyond the instance lifetime.
    """

    def __init__(
        self,
        credentials: AdminCredentials,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.shop_domain = credentials.shop_domain
        self.api_version = credentials.api_version
        self.base_url = f"https://{credentials.shop_domain}{ADMIN_API_PREFIX}/{credentials.api_version}"
        self.headers = {
            ACCESS_TOKEN_HEADER: credentials.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._transport = transport

    def url_for(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def build_request(self, command: AdminCommand) -> WouldCall:
        """Describe the exact request ``send`` performs for ``command``."""
        return WouldCall(
            method=command.method.upper(),
            url=self.url_for(command.path),
            headers=dict(self.headers),
            body=command.body,
        )

    def preview(self, command: AdminCommand) -> WouldCall:
        """Same as ``build_request`` with the access token masked."""
        would_call = self.build_request(command)
        would_call.headers[ACCESS_TOKEN_HEADER] = mask_token()
        return would_call

    async def send(self, command: AdminCommand) -> UpstreamResult:
        """Perform ``command`` and return the upstream status and parsed payload.

        Raises:
            ShopifyAdminError: Shopify answered with a non-2xx status.
            ShopifyUnreachableError: the request never got a response.
        """
        request = self.build_request(command)
        content = json.dumps(request.body) if request.body is not None else None

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    content=content,
                )
        except httpx.RequestError as e:
            raise ShopifyUnreachableError(request.url, f"{type(e).__name__}: {e}") from e

        payload = parse_response_text(response.text)

        if not response.is_success:
            raise ShopifyAdminError(response.status_code, payload, request.url)

        logger.info(
            "Shopify %s %s -> %s",
            request.method,
            request.url,
            response.status_code,
        )
        return UpstreamResult(status_code=response.status_code, payload=payload)

    async def create_refund(self, order_id: str, refund: dict[str, Any]) -> UpstreamResult:
        return await self.send(refund_command(order_id, refund))

    async def calculate_refund(self, order_id: str, refund: dict[str, Any]) -> UpstreamResult:
        return await self.send(refund_command(order_id, refund, calculate=True))

    async def create_fulfillment(self, fulfillment: dict[str, Any]) -> UpstreamResult:
        return await self.send(fulfillment_command(fulfillment))


def refund_command(order_id: str, refund: dict[str, Any], *, calculate: bool = False) -> AdminCommand:
    suffix = "refunds/calculate.json" if calculate else "refunds.json"
    return AdminCommand(
        method="POST",
        path=f"/orders/{encode_path_segment(order_id)}/{suffix}",
        body={"refund": refund},
    )


def fulfillment_command(fulfillment: dict[str, Any]) -> AdminCommand:
    return AdminCommand(method="POST", path="/fulfillments.json", body={"fulfillment": fulfillment})
