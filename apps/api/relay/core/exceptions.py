"""Error taxonomy for the relay and its HTTP translation."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from relay.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "relay_error"

    def __init__(self, detail: str, *, field: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return ErrorResponse(error=self.error, detail=self.detail, field=self.field).model_dump(exclude_none=True)


class RequestValidationFailed(RelayError):
    """The caller sent a missing or malformed field."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "validation_error"


class InvalidJSONBody(RequestValidationFailed):
    error = "invalid_json"


class MissingConfiguration(RelayError):
    """The service cannot act because a credential or setting is absent."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "missing_configuration"


class WebhookVerificationFailed(RelayError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "invalid_hmac"


class ShopifyAdminError(RelayError):
    """Shopify was reached but answered with a non-2xx status."""

    error = "shopify_request_failed"

    def __init__(self, status_code: int, body: Any, url: str) -> None:
        super().__init__(f"Shopify responded with HTTP {status_code}")
        self.upstream_status = status_code
        self.body = body
        self.url = url
        # Only error statuses are relayed as-is; 1xx/3xx collapse to 502.
        if 400 <= status_code <= 599:
            self.status_code = status_code
        else:
            self.status_code = status.HTTP_502_BAD_GATEWAY

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "status": self.upstream_status,
            "url": self.url,
            "response": self.body,
        }


class ShopifyUnreachableError(RelayError):
    """The request never reached Shopify (DNS, connect, TLS, read failure)."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error = "shopify_unreachable"

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Could not reach Shopify: {reason}")
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        content = super().to_dict()
        content["url"] = self.url
        return content


async def relay_error_handler(_request: Request, exc: RelayError) -> JSONResponse:
    if isinstance(exc, ShopifyAdminError):
        logger.warning("Shopify request failed: %s %s", exc.upstream_status, exc.url)
    elif isinstance(exc, ShopifyUnreachableError):
        logger.error("Shopify unreachable: %s (%s)", exc.url, exc.detail)
    elif isinstance(exc, MissingConfiguration):
        logger.error("Configuration error: %s", exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI's own parameter validation errors onto the 400 contract."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": RequestValidationFailed.error,
            "detail": first.get("msg", "Invalid request"),
            "field": field or None,
        },
    )


async def unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with proper JSON response."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
