"""Structured JSON logging configuration."""

import contextvars
import logging
import re
import uuid

from pythonjsonlogger.json import JsonFormatter

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

# Shopify admin, custom-app, partner and storefront token prefixes
_TOKEN_PATTERN = re.compile(r"\b(shpat|shpca|shppa|shpss)_[A-Za-z0-9]+")


class RequestIdFilter(logging.Filter):
    """Inject request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        return True


class TokenRedactionFilter(logging.Filter):
    """Mask anything that looks like a Shopify access token."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def redact_tokens(text: str) -> str:
    """Replace Shopify access tokens in ``text`` with a masked marker."""
    return _TOKEN_PATTERN.sub(lambda m: f"{m.group(1)}_*****", text)


def setup_logging(*, debug: bool = False) -> None:
    """Configure root logger with JSON formatter, request-id and redaction filters."""
    handler = logging.StreamHandler()
    formatter = JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(TokenRedactionFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Generate a new request ID."""
    return uuid.uuid4().hex[:16]
