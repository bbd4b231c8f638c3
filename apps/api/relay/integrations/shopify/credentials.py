"""Per-request resolution of Shopify Admin API credentials.

Every value is taken from the first source that supplies a non-blank
value, in a fixed order. Absence is reported as a typed result rather than
``None`` so callers can decide whether it is the caller's fault (400) or
the service's (500).
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from relay.core.config import Settings
from relay.core.exceptions import MissingConfiguration, RequestValidationFailed

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
API_VERSION_HEADER = "X-Shopify-Api-Version"
MASKED_TOKEN = "*****"

_HOSTNAME_PATTERN = re.compile(
    r"^(?=.{1,253}$)([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?)(\.[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?)+$"
)
_API_VERSION_PATTERN = re.compile(r"^(\d{4}-\d{2}|unstable)$")

T = TypeVar("T")


class CredentialSource(StrEnum):
    HEADER = "header"
    QUERY = "query"
    BODY = "body"
    ENVIRONMENT = "environment"


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T
    source: CredentialSource


@dataclass(frozen=True)
class Absent:
    reason: str
    tried: tuple[CredentialSource, ...]


@dataclass(frozen=True)
class AdminCredentials:
    """Shop, token and API version for one Admin API call. Never cached."""

    shop_domain: str
    access_token: str = field(repr=False)
    api_version: str


def mask_token(_token: str | None = None) -> str:
    return MASKED_TOKEN


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve_first(candidates: Iterable[tuple[CredentialSource, Any]], *, name: str) -> Resolved[Any] | Absent:
    """Return the first non-blank candidate, or why none was usable."""
    tried: list[CredentialSource] = []
    for source, value in candidates:
        tried.append(source)
        if _is_blank(value):
            continue
        if isinstance(value, str):
            value = value.strip()
        return Resolved(value=value, source=source)
    return Absent(reason=f"No {name} supplied", tried=tuple(tried))


def normalize_shop_domain(value: Any) -> str:
    """Reduce ``https://Shop.myshopify.com/`` to ``shop.myshopify.com`` and validate it."""
    if not isinstance(value, str):
        raise RequestValidationFailed(
            f"shopDomain must be a string (received {type(value).__name__})",
            field="shopDomain",
        )
    domain = value.strip().lower()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    domain = domain.rstrip("/")
    if not _HOSTNAME_PATTERN.match(domain):
        raise RequestValidationFailed(f"shopDomain is not a valid hostname: {value!r}", field="shopDomain")
    return domain


def resolve_shop_domain(settings: Settings, *, body: Mapping[str, Any], query: Mapping[str, str]) -> str:
    result = resolve_first(
        [
            (CredentialSource.BODY, body.get("shopDomain")),
            (CredentialSource.BODY, body.get("shop_domain")),
            (CredentialSource.QUERY, query.get("shopDomain")),
            (CredentialSource.ENVIRONMENT, settings.shopify_shop_domain),
        ],
        name="shop domain",
    )
    if isinstance(result, Absent):
        raise RequestValidationFailed(
            "Missing shopDomain. Provide shopDomain in the request body or set SHOPIFY_SHOP_DOMAIN.",
            field="shopDomain",
        )
    return normalize_shop_domain(result.value)


def resolve_access_token(
    settings: Settings, *, headers: Mapping[str, str], body: Mapping[str, Any]
) -> str:
    result = resolve_first(
        [
            (CredentialSource.HEADER, headers.get(ACCESS_TOKEN_HEADER)),
            (CredentialSource.BODY, body.get("shopifyAccessToken")),
            (CredentialSource.ENVIRONMENT, settings.shopify_admin_access_token),
        ],
        name="access token",
    )
    if isinstance(result, Absent):
        raise MissingConfiguration("Missing env var SHOPIFY_ADMIN_ACCESS_TOKEN")
    if not isinstance(result.value, str):
        raise RequestValidationFailed("shopifyAccessToken must be a string", field="shopifyAccessToken")
    return result.value


def resolve_api_version(
    settings: Settings,
    *,
    headers: Mapping[str, str],
    query: Mapping[str, str],
    body: Mapping[str, Any],
) -> str:
    result = resolve_first(
        [
            (CredentialSource.HEADER, headers.get(API_VERSION_HEADER)),
            (CredentialSource.QUERY, query.get("apiVersion")),
            (CredentialSource.BODY, body.get("apiVersion")),
            (CredentialSource.ENVIRONMENT, settings.shopify_api_version),
        ],
        name="API version",
    )
    if isinstance(result, Absent):
        raise MissingConfiguration("Missing env var SHOPIFY_API_VERSION")
    version = result.value
    if not isinstance(version, str) or not _API_VERSION_PATTERN.match(version):
        raise RequestValidationFailed(
            f"apiVersion must look like YYYY-MM or 'unstable' (received {version!r})",
            field="apiVersion",
        )
    return version


def resolve_admin_credentials(
    settings: Settings,
    *,
    headers: Mapping[str, str],
    query: Mapping[str, str],
    body: Mapping[str, Any],
) -> AdminCredentials:
    """Resolve shop domain, access token and API version for one request.

    Precedence:
        shop domain:  body shopDomain/shop_domain > query shopDomain > env
        access token: X-Shopify-Access-Token header > body shopifyAccessToken > env
        API version:  X-Shopify-Api-Version header > query > body > env

    Raises:
        RequestValidationFailed: no usable shop domain or a malformed override.
        MissingConfiguration: no access token anywhere.
    """
    return AdminCredentials(
        shop_domain=resolve_shop_domain(settings, body=body, query=query),
        access_token=resolve_access_token(settings, headers=headers, body=body),
        api_version=resolve_api_version(settings, headers=headers, query=query, body=body),
    )
