"""HMAC signing helper for simulating Shopify webhooks.

Reads a body from stdin and outputs its base64-encoded HMAC-SHA256 signature
using the SHOPIFY_WEBHOOK_SECRET from the environment (or .env file).

Usage:
    echo -n '{"id": 123}' | python -m scripts.sign_webhook

    # Full curl example:
    BODY='{"id":820982911946154508,"order_id":450789469}'
    HMAC=$(echo -n "$BODY" | python -m scripts.sign_webhook)
    curl -X POST http://localhost:3000/shopify/webhooks \\
      -H "Content-Type: application/json" \\
      -H "X-Shopify-Hmac-Sha256: $HMAC" \\
      -H "X-Shopify-Topic: refunds/create" \\
      -H "X-Shopify-Webhook-Id: b54557e4-bdd9-4b37-8a5f-bf7d70bcd043" \\
      -H "X-Shopify-Shop-Domain: test-store.myshopify.com" \\
      -H "X-Shopify-Triggered-At: 2026-01-15T10:00:00.000Z" \\
      -H "X-Shopify-Test: true" \\
      -d "$BODY"
"""

import sys

from relay.core.config import get_settings
from relay.integrations.shopify.webhooks import compute_signature


def main() -> None:
    secret = get_settings().shopify_webhook_secret
    if not secret:
        print("ERROR: SHOPIFY_WEBHOOK_SECRET is not set in .env", file=sys.stderr)
        sys.exit(1)

    body = sys.stdin.buffer.read()
    if not body:
        print("ERROR: No input received on stdin", file=sys.stderr)
        sys.exit(1)

    print(compute_signature(body, secret), end="")


if __name__ == "__main__":
    main()
