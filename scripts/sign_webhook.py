"""HMAC signing helper for simulating Shopify checkout webhooks.

Reads a JSON body from stdin and prints its base64-encoded HMAC-SHA256
signature using SHOPIFY_CLIENT_SECRET from the environment (or .env file).

Usage:
    BODY='{"id":99001,"phone":"+15550100","total_price":"120.00"}'
    HMAC=$(echo -n "$BODY" | python -m scripts.sign_webhook)
    curl -X POST http://localhost:8000/api/v1/webhooks/shopify/checkouts-create \\
      -H "Content-Type: application/json" \\
      -H "X-Shopify-Hmac-Sha256: $HMAC" \\
      -H "X-Shopify-Shop-Domain: test-calls.myshopify.com" \\
      -d "$BODY"
"""

import sys

from ringback.core.config import settings
from ringback.integrations.shopify.webhooks import compute_hmac


def main() -> None:
    secret = settings.shopify_client_secret
    if not secret:
        print("ERROR: SHOPIFY_CLIENT_SECRET is not set in .env", file=sys.stderr)
        sys.exit(1)

    body = sys.stdin.buffer.read()
    if not body:
        print("ERROR: No input received on stdin", file=sys.stderr)
        sys.exit(1)

    print(compute_hmac(body, secret), end="")


if __name__ == "__main__":
    main()
