"""Shopify webhook authentication."""

import base64
import hashlib
import hmac

SHOP_DOMAIN_HEADER = "X-Shopify-Shop-Domain"
HMAC_HEADER = "X-Shopify-Hmac-Sha256"
TOPIC_HEADER = "X-Shopify-Topic"


def compute_hmac(data: bytes, secret: str) -> str:
    """Base64-encoded HMAC-SHA256 of a request body, as Shopify sends it."""
    digest = hmac.new(secret.encode("utf-8"), data, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_webhook(data: bytes, hmac_header: str, secret: str) -> bool:
    """Check a webhook body against its X-Shopify-Hmac-Sha256 header."""
    if not secret or not hmac_header:
        return False
    return hmac.compare_digest(compute_hmac(data, secret), hmac_header)
