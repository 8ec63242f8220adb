"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from starlette.requests import Request


def _get_rate_limit_key(request: Request) -> str:
    """Key webhook traffic by shop domain, everything else by client IP."""
    shop = request.headers.get("X-Shopify-Shop-Domain")
    if shop:
        return f"shop:{shop}"
    return (
        request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or (request.client.host if request.client else "127.0.0.1")
    )


limiter = Limiter(key_func=_get_rate_limit_key, default_limits=["600/minute"])
