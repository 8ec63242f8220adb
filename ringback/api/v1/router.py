"""API v1 router combining all route modules."""

from fastapi import APIRouter

from ringback.api.v1 import calls, health
from ringback.api.v1.webhooks import shopify as shopify_webhooks

api_router = APIRouter()

# Health check routes (no prefix)
api_router.include_router(health.router)

# Call recovery read models and settings (cron token)
api_router.include_router(
    calls.router,
    prefix="/calls",
    tags=["calls"],
)

# Shopify webhooks (no auth - verified via HMAC)
api_router.include_router(
    shopify_webhooks.router,
    prefix="/webhooks/shopify",
    tags=["webhooks"],
)
