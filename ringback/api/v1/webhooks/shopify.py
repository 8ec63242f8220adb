"""Shopify checkout webhooks."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from ringback.core.config import settings
from ringback.core.deps import DBSession
from ringback.core.logging_config import shop_var
from ringback.integrations.shopify.normalize import normalize_checkout
from ringback.integrations.shopify.webhooks import HMAC_HEADER, SHOP_DOMAIN_HEADER, verify_webhook
from ringback.services.checkout_service import apply_checkout_webhook
from ringback.services.settings_service import ensure_settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def _verify(request: Request) -> bytes:
    """Read the body and check its HMAC signature."""
    body = await request.body()
    hmac_header = request.headers.get(HMAC_HEADER, "")
    if not verify_webhook(body, hmac_header, settings.shopify_client_secret):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid webhook signature")
    return body


async def _handle_checkout(request: Request, db: DBSession, topic: str) -> dict[str, str]:
    body = await _verify(request)
    shop = request.headers.get(SHOP_DOMAIN_HEADER, "").strip().lower()
    if not shop:
        logger.warning("Checkout webhook %s without shop domain", topic)
        return {"status": "ignored"}

    shop_var.set(shop)

    # Processing failures are logged and still acknowledged with 200
    checkout_id = None
    try:
        data = normalize_checkout(body)
        if data is None:
            logger.warning("Checkout webhook %s without checkout id", topic)
            return {"status": "ignored"}
        checkout_id = data.checkout_id
        await ensure_settings(db, shop)
        await apply_checkout_webhook(db, shop, data)
    except Exception:
        logger.exception("Failed to process %s webhook for checkout %s", topic, checkout_id)
        await db.rollback()
        return {"status": "error"}

    return {"status": "ok"}


@router.post("/checkouts-create")
async def checkouts_create(request: Request, db: DBSession) -> dict[str, str]:
    """Handle checkout creation webhook."""
    return await _handle_checkout(request, db, "checkouts/create")


@router.post("/checkouts-update")
async def checkouts_update(request: Request, db: DBSession) -> dict[str, str]:
    """Handle checkout update webhook."""
    return await _handle_checkout(request, db, "checkouts/update")
