"""Pull abandoned checkouts from Shopify into the checkout store."""

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.integrations.shopify.client import ShopifyClient, ShopifyGraphQLError
from ringback.integrations.shopify.normalize import normalize_checkout
from ringback.services.checkout_service import upsert_synced_checkout

logger = logging.getLogger(__name__)

# Upstream failures and payloads of an unexpected shape
SYNC_ERRORS = (
    httpx.HTTPError,
    ShopifyGraphQLError,
    ValueError,
    TypeError,
    AttributeError,
    KeyError,
)


@dataclass
class SyncResult:
    synced: int = 0


async def sync_abandoned_checkouts(
    session: AsyncSession,
    shop: str,
    client: ShopifyClient,
    limit: int = 50,
) -> SyncResult:
    """Upsert the shop's most recent abandoned checkouts.

    Upstream failures and malformed data are logged, any partial upsert is
    rolled back, and the result is ``synced=0``; they never abort the
    caller's tick.
    """
    first = max(1, min(100, limit))
    synced = 0
    try:
        nodes = await client.get_abandoned_checkouts(first=first)
        for node in nodes:
            data = normalize_checkout(node)
            if data is None:
                continue
            await upsert_synced_checkout(session, shop, data)
            synced += 1
        await session.commit()
    except SYNC_ERRORS as e:
        logger.warning("Abandoned checkout sync failed for %s: %s", shop, e)
        await session.rollback()
        return SyncResult()

    if synced:
        logger.info("Synced %d abandoned checkouts for %s", synced, shop)
    return SyncResult(synced=synced)
