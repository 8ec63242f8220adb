"""Per-shop call settings: lookup, defaults, updates."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.core.encryption import encrypt_token
from ringback.models.shop_settings import ShopSettings
from ringback.schemas.calls import CallSettings, CallSettingsUpdate

logger = logging.getLogger(__name__)


async def get_settings_row(session: AsyncSession, shop: str) -> ShopSettings | None:
    stmt = select(ShopSettings).where(ShopSettings.shop == shop)
    return (await session.execute(stmt)).scalar_one_or_none()


async def ensure_settings(session: AsyncSession, shop: str) -> ShopSettings:
    """Return the shop's settings row, creating it with defaults if missing."""
    row = await get_settings_row(session, shop)
    if row is not None:
        return row

    row = ShopSettings(shop=shop)
    session.add(row)
    try:
        await session.commit()
    except IntegrityError:
        # Created concurrently by another trigger
        await session.rollback()
        existing = await get_settings_row(session, shop)
        if existing is None:
            raise
        return existing

    await session.refresh(row)
    logger.info("Created default call settings for shop %s", shop)
    return row


def to_call_settings(row: ShopSettings) -> CallSettings:
    """Snapshot a settings row as a value object for one pipeline run."""
    return CallSettings(
        enabled=bool(row.enabled),
        delay_minutes=row.delay_minutes,
        max_attempts=row.max_attempts,
        retry_minutes=row.retry_minutes,
        min_order_value=row.min_order_value,
        currency=row.currency,
        call_window_start=row.call_window_start,
        call_window_end=row.call_window_end,
        timezone=row.timezone,
    )


async def load_call_settings(session: AsyncSession, shop: str) -> CallSettings:
    return to_call_settings(await ensure_settings(session, shop))


async def update_settings(
    session: AsyncSession, shop: str, data: CallSettingsUpdate
) -> CallSettings:
    """Apply a partial settings update and return the resulting settings."""
    row = await ensure_settings(session, shop)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(row, field, value)
    await session.commit()
    await session.refresh(row)
    return to_call_settings(row)


async def set_shopify_access_token(session: AsyncSession, shop: str, token: str) -> None:
    """Store the shop's Admin API token (encrypted) to enable checkout sync."""
    row = await ensure_settings(session, shop)
    row.shopify_access_token = encrypt_token(token)
    await session.commit()
