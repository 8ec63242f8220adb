"""Abandonment detection and candidate selection."""

import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.models.checkout import Checkout, CheckoutStatus
from ringback.schemas.calls import CallSettings

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 200


async def mark_abandoned(
    session: AsyncSession,
    shop: str,
    delay_minutes: int,
    now: datetime | None = None,
) -> int:
    """Promote stale OPEN checkouts to ABANDONED in one bulk update.

    A checkout is stale when its last activity (``updated_at``) is at least
    ``delay_minutes`` old. Rows that already carry ``abandoned_at`` are left
    alone, so re-running is a no-op. ``updated_at`` is preserved so it keeps
    meaning "last external activity".

    Returns the number of checkouts promoted.
    """
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(minutes=max(0, delay_minutes))

    stmt = (
        update(Checkout)
        .where(
            Checkout.shop == shop,
            Checkout.status == CheckoutStatus.OPEN,
            Checkout.updated_at <= cutoff,
            Checkout.abandoned_at.is_(None),
        )
        .values(
            status=CheckoutStatus.ABANDONED,
            abandoned_at=now,
            updated_at=Checkout.updated_at,
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await session.commit()

    marked = result.rowcount or 0  # type: ignore[attr-defined]
    if marked:
        logger.info("Marked %d checkouts abandoned for shop %s", marked, shop)
    return marked


async def find_candidates(
    session: AsyncSession,
    shop: str,
    settings: CallSettings,
    limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> list[Checkout]:
    """Select ABANDONED checkouts that may receive a call.

    Eligible: phone present, value at least ``min_order_value``, and an
    ``abandoned_at`` set. Newest abandonment first, at most ``limit`` rows.
    Read only.
    """
    min_value = Decimal(str(settings.min_order_value))
    stmt = (
        select(Checkout)
        .where(
            Checkout.shop == shop,
            Checkout.status == CheckoutStatus.ABANDONED,
            Checkout.phone.is_not(None),
            func.trim(Checkout.phone) != "",
            Checkout.value >= min_value,
            Checkout.abandoned_at.is_not(None),
        )
        .order_by(Checkout.abandoned_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
