"""Checkout store writes (webhooks, sync) and dashboard reads."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.models.checkout import STICKY_STATUSES, Checkout, CheckoutStatus
from ringback.schemas.calls import CheckoutResponse
from ringback.schemas.shopify import NormalizedCheckout

logger = logging.getLogger(__name__)


def next_status_for_update(previous: CheckoutStatus | None, completed: bool) -> CheckoutStatus:
    """Status after a checkout webhook.

    A completion converts the checkout. CONVERTED and RECOVERED never change.
    Any other update is fresh engagement and resets the checkout to OPEN,
    ending the current abandonment cycle.
    """
    if completed:
        return CheckoutStatus.CONVERTED
    if previous is not None and previous in STICKY_STATUSES:
        return previous
    return CheckoutStatus.OPEN


async def get_checkout(session: AsyncSession, shop: str, checkout_id: str) -> Checkout | None:
    stmt = select(Checkout).where(Checkout.shop == shop, Checkout.checkout_id == checkout_id)
    return (await session.execute(stmt)).scalar_one_or_none()


def _apply_fields(checkout: Checkout, data: NormalizedCheckout) -> None:
    checkout.token = data.token
    checkout.email = data.email
    checkout.phone = data.phone
    checkout.currency = data.currency
    checkout.customer_name = data.customer_name
    checkout.items = [item.model_dump() for item in data.items]
    checkout.raw = data.raw
    if data.value is not None:
        checkout.value = data.value


async def apply_checkout_webhook(
    session: AsyncSession,
    shop: str,
    data: NormalizedCheckout,
    now: datetime | None = None,
) -> Checkout:
    """Upsert a checkout from a create/update webhook and commit.

    ``updated_at`` is set to the receipt time: every webhook counts as
    activity for the abandonment delay.
    """
    now = now or datetime.now(UTC)

    for attempt in range(2):
        checkout = await get_checkout(session, shop, data.checkout_id)
        previous = checkout.status if checkout else None
        status = next_status_for_update(previous, data.completed)

        if checkout is None:
            checkout = Checkout(
                shop=shop,
                checkout_id=data.checkout_id,
                value=data.value if data.value is not None else Decimal("0"),
                created_at=now,
            )
            session.add(checkout)

        _apply_fields(checkout, data)
        checkout.status = status
        checkout.abandoned_at = None
        checkout.updated_at = now

        try:
            await session.commit()
        except IntegrityError:
            # Same checkout created by a concurrent delivery; retry as an update
            await session.rollback()
            if attempt:
                raise
            continue

        logger.info(
            "Checkout upserted: shop=%s checkout=%s status=%s->%s phone=%s",
            shop,
            data.checkout_id,
            previous.value if previous else None,
            status.value,
            bool(data.phone),
        )
        return checkout

    raise RuntimeError("unreachable")


async def upsert_synced_checkout(
    session: AsyncSession,
    shop: str,
    data: NormalizedCheckout,
) -> Checkout:
    """Upsert a checkout pulled from Shopify's abandoned checkouts list.

    Shopify already considers these abandoned, so they are stored as
    ABANDONED with ``abandoned_at`` taken from Shopify's own last update
    (stable across syncs, so the cycle is not restarted on every tick).
    Completed ones become CONVERTED. CONVERTED and RECOVERED rows are kept.
    Does not commit.
    """
    checkout = await get_checkout(session, shop, data.checkout_id)
    if checkout is None:
        checkout = Checkout(
            shop=shop,
            checkout_id=data.checkout_id,
            value=data.value if data.value is not None else Decimal("0"),
        )
        session.add(checkout)
    elif checkout.status in STICKY_STATUSES:
        return checkout

    _apply_fields(checkout, data)
    if data.completed:
        checkout.status = CheckoutStatus.CONVERTED
        checkout.abandoned_at = None
    else:
        checkout.status = CheckoutStatus.ABANDONED
        checkout.abandoned_at = data.updated_at or data.created_at or datetime.now(UTC)
    return checkout


def to_checkout_response(checkout: Checkout) -> CheckoutResponse:
    return CheckoutResponse(
        id=checkout.id,
        shop=checkout.shop,
        checkout_id=checkout.checkout_id,
        status=checkout.status.value,
        value=float(checkout.value),
        currency=checkout.currency,
        phone=checkout.phone,
        email=checkout.email,
        customer_name=checkout.customer_name,
        items=checkout.items or [],
        abandoned_at=checkout.abandoned_at,
        created_at=checkout.created_at,
        updated_at=checkout.updated_at,
    )


async def list_checkouts(
    session: AsyncSession,
    shop: str,
    page: int,
    page_size: int,
    status: CheckoutStatus | None = None,
) -> tuple[list[CheckoutResponse], int]:
    """Paginated checkouts for a shop, most recently active first."""
    conditions = [Checkout.shop == shop]
    if status is not None:
        conditions.append(Checkout.status == status)

    count_stmt = select(func.count()).select_from(Checkout).where(*conditions)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        select(Checkout)
        .where(*conditions)
        .order_by(Checkout.updated_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await session.execute(stmt)
    return [to_checkout_response(c) for c in result.scalars().all()], total
