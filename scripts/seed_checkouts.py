"""Seed checkouts and call jobs for manual testing of the cron tick.

Creates, for one shop:
- default call settings
- a stale OPEN checkout (promoted to ABANDONED on the next tick)
- a fresh OPEN checkout (left alone)
- an ABANDONED checkout with one FAILED attempt (gets a retry)
- an ABANDONED checkout without a phone (skipped)
- a CONVERTED checkout (never called)

Usage:
    python -m scripts.seed_checkouts
    curl -X POST http://localhost:8000/api/cron -H "x-cron-token: $CRON_TOKEN"
"""

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.core.database import async_session_maker
from ringback.models import CallJob, CallJobStatus, Checkout, CheckoutStatus, ShopSettings

SHOP = "test-calls.myshopify.com"

SAMPLE_ITEMS = [
    {"title": "Premium Widget", "quantity": 2, "variant_title": "Blue / Large", "price": "49.99"},
]


async def seed(session: AsyncSession) -> None:
    now = datetime.now(UTC)

    # Cleanup existing seed data
    for model in (CallJob, Checkout, ShopSettings):
        await session.execute(delete(model).where(model.shop == SHOP))
    await session.flush()

    session.add(ShopSettings(shop=SHOP))

    def checkout(checkout_id: str, **kwargs: object) -> Checkout:
        return Checkout(
            shop=SHOP,
            checkout_id=checkout_id,
            currency="USD",
            items=SAMPLE_ITEMS,
            **kwargs,
        )

    session.add_all(
        [
            checkout(
                "90001",
                status=CheckoutStatus.OPEN,
                phone="+15550100001",
                customer_name="Alice Stale",
                value=Decimal("120.00"),
                updated_at=now - timedelta(hours=2),
            ),
            checkout(
                "90002",
                status=CheckoutStatus.OPEN,
                phone="+15550100002",
                customer_name="Bob Fresh",
                value=Decimal("80.00"),
                updated_at=now - timedelta(minutes=5),
            ),
            checkout(
                "90003",
                status=CheckoutStatus.ABANDONED,
                phone="+15550100003",
                customer_name="Carol Retry",
                value=Decimal("200.00"),
                abandoned_at=now - timedelta(hours=6),
                updated_at=now - timedelta(hours=6),
            ),
            checkout(
                "90004",
                status=CheckoutStatus.ABANDONED,
                phone=None,
                customer_name="Dave NoPhone",
                value=Decimal("60.00"),
                abandoned_at=now - timedelta(hours=1),
                updated_at=now - timedelta(hours=1),
            ),
            checkout(
                "90005",
                status=CheckoutStatus.CONVERTED,
                phone="+15550100005",
                customer_name="Eve Converted",
                value=Decimal("99.00"),
            ),
        ]
    )
    session.add(
        CallJob(
            shop=SHOP,
            checkout_id="90003",
            phone="+15550100003",
            status=CallJobStatus.FAILED,
            scheduled_for=now - timedelta(hours=5),
            attempts=1,
            outcome="no_answer",
            created_at=now - timedelta(hours=5, minutes=30),
        )
    )
    await session.commit()


async def main() -> None:
    async with async_session_maker() as session:
        await seed(session)

    print("=" * 60)
    print("  Call recovery seed data created")
    print("=" * 60)
    print(f"  Shop: {SHOP}")
    print("  90001 alice  stale open      -> abandoned + queued")
    print("  90002 bob    fresh open      -> untouched")
    print("  90003 carol  failed attempt  -> retry queued")
    print("  90004 dave   no phone        -> skipped")
    print("  90005 eve    converted       -> never called")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
