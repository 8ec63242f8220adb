"""Pytest configuration and fixtures for the Ringback test suite.

Provides:
- A fresh database per test (SQLite file via aiosqlite, or TEST_DATABASE_URL)
- An ASGI test client with the DB and session-maker dependencies overridden
- Disabled rate limiting
- Model factory fixtures for ShopSettings, Checkout and CallJob
- Shopify webhook signing helpers
"""

import json
import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from ringback.core.config import settings
from ringback.core.database import get_async_session
from ringback.core.deps import get_db, get_session_maker
from ringback.core.rate_limit import limiter
from ringback.integrations.shopify.webhooks import (
    HMAC_HEADER,
    SHOP_DOMAIN_HEADER,
    TOPIC_HEADER,
    compute_hmac,
)
from ringback.main import app
from ringback.models import (
    Base,
    CallJob,
    CallJobStatus,
    Checkout,
    CheckoutStatus,
    ShopSettings,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_SHOP = "test-shop.myshopify.com"
OTHER_SHOP = "other-shop.myshopify.com"
WEBHOOK_SECRET = "test-webhook-secret"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine bound to a fresh database with all tables created.

    Defaults to a throwaway SQLite file. Set TEST_DATABASE_URL to run the
    suite against PostgreSQL; tables are dropped after each test there.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False, poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup (factory fixtures) and direct service calls."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with database dependencies overridden."""

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_db] = _override_session
    app.dependency_overrides[get_session_maker] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def cron_token(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configure a cron token and return it."""
    monkeypatch.setattr(settings, "cron_token", "test-cron-token")
    return "test-cron-token"


# ---------------------------------------------------------------------------
# Webhook signing
# ---------------------------------------------------------------------------


@pytest.fixture
def webhook_secret(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings, "shopify_client_secret", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


def signed_webhook(
    payload: dict[str, Any],
    *,
    shop: str = TEST_SHOP,
    topic: str = "checkouts/update",
    secret: str = WEBHOOK_SECRET,
) -> tuple[bytes, dict[str, str]]:
    """Serialize a webhook payload and build Shopify-style signed headers."""
    body = json.dumps(payload).encode()
    headers = {
        "Content-Type": "application/json",
        HMAC_HEADER: compute_hmac(body, secret),
        SHOP_DOMAIN_HEADER: shop,
        TOPIC_HEADER: topic,
    }
    return body, headers


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def shop_settings_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates ShopSettings rows."""

    async def _create(*, shop: str = TEST_SHOP, **fields: Any) -> ShopSettings:
        row = ShopSettings(shop=shop, **fields)
        db_session.add(row)
        await db_session.commit()
        await db_session.refresh(row)
        return row

    return _create


@pytest.fixture
def checkout_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Checkout rows."""

    counter = iter(range(10_000, 100_000))

    async def _create(
        *,
        shop: str = TEST_SHOP,
        checkout_id: str | None = None,
        status: CheckoutStatus = CheckoutStatus.ABANDONED,
        phone: str | None = "+15550100100",
        value: Decimal | float | str = "50.00",
        currency: str = "USD",
        abandoned_at: datetime | None = None,
        updated_at: datetime | None = None,
        created_at: datetime | None = None,
        email: str | None = "customer@example.com",
        customer_name: str | None = "Test Customer",
    ) -> Checkout:
        now = datetime.now(UTC)
        if status == CheckoutStatus.ABANDONED and abandoned_at is None:
            abandoned_at = now
        checkout = Checkout(
            shop=shop,
            checkout_id=checkout_id or str(next(counter)),
            status=status,
            phone=phone,
            value=Decimal(str(value)),
            currency=currency,
            abandoned_at=abandoned_at,
            email=email,
            customer_name=customer_name,
            items=[],
            created_at=created_at or updated_at or now,
            updated_at=updated_at or now,
        )
        db_session.add(checkout)
        await db_session.commit()
        await db_session.refresh(checkout)
        return checkout

    return _create


@pytest.fixture
def call_job_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates CallJob rows."""

    async def _create(
        *,
        checkout_id: str,
        shop: str = TEST_SHOP,
        phone: str = "+15550100100",
        status: CallJobStatus = CallJobStatus.COMPLETED,
        created_at: datetime | None = None,
        scheduled_for: datetime | None = None,
        attempts: int = 1,
        outcome: str | None = None,
    ) -> CallJob:
        job = CallJob(
            shop=shop,
            checkout_id=checkout_id,
            phone=phone,
            status=status,
            created_at=created_at or datetime.now(UTC),
            scheduled_for=scheduled_for,
            attempts=attempts,
            outcome=outcome,
        )
        db_session.add(job)
        await db_session.commit()
        await db_session.refresh(job)
        return job

    return _create
