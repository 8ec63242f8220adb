"""The cron tick: sync, detect abandonment and schedule calls for every shop."""

import logging
from datetime import UTC, datetime

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ringback.core.config import settings
from ringback.core.encryption import decrypt_token_or_none
from ringback.core.logging_config import shop_var
from ringback.integrations.run_calls import trigger_run_calls
from ringback.integrations.shopify.client import ShopifyClient
from ringback.models.checkout import Checkout
from ringback.models.shop_settings import ShopSettings
from ringback.schemas.cron import CronSummary, ShopTickResult
from ringback.services.abandonment import mark_abandoned
from ringback.services.call_job_store import count_queued_due
from ringback.services.checkout_sync import sync_abandoned_checkouts
from ringback.services.scheduler import CallScheduler
from ringback.services.settings_service import ensure_settings, to_call_settings

logger = logging.getLogger(__name__)


async def list_known_shops(session: AsyncSession) -> list[str]:
    """Every shop with a settings row or at least one checkout."""
    stmt = union(select(ShopSettings.shop), select(Checkout.shop).distinct())
    result = await session.execute(stmt)
    return sorted({row[0] for row in result.all() if row[0]})


async def process_shop(session: AsyncSession, shop: str, now: datetime) -> ShopTickResult:
    """Run sync, detector and scheduler for one shop."""
    row = await ensure_settings(session, shop)
    access_token = decrypt_token_or_none(row.shopify_access_token)
    call_settings = to_call_settings(row)

    entry = ShopTickResult(
        shop=shop,
        enabled=call_settings.enabled,
        delay_minutes=call_settings.delay_minutes,
        retry_minutes=call_settings.retry_minutes,
        max_attempts=call_settings.max_attempts,
    )

    if access_token:
        sync = await sync_abandoned_checkouts(session, shop, ShopifyClient(shop, access_token))
        entry.synced = sync.synced

    entry.marked = await mark_abandoned(session, shop, call_settings.delay_minutes, now=now)

    scheduler = CallScheduler(
        session,
        candidate_limit=settings.candidate_limit,
        job_lookup_limit=settings.job_lookup_limit,
    )
    result = await scheduler.enqueue(shop, call_settings)
    entry.enqueued = result.enqueued
    return entry


async def run_cron_tick(
    session_maker: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> CronSummary:
    """Process every known shop, then signal the call worker.

    A failure in one shop is recorded in its entry and does not stop the
    others; ``ok`` is False when any shop failed.
    """
    now = now or datetime.now(UTC)

    async with session_maker() as session:
        shops = await list_known_shops(session)
        queued_due_before = await count_queued_due(session, now)

    per_shop: list[ShopTickResult] = []
    for shop in shops:
        token = shop_var.set(shop)
        try:
            async with session_maker() as session:
                entry = await process_shop(session, shop, now)
        except Exception as e:
            logger.exception("Cron tick failed for shop %s", shop)
            entry = ShopTickResult(shop=shop, error=str(e) or e.__class__.__name__)
        finally:
            shop_var.reset(token)
        per_shop.append(entry)

    async with session_maker() as session:
        queued_due_after = await count_queued_due(session, datetime.now(UTC))

    run_calls_status, run_calls_body = await trigger_run_calls(
        settings.app_url,
        settings.run_calls_secret,
        now,
    )

    summary = CronSummary(
        ok=all(entry.error is None for entry in per_shop),
        shops=len(shops),
        per_shop=per_shop,
        marked_total=sum(entry.marked for entry in per_shop),
        enqueued_total=sum(entry.enqueued for entry in per_shop),
        queued_due_before=queued_due_before,
        queued_due_after=queued_due_after,
        run_calls_status=run_calls_status,
        run_calls_body=run_calls_body,
        server_now=now,
    )
    logger.info(
        "Cron tick done: shops=%d marked=%d enqueued=%d due=%d->%d run_calls=%s",
        summary.shops,
        summary.marked_total,
        summary.enqueued_total,
        queued_due_before,
        queued_due_after,
        run_calls_status,
    )
    return summary
