"""Celery tasks for call recovery scheduling."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from ringback.core.database import async_session_maker, engine
from ringback.services.cron_service import run_cron_tick as run_cron_tick_async
from ringback.workers.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine in a fresh event loop, disposing DB connections after.

    asyncpg connections are bound to the loop that created them, so pooled
    connections must not outlive the per-task loop.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.run_until_complete(engine.dispose())
        loop.close()


@celery_app.task(  # type: ignore[untyped-decorator]
    name="tasks.calls.run_cron_tick",
    base=BaseTask,
    bind=True,
    max_retries=1,
)
def run_cron_tick(self: BaseTask) -> dict[str, Any]:  # noqa: ARG001
    """Scheduled twin of ``POST /api/cron``."""
    summary = _run_async(run_cron_tick_async(async_session_maker))
    if not summary.ok:
        logger.warning("Cron tick finished with shop errors")
    return summary.model_dump(mode="json")
