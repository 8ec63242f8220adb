"""Cron trigger endpoint."""

from fastapi import APIRouter

from ringback.core.deps import CronAuth, SessionMaker
from ringback.schemas.cron import CronSummary
from ringback.services.cron_service import run_cron_tick

router = APIRouter(tags=["cron"])


@router.post("/cron", response_model=CronSummary, dependencies=[CronAuth])
async def cron(session_maker: SessionMaker) -> CronSummary:
    """Run one tick: detect abandonment, schedule calls, signal the call worker."""
    return await run_cron_tick(session_maker)
