"""Call recovery read models and settings (cron-token protected)."""

from fastapi import APIRouter, Query

from ringback.core.deps import CronAuth, DBSession
from ringback.models.call_job import CallJob, CallJobStatus
from ringback.models.checkout import CheckoutStatus
from ringback.schemas.calls import (
    CallJobResponse,
    CallSettings,
    CallSettingsUpdate,
    CheckoutResponse,
)
from ringback.schemas.common import PaginatedResponse
from ringback.services import call_job_store, checkout_service, settings_service

router = APIRouter(dependencies=[CronAuth])


def _job_response(job: CallJob) -> CallJobResponse:
    return CallJobResponse(
        id=job.id,
        shop=job.shop,
        checkout_id=job.checkout_id,
        phone=job.phone,
        status=job.status.value,
        scheduled_for=job.scheduled_for,
        attempts=job.attempts,
        outcome=job.outcome,
        ended_reason=job.ended_reason,
        recording_url=job.recording_url,
        attributed_order_id=job.attributed_order_id,
        attributed_amount=float(job.attributed_amount) if job.attributed_amount is not None else None,
        created_at=job.created_at,
    )


@router.get("/checkouts", response_model=PaginatedResponse[CheckoutResponse])
async def list_checkouts(
    db: DBSession,
    shop: str = Query(..., min_length=1),
    status: CheckoutStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[CheckoutResponse]:
    """Checkouts of a shop, most recently active first."""
    items, total = await checkout_service.list_checkouts(db, shop, page, page_size, status)
    return PaginatedResponse.build(items, total, page, page_size)


@router.get("/jobs", response_model=PaginatedResponse[CallJobResponse])
async def list_jobs(
    db: DBSession,
    shop: str = Query(..., min_length=1),
    status: CallJobStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[CallJobResponse]:
    """Call jobs of a shop, newest first."""
    jobs, total = await call_job_store.list_jobs(db, shop, page, page_size, status)
    return PaginatedResponse.build([_job_response(j) for j in jobs], total, page, page_size)


@router.get("/settings", response_model=CallSettings)
async def get_settings(db: DBSession, shop: str = Query(..., min_length=1)) -> CallSettings:
    return await settings_service.load_call_settings(db, shop)


@router.put("/settings", response_model=CallSettings)
async def update_settings(
    data: CallSettingsUpdate,
    db: DBSession,
    shop: str = Query(..., min_length=1),
) -> CallSettings:
    return await settings_service.update_settings(db, shop, data)
