"""Call job persistence: batched lookups, inserts and read-model queries."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.models.call_job import CallJob, CallJobStatus

DEFAULT_JOB_LOOKUP_LIMIT = 5000


async def fetch_jobs_by_checkout(
    session: AsyncSession,
    shop: str,
    checkout_ids: Iterable[str],
    limit: int = DEFAULT_JOB_LOOKUP_LIMIT,
) -> dict[str, list[CallJob]]:
    """Load the jobs of many checkouts in a single query.

    Returns ``{checkout_id: [job, ...]}`` with each list ordered newest first.
    At most ``limit`` rows are read across all checkouts.
    """
    ids = list(dict.fromkeys(checkout_ids))
    jobs_by_checkout: dict[str, list[CallJob]] = defaultdict(list)
    if not ids:
        return jobs_by_checkout

    stmt = (
        select(CallJob)
        .where(CallJob.shop == shop, CallJob.checkout_id.in_(ids))
        .order_by(CallJob.created_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    for job in result.scalars().all():
        jobs_by_checkout[job.checkout_id].append(job)
    return jobs_by_checkout


async def create_queued_job(
    session: AsyncSession,
    *,
    shop: str,
    checkout_id: str,
    phone: str,
    scheduled_for: datetime,
) -> CallJob:
    """Insert and commit a QUEUED job.

    Raises ``IntegrityError`` if another in-flight job for the checkout was
    committed first; the session is left for the caller to roll back.
    """
    job = CallJob(
        shop=shop,
        checkout_id=checkout_id,
        phone=phone,
        scheduled_for=scheduled_for,
        status=CallJobStatus.QUEUED,
        attempts=0,
        created_at=datetime.now(UTC),
    )
    session.add(job)
    await session.commit()
    return job


async def count_queued_due(session: AsyncSession, at: datetime) -> int:
    """Count QUEUED jobs whose scheduled time has arrived, across all shops."""
    stmt = (
        select(func.count())
        .select_from(CallJob)
        .where(
            CallJob.status == CallJobStatus.QUEUED,
            CallJob.scheduled_for <= at,
        )
    )
    return (await session.execute(stmt)).scalar() or 0


async def list_jobs(
    session: AsyncSession,
    shop: str,
    page: int,
    page_size: int,
    status: CallJobStatus | None = None,
) -> tuple[list[CallJob], int]:
    """Paginated jobs for a shop, newest first."""
    conditions = [CallJob.shop == shop]
    if status is not None:
        conditions.append(CallJob.status == status)

    count_stmt = select(func.count()).select_from(CallJob).where(*conditions)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        select(CallJob)
        .where(*conditions)
        .order_by(CallJob.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total
