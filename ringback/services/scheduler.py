"""Cycle-aware call scheduler.

Turns eligible abandoned checkouts into QUEUED call jobs. Each pass:

1. selects candidates (see ``find_candidates``),
2. loads every job of those candidates in one query,
3. keeps only the jobs of each checkout's current abandonment cycle
   (created at or after ``abandoned_at``),
4. skips checkouts with an in-flight job or no attempts left,
5. computes the next ``scheduled_for`` from the cycle start (first attempt)
   or from the last terminal job (retries), moved into the call window,
6. inserts the job.

The pass is safe to run repeatedly and concurrently: state is re-read on
every call, and the partial unique index on in-flight jobs turns a lost race
into an ``IntegrityError`` that is recorded as a skip.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ringback.models.call_job import IN_FLIGHT_STATUSES, TERMINAL_STATUSES, CallJobStatus
from ringback.schemas.calls import CallSettings, CandidateOutcome, Decision, EnqueueResult
from ringback.services import call_job_store
from ringback.services.abandonment import DEFAULT_CANDIDATE_LIMIT, find_candidates
from ringback.services.call_window import adjust_to_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    checkout_id: str
    phone: str
    cycle_start: datetime


@dataclass(frozen=True)
class _JobView:
    status: CallJobStatus
    created_at: datetime
    scheduled_for: datetime | None

    @property
    def anchor(self) -> datetime:
        return self.scheduled_for or self.created_at


class CallScheduler:
    """Schedules call attempts for one shop per ``enqueue`` call."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
        job_lookup_limit: int = call_job_store.DEFAULT_JOB_LOOKUP_LIMIT,
    ) -> None:
        self.db = db
        self.candidate_limit = candidate_limit
        self.job_lookup_limit = job_lookup_limit

    async def enqueue(self, shop: str, settings: CallSettings) -> EnqueueResult:
        """Create the next due call job for every eligible checkout of ``shop``."""
        if not settings.enabled:
            return EnqueueResult()

        checkouts = await find_candidates(self.db, shop, settings, limit=self.candidate_limit)
        if not checkouts:
            return EnqueueResult()

        # Snapshot rows: a rollback after a lost race expires ORM instances.
        candidates = [
            _Candidate(
                checkout_id=c.checkout_id,
                phone=(c.phone or "").strip(),
                cycle_start=c.abandoned_at or c.updated_at,
            )
            for c in checkouts
        ]

        jobs = await call_job_store.fetch_jobs_by_checkout(
            self.db,
            shop,
            [c.checkout_id for c in candidates],
            limit=self.job_lookup_limit,
        )
        # Local read model for this pass only, newest job first per checkout
        history: dict[str, list[_JobView]] = {
            checkout_id: [_JobView(j.status, j.created_at, j.scheduled_for) for j in rows]
            for checkout_id, rows in jobs.items()
        }

        result = EnqueueResult()
        for candidate in candidates:
            outcome = await self._schedule_one(shop, settings, candidate, history)
            result.outcomes.append(outcome)
            if outcome.decision == Decision.ENQUEUED:
                result.enqueued += 1

        logger.info(
            "Enqueue pass for shop %s: candidates=%d enqueued=%d",
            shop,
            len(candidates),
            result.enqueued,
        )
        return result

    async def _schedule_one(
        self,
        shop: str,
        settings: CallSettings,
        candidate: _Candidate,
        history: dict[str, list[_JobView]],
    ) -> CandidateOutcome:
        checkout_id = candidate.checkout_id
        if not candidate.phone:
            return CandidateOutcome(checkout_id=checkout_id, decision=Decision.NO_PHONE)

        cycle_jobs = [
            j for j in history.get(checkout_id, []) if j.created_at >= candidate.cycle_start
        ]

        if any(j.status in IN_FLIGHT_STATUSES for j in cycle_jobs):
            return CandidateOutcome(checkout_id=checkout_id, decision=Decision.IN_FLIGHT_EXISTS)

        if len(cycle_jobs) >= settings.max_attempts:
            return CandidateOutcome(
                checkout_id=checkout_id, decision=Decision.MAX_ATTEMPTS_REACHED
            )

        if not cycle_jobs:
            target = candidate.cycle_start + timedelta(minutes=settings.delay_minutes)
        else:
            last = cycle_jobs[0]
            if last.status not in TERMINAL_STATUSES:
                return CandidateOutcome(
                    checkout_id=checkout_id, decision=Decision.LAST_JOB_NOT_TERMINAL
                )
            target = last.anchor + timedelta(minutes=settings.retry_minutes)

        scheduled_for = adjust_to_window(
            target,
            settings.call_window_start,
            settings.call_window_end,
            settings.timezone,
        )

        try:
            await call_job_store.create_queued_job(
                self.db,
                shop=shop,
                checkout_id=checkout_id,
                phone=candidate.phone,
                scheduled_for=scheduled_for,
            )
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "In-flight job for %s/%s was created concurrently, skipping",
                shop,
                checkout_id,
            )
            return CandidateOutcome(checkout_id=checkout_id, decision=Decision.UNIQUE_CONSTRAINT)

        history.setdefault(checkout_id, []).insert(
            0, _JobView(CallJobStatus.QUEUED, datetime.now(UTC), scheduled_for)
        )
        logger.info(
            "Queued call for %s/%s at %s (attempt %d of %d)",
            shop,
            checkout_id,
            scheduled_for.isoformat(),
            len(cycle_jobs) + 1,
            settings.max_attempts,
        )
        return CandidateOutcome(
            checkout_id=checkout_id,
            decision=Decision.ENQUEUED,
            scheduled_for=scheduled_for,
        )
