"""Celery application configuration."""

from typing import Any

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from ringback.core.config import settings
from ringback.core.logging_config import setup_logging

# Create Celery app
celery_app = Celery(
    "ringback",
    broker=str(settings.redis_url),
    backend=str(settings.redis_url),
    include=[
        "ringback.workers.tasks.calls",
    ],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task safety limits
    task_time_limit=300,
    task_soft_time_limit=240,
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Result backend settings
    result_expires=3600,  # Results expire after 1 hour
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Default queue name (must match worker -Q flag)
    task_default_queue="default",
    # Task routing
    task_routes={
        "tasks.calls.*": {"queue": "calls"},
    },
    # Beat schedule: same tick as POST /api/cron
    beat_schedule={
        "run-cron-tick": {
            "task": "tasks.calls.run_cron_tick",
            "schedule": settings.cron_interval_seconds,
        },
    },
)


@celery_setup_logging.connect
def configure_worker_logging(**_kwargs: Any) -> None:
    """Use the JSON log format in workers instead of Celery's own."""
    setup_logging(debug=settings.debug)


# Task base class with common error handling
class BaseTask(celery_app.Task):  # type: ignore[misc, name-defined]
    """Base task class with error handling."""

    abstract = True
    autoretry_for = (Exception,)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes between retries
    retry_jitter = True
    max_retries = 3
