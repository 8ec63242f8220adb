"""Pydantic schemas for the cron tick summary."""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from ringback.schemas.common import BaseSchema


class _CamelSchema(BaseSchema):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        serialize_by_alias=True,
    )


class ShopTickResult(_CamelSchema):
    """Per-shop entry of a cron tick."""

    shop: str
    enabled: bool = False
    delay_minutes: int = 0
    retry_minutes: int = 0
    max_attempts: int = 0
    synced: int = 0
    marked: int = 0
    enqueued: int = 0
    error: str | None = None


class CronSummary(_CamelSchema):
    """Summary returned by the cron endpoint and the beat task."""

    ok: bool
    shops: int
    per_shop: list[ShopTickResult] = Field(default_factory=list)
    marked_total: int = 0
    enqueued_total: int = 0
    queued_due_before: int = 0
    queued_due_after: int = 0
    run_calls_status: int | None = None
    run_calls_body: Any = None
    server_now: datetime
