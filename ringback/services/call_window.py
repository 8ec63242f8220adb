"""Daily call window arithmetic."""

import logging
import re
from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_START = 9 * 60  # 09:00
DEFAULT_WINDOW_END = 19 * 60  # 19:00

_HHMM_RE = re.compile(r"^(\d{2}):(\d{2})$")


def parse_hhmm(value: str | None) -> int | None:
    """Parse "HH:MM" into minutes since midnight, or None if malformed."""
    match = _HHMM_RE.match((value or "").strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def resolve_timezone(name: str | None) -> tzinfo:
    """Look up an IANA time zone, falling back to UTC for unknown names."""
    if not name or name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown call window timezone %r, using UTC", name)
        return UTC


def adjust_to_window(
    target: datetime,
    start: str | None,
    end: str | None,
    tz: str | None = "UTC",
) -> datetime:
    """Move ``target`` into the daily call window.

    A target whose local time of day lies within [start, end] (inclusive) is
    returned unchanged. Earlier targets move to the window start on the same
    day; later targets move to the window start on the next day. Adjusted
    values have seconds and microseconds zeroed.

    Malformed bounds default to 09:00 and 19:00, and inverted bounds are
    swapped. The window is evaluated in ``tz``; the result is UTC.
    """
    start_min = parse_hhmm(start)
    end_min = parse_hhmm(end)
    if start_min is None:
        start_min = DEFAULT_WINDOW_START
    if end_min is None:
        end_min = DEFAULT_WINDOW_END
    window_start, window_end = min(start_min, end_min), max(start_min, end_min)

    if target.tzinfo is None:
        target = target.replace(tzinfo=UTC)
    local = target.astimezone(resolve_timezone(tz))

    minute_of_day = local.hour * 60 + local.minute
    if window_start <= minute_of_day <= window_end:
        return target.astimezone(UTC)

    adjusted = local.replace(
        hour=window_start // 60,
        minute=window_start % 60,
        second=0,
        microsecond=0,
    )
    if minute_of_day > window_end:
        adjusted = adjusted + timedelta(days=1)

    return adjusted.astimezone(UTC)
