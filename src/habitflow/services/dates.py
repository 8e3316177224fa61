"""Calendar-day helpers.

Days cross module boundaries as zero-padded ``YYYY-MM-DD`` strings, which sort
as plain text in calendar order. Internally they are ``datetime.date`` values so
that arithmetic is calendar-aware (month ends, leap days). No time of day or
timezone offset is ever attached to a day.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("habitflow.dates")

DayLike = Union[str, date]

_DAY_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_day(value: DayLike) -> date:
    """Return ``value`` as a ``date``.

    Raises:
        ValueError: ``value`` is not a date or a valid ``YYYY-MM-DD`` string.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _DAY_RE.fullmatch(value):
        # fromisoformat still rejects impossible days such as 2023-02-29
        return date.fromisoformat(value)
    raise ValueError(f"Invalid day {value!r}; expected YYYY-MM-DD")


def format_day(value: DayLike) -> str:
    """Return the canonical ``YYYY-MM-DD`` form of ``value``."""

    return parse_day(value).isoformat()


def previous_day(value: DayLike) -> str:
    return format_day(parse_day(value) - timedelta(days=1))


def next_day(value: DayLike) -> str:
    return format_day(parse_day(value) + timedelta(days=1))


def last_n_days(n: int, today: DayLike) -> list[str]:
    """Return the ``n`` days ending at ``today``, oldest first."""

    end = parse_day(today)
    return [format_day(end - timedelta(days=offset)) for offset in range(n - 1, -1, -1)]


def days_in_range(start: DayLike, end: DayLike) -> int:
    """Inclusive number of days between ``start`` and ``end`` (0 if reversed)."""

    span = (parse_day(end) - parse_day(start)).days + 1
    return max(span, 0)


def week_bounds(day: DayLike, week_start: int = 0) -> tuple[str, str]:
    """Return the 7-day window containing ``day``.

    ``week_start`` uses ``date.weekday()`` numbering, 0 being Monday.
    """

    if not 0 <= week_start <= 6:
        raise ValueError(f"week_start must be 0-6, got {week_start}")
    current = parse_day(day)
    offset = (current.weekday() - week_start) % 7
    start = current - timedelta(days=offset)
    return format_day(start), format_day(start + timedelta(days=6))


def local_today(tz_name: str = "UTC") -> str:
    """Read the clock once and return today's date in ``tz_name``."""

    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", tz_name)
        tz = ZoneInfo("UTC")
    return datetime.now(tz).date().isoformat()


__all__ = [
    "DayLike",
    "days_in_range",
    "format_day",
    "last_n_days",
    "local_today",
    "next_day",
    "parse_day",
    "previous_day",
    "week_bounds",
]
