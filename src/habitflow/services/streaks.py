"""Streak calculations over day-level habit logs.

All functions are pure: "today" is always passed in, never read from a clock.
A log is anything with an ``occurred_on`` day (``date`` or ``YYYY-MM-DD``) and a
boolean ``completed`` flag, so both ``HabitLog`` rows and lightweight test
doubles work.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Protocol, Sequence

from .dates import DayLike, parse_day


class LogLike(Protocol):
    occurred_on: DayLike
    completed: bool


@dataclass(slots=True, frozen=True)
class StreakStats:
    """All per-habit streak figures in one bundle."""

    current_streak: int
    longest_streak: int
    total_completions: int
    completion_rate: int


@dataclass(slots=True, frozen=True)
class StreakStatus:
    label: str
    color: str


def percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up, 0 when ``whole`` is not positive."""

    if whole <= 0:
        return 0
    return int(math.floor(100 * part / whole + 0.5))


def completed_days(logs: Iterable[LogLike]) -> set[date]:
    """Return the days marked completed.

    If a day appears more than once the last log for it wins.
    """

    by_day: dict[date, bool] = {}
    for log in logs:
        by_day[parse_day(log.occurred_on)] = bool(log.completed)
    return {day for day, done in by_day.items() if done}


def current_streak(logs: Iterable[LogLike], today: DayLike) -> int:
    """Count consecutive completed days ending today.

    An unchecked today does not break the streak: counting then starts at
    yesterday. Only that single day of grace is given.
    """

    done = completed_days(logs)
    if not done:
        return 0

    cursor = parse_day(today)
    if cursor not in done:
        cursor -= timedelta(days=1)

    streak = 0
    while cursor in done:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(logs: Iterable[LogLike]) -> int:
    """Length of the longest run of consecutive completed days ever logged."""

    days = sorted(completed_days(logs))
    if not days:
        return 0

    longest = 1
    run = 1
    for previous, current in zip(days, days[1:]):
        if is_consecutive_day(previous, current):
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def is_consecutive_day(first: DayLike, second: DayLike) -> bool:
    """True when ``second`` is exactly the calendar day after ``first``."""

    return parse_day(first) + timedelta(days=1) == parse_day(second)


def completion_rate(logs: Sequence[LogLike]) -> int:
    """Share of logged days that were completed, as an integer percentage."""

    total = len(logs)
    done = sum(1 for log in logs if log.completed)
    return percent(done, total)


def streak_stats(logs: Iterable[LogLike], today: DayLike) -> StreakStats:
    rows = list(logs)
    return StreakStats(
        current_streak=current_streak(rows, today),
        longest_streak=longest_streak(rows),
        total_completions=sum(1 for log in rows if log.completed),
        completion_rate=completion_rate(rows),
    )


_STATUS_TIERS: tuple[tuple[int, StreakStatus], ...] = (
    (3, StreakStatus("Getting started", "blue")),
    (7, StreakStatus("Building momentum", "green")),
    (14, StreakStatus("On a roll!", "yellow")),
    (30, StreakStatus("Impressive!", "orange")),
    (100, StreakStatus("Incredible!", "red")),
)

_MILESTONES = {
    1: "Day 1 done! Come back tomorrow to build your streak!",
    3: "3 days in a row! You're building a habit!",
    7: "A whole week! You're on fire!",
    14: "Two weeks strong! This is becoming second nature!",
    21: "21 days! They say it takes 21 days to form a habit!",
    30: "30-day streak! You're unstoppable!",
    50: "50 days! Half way to 100! Keep going!",
    100: "100 DAYS! You're a habit master!",
}


def streak_status(streak: int) -> StreakStatus:
    """Map a current streak onto its display tier."""

    if streak <= 0:
        return StreakStatus("No streak", "gray")
    for upper, status in _STATUS_TIERS:
        if streak < upper:
            return status
    return StreakStatus("Legendary!", "purple")


def streak_message(streak: int, today_completed: bool) -> str:
    """Motivational line for the habit detail header."""

    if streak <= 0:
        return "Start your streak today!"
    if not today_completed:
        if streak == 1:
            return "Complete today to keep your streak going!"
        return f"Don't break your {streak}-day streak! Complete today's habit."
    if streak in _MILESTONES:
        return _MILESTONES[streak]
    if streak > 100:
        return f"{streak} days! You're legendary!"
    return f"{streak} days and counting! Keep it up!"


__all__ = [
    "LogLike",
    "StreakStats",
    "StreakStatus",
    "completed_days",
    "completion_rate",
    "current_streak",
    "is_consecutive_day",
    "longest_streak",
    "percent",
    "streak_message",
    "streak_stats",
    "streak_status",
]
