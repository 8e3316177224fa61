"""Cross-habit rollups for dashboard, calendar and heatmap views.

Everything here is derived from log collections already loaded by the caller;
nothing touches the database and "today" is always an argument.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from .dates import DayLike, days_in_range, format_day, last_n_days, parse_day
from .streaks import LogLike, completed_days, current_streak, longest_streak, percent

WEEKLY_WINDOW_DAYS = 7
MONTHLY_WINDOW_DAYS = 30


class HabitLike(Protocol):
    id: Any
    name: str
    frequency: str
    target_frequency: int
    current_streak: int


class HabitLogLike(LogLike, Protocol):
    habit_id: Any


@dataclass(slots=True)
class HabitStatus:
    habit: Any
    is_completed_today: bool
    today_log: Optional[Any] = None


@dataclass(slots=True, frozen=True)
class WeeklyProgress:
    completed_count: int
    target: int
    goal_met: bool


@dataclass(slots=True, frozen=True)
class OverallStats:
    """Dashboard header figures."""

    total_habits: int
    completed_today: int
    total_today: int
    best_streak: int
    total_completions: int
    weekly_completion_rate: int
    monthly_completion_rate: int


@dataclass(slots=True, frozen=True)
class DailyStats:
    date: str
    completed: int
    total: int
    percentage: int


@dataclass(slots=True, frozen=True)
class HeatmapDay:
    date: str
    completed: int
    total: int
    level: int


@dataclass(slots=True)
class HabitWithStats:
    habit_id: Any
    name: str
    current_streak: int
    longest_streak: int
    total_completions: int
    completion_rate: int
    recent_days: list[bool] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class CompletionStats:
    total: int
    completed: int
    percentage: int


def _days_by_habit(habits: Sequence[HabitLike], logs: Iterable[HabitLogLike]) -> dict[Any, set[date]]:
    """Completed days per habit, restricted to ``habits``."""

    grouped: dict[Any, list[HabitLogLike]] = defaultdict(list)
    for log in logs:
        grouped[log.habit_id].append(log)
    return {habit.id: completed_days(grouped.get(habit.id, ())) for habit in habits}


def _count_between(days: set[date], start: date, end: date) -> int:
    return sum(1 for day in days if start <= day <= end)


def daily_status(
    habits: Sequence[HabitLike],
    logs_by_habit: Mapping[Any, Iterable[LogLike]],
    day: DayLike,
) -> list[HabitStatus]:
    """Attach the log for ``day`` (if any) to each habit.

    A missing log means "not completed"; it is never an error.
    """

    target = parse_day(day)
    statuses = []
    for habit in habits:
        found = None
        for log in logs_by_habit.get(habit.id, ()):
            if parse_day(log.occurred_on) == target:
                found = log
        statuses.append(
            HabitStatus(
                habit=habit,
                is_completed_today=bool(found.completed) if found is not None else False,
                today_log=found,
            )
        )
    return statuses


def weekly_progress(
    habit: HabitLike,
    logs: Iterable[LogLike],
    week_start: DayLike,
    week_end: DayLike,
) -> WeeklyProgress:
    """Completions inside ``[week_start, week_end]`` against the weekly target.

    Week boundaries are the caller's policy and are used exactly as given.
    """

    count = _count_between(completed_days(logs), parse_day(week_start), parse_day(week_end))
    target = habit.target_frequency
    return WeeklyProgress(completed_count=count, target=target, goal_met=count >= target)


def heatmap_level(completed_count: int, total_habits: int) -> int:
    """Bucket a day's completion ratio into heatmap levels 0-4."""

    if total_habits <= 0 or completed_count <= 0:
        return 0
    # Integer comparisons keep the 25/50/75 boundaries exact.
    scaled = completed_count * 4
    if scaled < total_habits:
        return 1
    if scaled < 2 * total_habits:
        return 2
    if scaled < 3 * total_habits:
        return 3
    return 4


def overall_stats(
    habits: Sequence[HabitLike],
    all_logs: Iterable[HabitLogLike],
    today: DayLike,
) -> OverallStats:
    habit_count = len(habits)
    if habit_count == 0:
        return OverallStats(0, 0, 0, 0, 0, 0, 0)

    end = parse_day(today)
    week_start = end - timedelta(days=WEEKLY_WINDOW_DAYS - 1)
    month_start = end - timedelta(days=MONTHLY_WINDOW_DAYS - 1)

    per_habit = _days_by_habit(habits, all_logs)
    weekly = sum(_count_between(days, week_start, end) for days in per_habit.values())
    monthly = sum(_count_between(days, month_start, end) for days in per_habit.values())

    best = max((longest_streak(_as_logs(days)) for days in per_habit.values()), default=0)

    return OverallStats(
        total_habits=habit_count,
        completed_today=sum(1 for days in per_habit.values() if end in days),
        total_today=habit_count,
        best_streak=best,
        total_completions=sum(len(days) for days in per_habit.values()),
        weekly_completion_rate=min(percent(weekly, habit_count * WEEKLY_WINDOW_DAYS), 100),
        monthly_completion_rate=min(percent(monthly, habit_count * MONTHLY_WINDOW_DAYS), 100),
    )


def daily_stats(
    habits: Sequence[HabitLike],
    all_logs: Iterable[HabitLogLike],
    today: DayLike,
    days: int = 7,
) -> list[DailyStats]:
    """Per-day completed/total counts for the bar chart."""

    window = last_n_days(days, today)
    total = len(habits)
    counts = _completions_per_day(habits, all_logs)
    return [
        DailyStats(
            date=day,
            completed=counts.get(day, 0),
            total=total,
            percentage=percent(counts.get(day, 0), total),
        )
        for day in window
    ]


def heatmap_data(
    habits: Sequence[HabitLike],
    all_logs: Iterable[HabitLogLike],
    today: DayLike,
    days: int = 84,
) -> list[HeatmapDay]:
    """Calendar heatmap cells for the last ``days`` days, oldest first."""

    total = len(habits)
    counts = _completions_per_day(habits, all_logs)
    return [
        HeatmapDay(
            date=day,
            completed=counts.get(day, 0),
            total=total,
            level=heatmap_level(counts.get(day, 0), total),
        )
        for day in last_n_days(days, today)
    ]


def habit_details(
    habits: Sequence[HabitLike],
    all_logs: Iterable[HabitLogLike],
    today: DayLike,
    days: int = 30,
) -> list[HabitWithStats]:
    """Per-habit streaks plus a completion strip for the last ``days`` days."""

    window = [parse_day(day) for day in last_n_days(days, today)]
    per_habit = _days_by_habit(habits, all_logs)
    results = []
    for habit in habits:
        done = per_habit[habit.id]
        recent = [day in done for day in window]
        logs = _as_logs(done)
        results.append(
            HabitWithStats(
                habit_id=habit.id,
                name=habit.name,
                current_streak=current_streak(logs, today),
                longest_streak=longest_streak(logs),
                total_completions=len(done),
                completion_rate=percent(sum(recent), len(window)),
                recent_days=recent,
            )
        )
    return results


def completion_stats(
    habits: Sequence[HabitLike],
    all_logs: Iterable[HabitLogLike],
    start: DayLike,
    end: DayLike,
) -> CompletionStats:
    """Completed habit-days over every possible habit-day in the range."""

    if not habits:
        return CompletionStats(total=0, completed=0, percentage=0)
    first, last = parse_day(start), parse_day(end)
    per_habit = _days_by_habit(habits, all_logs)
    completed = sum(_count_between(days, first, last) for days in per_habit.values())
    total = len(habits) * days_in_range(first, last)
    return CompletionStats(total=total, completed=completed, percentage=percent(completed, total))


def best_habits(habits: Iterable[HabitLike], limit: int = 3) -> list[HabitLike]:
    """Active habits with the highest cached current streak."""

    active = [habit for habit in habits if getattr(habit, "is_active", True)]
    return sorted(active, key=lambda habit: habit.current_streak, reverse=True)[:limit]


def _completions_per_day(
    habits: Sequence[HabitLike], all_logs: Iterable[HabitLogLike]
) -> dict[str, int]:
    counts: dict[str, int] = defaultdict(int)
    for days in _days_by_habit(habits, all_logs).values():
        for day in days:
            counts[format_day(day)] += 1
    return counts


@dataclass(slots=True, frozen=True)
class _DayLog:
    occurred_on: date
    completed: bool = True


def _as_logs(days: Iterable[date]) -> list[_DayLog]:
    return [_DayLog(day) for day in days]


__all__ = [
    "CompletionStats",
    "DailyStats",
    "HabitStatus",
    "HabitWithStats",
    "HeatmapDay",
    "OverallStats",
    "WeeklyProgress",
    "best_habits",
    "completion_stats",
    "daily_stats",
    "daily_status",
    "habit_details",
    "heatmap_data",
    "heatmap_level",
    "overall_stats",
    "weekly_progress",
]
