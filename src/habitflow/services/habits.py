"""Habit service: check-ins and the cached streak counters they drive."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..domain.repositories.habit import HabitRepository
from ..models.habit import CATEGORIES, FREQUENCIES
from .dates import DayLike, parse_day
from .streaks import StreakStats, streak_stats

logger = logging.getLogger("habitflow.services.habits")

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_NAME_LENGTH = 100
TARGET_RANGE = (1, 10)


class HabitValidationError(ValueError):
    """Raised when a habit fails validation; ``errors`` maps field to messages."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(
            "; ".join(f"{field}: {', '.join(messages)}" for field, messages in errors.items())
        )


@dataclass(slots=True)
class ToggleResult:
    """Outcome of a check-in toggle."""

    log: Any
    completed: bool
    stats: StreakStats

    @property
    def message(self) -> str:
        return "Habit completed!" if self.completed else "Habit unchecked"


def validate_habit(habit: Any) -> dict[str, list[str]]:
    """Return field errors for a habit about to be saved (empty when valid)."""

    errors: dict[str, list[str]] = {}

    name = (getattr(habit, "name", None) or "").strip()
    if not name:
        errors["name"] = ["Habit name is required"]
    elif len(name) > MAX_NAME_LENGTH:
        errors["name"] = [f"Habit name must be less than {MAX_NAME_LENGTH} characters"]

    low, high = TARGET_RANGE
    target = getattr(habit, "target_frequency", None)
    if type(target) is not int or not low <= target <= high:  # bool is an int subclass
        errors["target_frequency"] = [f"Target must be between {low} and {high}"]

    if not _COLOR_RE.match(getattr(habit, "color", None) or ""):
        errors["color"] = ["Invalid color format"]

    if getattr(habit, "frequency", None) not in FREQUENCIES:
        errors["frequency"] = [f"Frequency must be one of: {', '.join(FREQUENCIES)}"]

    if getattr(habit, "category", None) not in CATEGORIES:
        errors["category"] = [f"Category must be one of: {', '.join(CATEGORIES)}"]

    return errors


def create_habit(repo: HabitRepository, habit: Any, *, user_id: int) -> Any:
    """Validate a new habit and persist it for ``user_id``.

    Raises:
        HabitValidationError: one or more fields are invalid; nothing is written.
    """

    errors = validate_habit(habit)
    if errors:
        raise HabitValidationError(errors)
    return repo.create(habit, user_id=user_id)


def update_habit(repo: HabitRepository, habit: Any, *, user_id: int) -> Any:
    """Validate changes to an existing habit and persist them."""

    errors = validate_habit(habit)
    if errors:
        raise HabitValidationError(errors)
    get_habit_or_raise(repo, habit.id, user_id=user_id)
    return repo.update(habit, user_id=user_id)


def refresh_streaks(
    repo: HabitRepository, habit_id: int, *, user_id: int, today: DayLike
) -> StreakStats:
    """Recompute streaks from the habit's full log history and persist them.

    Raises:
        LookupError: the habit does not exist for this user.
    """

    logs = repo.list_logs(habit_id, user_id=user_id)
    stats = streak_stats(logs, today)
    saved = repo.save_streaks(
        habit_id, stats.current_streak, stats.longest_streak, user_id=user_id
    )
    if saved is None:
        raise LookupError(f"Habit {habit_id} not found for user {user_id}")
    logger.debug(
        "Habit %s streaks recomputed: current=%s longest=%s",
        habit_id,
        stats.current_streak,
        stats.longest_streak,
    )
    return stats


def toggle_completion(
    repo: HabitRepository,
    habit_id: int,
    *,
    user_id: int,
    day: DayLike,
    today: DayLike,
) -> ToggleResult:
    """Flip a habit's completion for ``day`` and refresh its cached streaks."""

    log = repo.toggle_log(habit_id, parse_day(day), user_id=user_id)
    stats = refresh_streaks(repo, habit_id, user_id=user_id, today=today)
    logger.info(
        "Habit %s %s on %s",
        habit_id,
        "completed" if log.completed else "unchecked",
        log.occurred_on,
        extra={"user_id": user_id, "current_streak": stats.current_streak},
    )
    return ToggleResult(log=log, completed=log.completed, stats=stats)


def set_note(
    repo: HabitRepository, habit_id: int, *, user_id: int, day: DayLike, note: str
) -> Any:
    """Save a note on a day's log. Completion and streaks are unaffected."""

    return repo.set_note(habit_id, parse_day(day), note.strip(), user_id=user_id)


def recalculate_all(repo: HabitRepository, *, user_id: int, today: DayLike) -> int:
    """Re-derive cached streaks for every habit of a user.

    Returns how many habits had drifted from their logs. Running it twice in a
    row returns 0 the second time.
    """

    changed = 0
    for habit in repo.list_all(user_id=user_id, include_inactive=True):
        stats = streak_stats(repo.list_logs(habit.id, user_id=user_id), today)
        if (habit.current_streak, habit.longest_streak) == (
            stats.current_streak,
            stats.longest_streak,
        ):
            continue
        repo.save_streaks(habit.id, stats.current_streak, stats.longest_streak, user_id=user_id)
        changed += 1
        logger.info(
            "Corrected streak drift on habit %s: %s/%s -> %s/%s",
            habit.id,
            habit.current_streak,
            habit.longest_streak,
            stats.current_streak,
            stats.longest_streak,
        )
    return changed


def get_habit_or_raise(repo: HabitRepository, habit_id: int, *, user_id: int) -> Any:
    habit: Optional[Any] = repo.get_by_id(habit_id, user_id=user_id)
    if habit is None:
        raise LookupError(f"Habit {habit_id} not found for user {user_id}")
    return habit


__all__ = [
    "HabitValidationError",
    "ToggleResult",
    "create_habit",
    "get_habit_or_raise",
    "recalculate_all",
    "refresh_streaks",
    "set_note",
    "toggle_completion",
    "update_habit",
    "validate_habit",
]
