"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitLog


class HabitRepository(Protocol):
    """Repository for habits and their day logs, scoped by owner."""

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List habits, optionally including archived ones."""
        ...

    def list_active(self, *, user_id: int) -> list[Habit]:
        """List only active habits."""
        ...

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit."""
        ...

    def archive(self, habit_id: int, *, user_id: int) -> bool:
        """Soft-delete a habit, keeping its logs."""
        ...

    def toggle_active(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Flip the active flag of a habit."""
        ...

    def list_user_timezones(self) -> list[tuple[int, str]]:
        """(user_id, timezone) for every user owning at least one habit."""
        ...

    # Habit log operations
    def get_log(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitLog]:
        """Get the log for one habit on one day."""
        ...

    def list_logs(self, habit_id: int, *, user_id: int) -> list[HabitLog]:
        """Every log of a habit, oldest first."""
        ...

    def get_logs_for_habit(
        self, habit_id: int, start_date: date, end_date: date, *, user_id: int
    ) -> list[HabitLog]:
        """Logs for a habit within an inclusive date range."""
        ...

    def list_logs_for_user(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        active_only: bool = True,
    ) -> list[HabitLog]:
        """Logs across a user's habits."""
        ...

    def upsert_log(
        self,
        habit_id: int,
        occurred_on: date,
        completed: bool,
        *,
        user_id: int,
        note: Optional[str] = None,
    ) -> HabitLog:
        """Insert or update the log for a day."""
        ...

    def toggle_log(self, habit_id: int, occurred_on: date, *, user_id: int) -> HabitLog:
        """Flip completion for a day, creating a completed log on first toggle."""
        ...

    def set_note(self, habit_id: int, occurred_on: date, note: str, *, user_id: int) -> HabitLog:
        """Attach a note to a day's log."""
        ...

    def save_streaks(
        self, habit_id: int, current: int, longest: int, *, user_id: int
    ) -> Optional[Habit]:
        """Persist recomputed streak counters onto the habit."""
        ...
