"""SQLModel implementation of Habit repository."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.habit import Habit, HabitLog
from ...models.user import User

logger = logging.getLogger("habitflow.repositories.habit")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def _owned_habit(self, session: Session, habit_id: int, user_id: int) -> Habit:
        habit = session.exec(
            select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        ).first()
        if habit is None:
            raise LookupError(f"Habit {habit_id} not found for user {user_id}")
        return habit

    @staticmethod
    def _find_log(session: Session, habit_id: int, occurred_on: date) -> Optional[HabitLog]:
        return session.exec(
            select(HabitLog)
            .where(HabitLog.habit_id == habit_id)
            .where(HabitLog.occurred_on == occurred_on)
        ).first()

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List all habits, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at.desc(), Habit.id.desc())  # type: ignore
            )

            if not include_inactive:
                statement = statement.where(Habit.is_active == True)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_active(self, *, user_id: int) -> list[Habit]:
        """List only active habits."""
        return self.list_all(user_id=user_id, include_inactive=False)

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            logger.info("Created habit %s for user %s", habit.id, user_id)
            return habit

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            habit.updated_at = _utcnow()
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def archive(self, habit_id: int, *, user_id: int) -> bool:
        """Soft-delete a habit. Its logs are kept for analytics."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            habit.is_active = False
            habit.updated_at = _utcnow()
            session.add(habit)
            session.commit()
            return True

    def toggle_active(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Archive an active habit or restore an archived one."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return None
            habit.is_active = not habit.is_active
            habit.updated_at = _utcnow()
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def list_user_timezones(self) -> list[tuple[int, str]]:
        """(user_id, timezone) for every user that owns at least one habit."""
        with self.session_factory() as session:
            statement = (
                select(User.id, User.timezone)
                .join(Habit, Habit.user_id == User.id)
                .distinct()
                .order_by(User.id)
            )
            return [(user_id, tz_name) for user_id, tz_name in session.exec(statement).all()]

    # Habit log operations
    def get_log(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitLog]:
        """Get the log for one habit on one day."""
        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .join(Habit, Habit.id == HabitLog.habit_id)
                .where(Habit.user_id == user_id)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.occurred_on == occurred_on)
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_logs(self, habit_id: int, *, user_id: int) -> list[HabitLog]:
        """Every log of a habit, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .join(Habit, Habit.id == HabitLog.habit_id)
                .where(Habit.user_id == user_id)
                .where(HabitLog.habit_id == habit_id)
                .order_by(HabitLog.occurred_on)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_logs_for_habit(
        self, habit_id: int, start_date: date, end_date: date, *, user_id: int
    ) -> list[HabitLog]:
        """Get logs for a habit within a date range."""
        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .join(Habit, Habit.id == HabitLog.habit_id)
                .where(Habit.user_id == user_id)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.occurred_on >= start_date)
                .where(HabitLog.occurred_on <= end_date)
                .order_by(HabitLog.occurred_on)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_logs_for_user(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        active_only: bool = True,
    ) -> list[HabitLog]:
        """Logs across a user's habits, optionally bounded by date."""
        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .join(Habit, Habit.id == HabitLog.habit_id)
                .where(Habit.user_id == user_id)
            )
            if active_only:
                statement = statement.where(Habit.is_active == True)  # noqa: E712
            if start_date is not None:
                statement = statement.where(HabitLog.occurred_on >= start_date)
            if end_date is not None:
                statement = statement.where(HabitLog.occurred_on <= end_date)
            statement = statement.order_by(HabitLog.occurred_on, HabitLog.habit_id)  # type: ignore

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

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
        with self.session_factory() as session:
            self._owned_habit(session, habit_id, user_id)
            log = self._find_log(session, habit_id, occurred_on)
            if log is None:
                log = HabitLog(habit_id=habit_id, occurred_on=occurred_on)
            log.completed = completed
            log.completed_count = 1 if completed else 0
            if note is not None:
                log.note = note
            log.updated_at = _utcnow()
            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def toggle_log(self, habit_id: int, occurred_on: date, *, user_id: int) -> HabitLog:
        """Flip completion for a day.

        The first toggle creates a completed log; later toggles flip it in place.
        """
        with self.session_factory() as session:
            self._owned_habit(session, habit_id, user_id)
            log = self._find_log(session, habit_id, occurred_on)
            if log is None:
                log = HabitLog(
                    habit_id=habit_id,
                    occurred_on=occurred_on,
                    completed=True,
                    completed_count=1,
                )
            else:
                log.completed = not log.completed
                log.completed_count = 1 if log.completed else 0
                log.updated_at = _utcnow()
            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def set_note(self, habit_id: int, occurred_on: date, note: str, *, user_id: int) -> HabitLog:
        """Attach a note, creating an uncompleted log if the day has none."""
        with self.session_factory() as session:
            self._owned_habit(session, habit_id, user_id)
            log = self._find_log(session, habit_id, occurred_on)
            if log is None:
                log = HabitLog(habit_id=habit_id, occurred_on=occurred_on, completed=False)
            log.note = note
            log.updated_at = _utcnow()
            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def save_streaks(
        self, habit_id: int, current: int, longest: int, *, user_id: int
    ) -> Optional[Habit]:
        """Write cached streak counters back onto the habit."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return None
            habit.current_streak = current
            habit.longest_streak = longest
            habit.updated_at = _utcnow()
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit
