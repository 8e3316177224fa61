"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User

FREQUENCIES = ("daily", "weekly")
CATEGORIES = ("health", "productivity", "mindfulness", "fitness", "learning", "other")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Habit(SQLModel, table=True):
    """A user-defined habit with cached streak counters.

    ``current_streak`` and ``longest_streak`` are derived from the habit's logs
    and rewritten after every toggle; the logs stay the source of truth.
    """

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: str = Field(default="other", max_length=32)
    frequency: str = Field(default="daily", max_length=16)
    target_frequency: int = Field(default=1, nullable=False)
    color: str = Field(default="#6366f1", max_length=7)
    icon: Optional[str] = Field(default=None, max_length=16)
    is_active: bool = Field(default=True, nullable=False)

    current_streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    logs: list["HabitLog"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitLog", back_populates="habit", cascade="all, delete-orphan"
        ),
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="habits"))


class HabitLog(SQLModel, table=True):
    """Completion record for one habit on one calendar day."""

    __tablename__: ClassVar[str] = "habit_log"
    __table_args__ = (UniqueConstraint("habit_id", "occurred_on", name="uq_habit_log_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    occurred_on: date = Field(nullable=False, index=True)
    completed: bool = Field(default=False, nullable=False)
    completed_count: int = Field(default=0, nullable=False)
    note: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    habit: "Habit" = Relationship(
        back_populates="logs",
        sa_relationship=relationship("Habit", back_populates="logs"),
    )
