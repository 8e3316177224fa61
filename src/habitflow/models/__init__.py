"""SQLModel table exports."""

from .habit import CATEGORIES, FREQUENCIES, Habit, HabitLog
from .user import User

__all__ = [
    "CATEGORIES",
    "FREQUENCIES",
    "Habit",
    "HabitLog",
    "User",
]
