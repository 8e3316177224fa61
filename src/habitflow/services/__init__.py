"""Service module exports."""

from . import aggregation, dates, habits, streaks

__all__ = [
    "aggregation",
    "dates",
    "habits",
    "streaks",
]
