"""Background scheduler for nightly streak drift correction."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import BaseConfig
from .domain.repositories.habit import HabitRepository
from .services.dates import local_today
from .services.habits import recalculate_all

logger = logging.getLogger("habitflow.scheduler")

RECALC_JOB_ID = "nightly_streak_recalc"


class StreakScheduler:
    """Runs ``recalculate_all`` for every user once a night.

    Cached streaks go stale at midnight even without a toggle (yesterday's grace
    day expires), so the nightly pass keeps them in line with the logs.
    """

    def __init__(
        self,
        config: BaseConfig,
        repo: HabitRepository,
        *,
        today_provider: Optional[Callable[[str], str]] = None,
    ):
        self.config = config
        self.repo = repo
        # Maps a user timezone name to that user's current day.
        self.today_provider = today_provider or (lambda tz_name: local_today(tz_name))
        self.scheduler: Optional[BackgroundScheduler] = None

    def start(self) -> None:
        """Start the background scheduler."""
        if not self.config.RECALC_ENABLED:
            logger.info("Nightly streak recalculation disabled by configuration")
            return

        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler(timezone=self.config.DEFAULT_TIMEZONE)
        self.scheduler.add_job(
            func=self.run_recalculation,
            trigger=CronTrigger(hour=self.config.RECALC_HOUR, minute=0),
            id=RECALC_JOB_ID,
            name="Nightly Streak Recalculation",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Scheduled streak recalculation at %02d:00", self.config.RECALC_HOUR)

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_recalculation(self) -> int:
        """Recalculate every user's habits; returns the number of corrected habits.

        Each user is replayed against today in their own timezone. A failure for
        one user is logged and does not stop the others.
        """
        total = 0
        for user_id, tz_name in self.repo.list_user_timezones():
            try:
                today = self.today_provider(tz_name)
                total += recalculate_all(self.repo, user_id=user_id, today=today)
            except Exception as exc:
                logger.error(
                    f"Streak recalculation failed for user {user_id}: {exc}", exc_info=True
                )
        logger.info("Nightly streak recalculation finished", extra={"corrected": total})
        return total


def create_scheduler(
    config: BaseConfig, repo: HabitRepository, *, auto_start: bool = False
) -> StreakScheduler:
    """Create and optionally start a streak scheduler."""
    scheduler = StreakScheduler(config, repo)
    if auto_start:
        scheduler.start()
    return scheduler
