"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlmodel import Session, select

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelHabitRepository
from .logging_config import setup_logging
from .models.user import User
from .services.dates import local_today


@dataclass
class AppContext:
    """Wires configuration, storage and the habit repository together."""

    config: BaseConfig
    engine: Any
    session_factory: Callable[[], Session]
    habit_repo: SQLModelHabitRepository
    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("User is not authenticated")
        return self.current_user.id

    def today(self) -> str:
        """Today's date for the current user, in their own timezone."""

        tz_name = self.current_user.timezone if self.current_user else self.config.DEFAULT_TIMEZONE
        return local_today(tz_name)

    def ensure_user(self, username: str, *, timezone: Optional[str] = None) -> User:
        """Load or create the user row mirroring an external identity."""

        with self.session_factory() as session:
            user = session.exec(select(User).where(User.username == username)).first()
            if user is None:
                user = User(username=username, timezone=timezone or self.config.DEFAULT_TIMEZONE)
                session.add(user)
                session.commit()
                session.refresh(user)
            session.expunge(user)
        self.current_user = user
        return user


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    logger = setup_logging(config)
    engine, session_factory = bootstrap_database(config)
    logger.info("Application context ready", extra={"database_url": config.DATABASE_URL})

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habit_repo=SQLModelHabitRepository(session_factory),
    )
