"""Pytest configuration and shared fixtures for HabitFlow tests.

Provides an isolated SQLite database per test, a session factory matching the
one repositories receive in production, and factories for users, habits and
logs. Pure engine tests use the lightweight ``DayLog`` double instead.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from habitflow.infra.database import create_session_factory
from habitflow.infra.repositories import SQLModelHabitRepository
from habitflow.models import Habit, HabitLog, User

# A fixed "today" so date-relative tests never depend on the wall clock.
TODAY = date(2024, 3, 10)


@dataclass
class DayLog:
    """Minimal log double for the pure streak functions."""

    occurred_on: object
    completed: bool = True
    habit_id: int = 1


@dataclass
class FakeHabit:
    id: int
    name: str = "Habit"
    frequency: str = "daily"
    target_frequency: int = 1
    current_streak: int = 0
    longest_streak: int = 0
    is_active: bool = True


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    """Keep BaseConfig() from creating ./instance during tests."""
    monkeypatch.setenv("HABITFLOW_DATA_DIR", str(tmp_path / "instance"))
    monkeypatch.delenv("HABITFLOW_DATABASE_URL", raising=False)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory with the same commit/rollback behaviour as production."""
    return create_session_factory(db_engine)


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(db_session) -> User:
    """Create a default user for scoping data."""

    existing = db_session.exec(select(User).where(User.username == "tester")).first()
    if existing:
        return existing
    u = User(username="tester")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def other_user(db_session) -> User:
    u = User(username="someone-else")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def habit_factory(db_session, user):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        frequency: str = "daily",
        target_frequency: int = 1,
        is_active: bool = True,
        owner: Optional[User] = None,
        **fields,
    ) -> Habit:
        owner = owner or user
        habit = Habit(
            user_id=owner.id,
            name=name,
            frequency=frequency,
            target_frequency=target_frequency,
            is_active=is_active,
            **fields,
        )
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def log_factory(db_session):
    """Factory for persisting HabitLog rows directly."""

    def _create_log(habit: Habit, occurred_on: date, completed: bool = True, **fields) -> HabitLog:
        log = HabitLog(
            habit_id=habit.id,
            occurred_on=occurred_on,
            completed=completed,
            completed_count=1 if completed else 0,
            **fields,
        )
        db_session.add(log)
        db_session.commit()
        db_session.refresh(log)
        return log

    return _create_log
