"""Pytest configuration and shared fixtures for HabitLoop tests.

Every test gets its own in-memory database and a data directory under
``tmp_path`` so logs and exports never touch the working tree.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlmodel import select

from habitloop.config import TestConfig
from habitloop.infra.database import bootstrap_database, create_session_factory
from habitloop.infra.repositories import SQLModelHabitRepository
from habitloop.models import Habit, HabitLog, User
from habitloop.services.tracking import HabitDataCache, HabitTracker

TEST_PASSWORD = "Sup3rSecret"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point configuration at a temporary data directory."""

    monkeypatch.setenv("HABITLOOP_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("HABITLOOP_TIMEZONE", "UTC")
    monkeypatch.setenv("HABITLOOP_SECRET_KEY", "test-secret")
    monkeypatch.delenv("HABITLOOP_DATABASE_URL", raising=False)
    monkeypatch.delenv("HABITLOOP_TEST_DATABASE_URL", raising=False)
    return tmp_path


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def test_config(isolated_env):
    return TestConfig()


@pytest.fixture
def db_engine(test_config):
    """Engine with every table created; disposed after the test."""

    engine, _ = bootstrap_database(test_config)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Commit-or-rollback session factory bound to ``db_engine``."""

    return create_session_factory(db_engine)


@pytest.fixture
def user_factory(session_factory):
    def _create_user(email: str = "tester@example.com") -> User:
        with session_factory() as session:
            existing = session.exec(select(User).where(User.email == email)).first()
            if existing is not None:
                session.expunge(existing)
                return existing
            row = User(email=email, password_hash="dummy-hash")
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default owner for scoped data."""

    return user_factory()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(session_factory, user):
    """Factory for persisted habits with every required field filled in."""

    def _create_habit(
        name: str = "Read",
        *,
        frequency: str = "daily",
        target_days: list[int] | None = None,
        routine_type: str = "anytime",
        is_active: bool = True,
        created_at: datetime | None = None,
        owner: User | None = None,
    ) -> Habit:
        owner = owner or user
        habit = Habit(
            user_id=owner.id,
            name=name,
            identity_reason="I am a reader",
            action="read",
            time_of_day="21:00",
            location="bedroom",
            two_minute_version="Read one page",
            cue="Phone on the charger",
            frequency=frequency,
            target_days=target_days,
            routine_type=routine_type,
            is_active=is_active,
        )
        if created_at is not None:
            habit.created_at = created_at
        with session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        return habit

    return _create_habit


@pytest.fixture
def log_factory(session_factory):
    """Factory for habit logs; ``days`` may be a single date or several."""

    def _create_logs(habit: Habit, *days: date, completed: bool = True) -> list[HabitLog]:
        rows = [
            HabitLog(habit_id=habit.id, user_id=habit.user_id, log_date=day, completed=completed)
            for day in days
        ]
        with session_factory() as session:
            session.add_all(rows)
            session.commit()
            for row in rows:
                session.refresh(row)
            session.expunge_all()
        return rows

    return _create_logs


@pytest.fixture
def habit_repo(session_factory):
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def tracker(habit_repo):
    return HabitTracker(habit_repo, timezone="UTC", cache=HabitDataCache())


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(isolated_env):
    from habitloop import create_app

    app = create_app("testing")
    yield app
    app.extensions["habitloop"].engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Client signed in as a freshly created account."""

    response = client.post(
        "/auth/signup",
        json={"email": "owner@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 201, response.get_json()
    return client


@pytest.fixture
def habit_payload():
    def _payload(**overrides) -> dict:
        payload = {
            "name": "Meditate",
            "identity_reason": "I am calm",
            "action": "meditate",
            "time_of_day": "07:00",
            "location": "living room",
            "two_minute_version": "Sit for two minutes",
            "cue": "After coffee",
            "routine_type": "morning",
        }
        payload.update(overrides)
        return payload

    return _payload
