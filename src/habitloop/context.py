"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelBadHabitRepository,
    SQLModelHabitRepository,
    SQLModelIdentityRepository,
    SQLModelScorecardRepository,
    SQLModelSettingsRepository,
)
from .services.dates import local_today
from .services.tracking import HabitDataCache, HabitTracker


@dataclass
class AppContext:
    """Repositories and services shared by the web app and the CLI."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory

    habit_repo: SQLModelHabitRepository
    identity_repo: SQLModelIdentityRepository
    scorecard_repo: SQLModelScorecardRepository
    bad_habit_repo: SQLModelBadHabitRepository
    settings_repo: SQLModelSettingsRepository

    cache: HabitDataCache
    tracker: HabitTracker

    def today(self) -> date:
        """Today in the configured timezone."""

        return local_today(self.config.TIMEZONE)


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    habit_repo = SQLModelHabitRepository(session_factory)
    cache = HabitDataCache()

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habit_repo=habit_repo,
        identity_repo=SQLModelIdentityRepository(session_factory),
        scorecard_repo=SQLModelScorecardRepository(session_factory),
        bad_habit_repo=SQLModelBadHabitRepository(session_factory),
        settings_repo=SQLModelSettingsRepository(session_factory),
        cache=cache,
        tracker=HabitTracker(habit_repo, timezone=config.TIMEZONE, cache=cache),
    )


__all__ = ["AppContext", "create_app_context"]
