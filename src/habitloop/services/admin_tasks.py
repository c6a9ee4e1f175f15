"""Admin utilities: demo seed, data import and zipped export bundles."""

from __future__ import annotations

import copy
import os
import random
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Callable, Optional
from zipfile import ZipFile

from sqlmodel import Session, select

from ..errors import persistence_guard
from ..logging_config import get_logger
from ..models import BadHabit, Habit, HabitLog, Identity, ScorecardItem, UserSetting
from .charts import export_heatmap_png, export_progress_png
from .dates import HEATMAP_WINDOW_DAYS, days_in_window, to_date_key
from .export import (
    ExportBundle,
    build_export_bundle,
    export_csv,
    export_json,
    export_markdown,
)
from .progress import combined_heat_map, daily_series, export_stats
from .schedule import is_due_on
from .streaks import compute_streaks

SessionFactory = Callable[[], AbstractContextManager[Session]]

logger = get_logger(__name__)

EXPORT_RETENTION = 5
DEMO_HISTORY_DAYS = 45


@dataclass(frozen=True)
class SeedSummary:
    """Aggregate counts returned after demo seeding."""

    habits: int
    logs: int
    scorecard_items: int
    bad_habits: int
    identity: bool


@dataclass(frozen=True)
class ImportSummary:
    habits: int
    logs: int
    scorecard_items: int
    bad_habits: int
    identity: bool


_DEMO_HABITS = [
    {
        "name": "Morning meditation",
        "identity_reason": "I am a calm person who starts the day with intention",
        "action": "meditate",
        "time_of_day": "7:00",
        "location": "the living room",
        "two_minute_version": "Sit down and take three deep breaths",
        "cue": "After I pour my coffee",
        "habit_stacking": "After I pour my coffee, I will meditate",
        "friction_reducers": ["Leave the cushion out"],
        "routine_type": "morning",
        "frequency": "daily",
    },
    {
        "name": "Read before bed",
        "identity_reason": "I am a reader",
        "action": "read",
        "time_of_day": "22:00",
        "location": "bed",
        "two_minute_version": "Read one page",
        "cue": "When I get into bed",
        "friction_reducers": ["Book on the pillow"],
        "routine_type": "evening",
        "frequency": "daily",
    },
    {
        "name": "Strength workout",
        "identity_reason": "I am someone who never misses a workout twice",
        "action": "lift weights",
        "time_of_day": "18:00",
        "location": "the gym",
        "two_minute_version": "Put on your workout shoes",
        "cue": "When I leave work",
        "temptation_bundling": "Only listen to my favourite podcast at the gym",
        "routine_type": "anytime",
        "frequency": "weekly",
        "target_days": [1, 3, 5],
    },
    {
        "name": "Journal",
        "identity_reason": "I am someone who reflects",
        "action": "write in my journal",
        "time_of_day": "21:30",
        "location": "my desk",
        "two_minute_version": "Write one sentence",
        "cue": "After dinner",
        "routine_type": "evening",
        "frequency": "custom",
        "target_days": [0, 6],
    },
]

_DEMO_SCORECARD = [
    ("Check phone after waking up", "negative", "Twenty minutes of scrolling"),
    ("Make the bed", "positive", None),
    ("Drink coffee", "neutral", None),
    ("Snack while watching TV", "negative", None),
]

_DEMO_BAD_HABITS = [
    {
        "name": "Late-night scrolling",
        "cue": "Phone on the nightstand",
        "craving": "Wanting to switch off",
        "response": "Scroll social media for an hour",
        "reward": "Distraction",
        "make_invisible": "Charge the phone in the kitchen",
        "make_difficult": "Log out of the apps every night",
    },
]


def _seed_habits(session: Session, user_id: int, today: date, rng: random.Random) -> tuple[int, int]:
    habit_count = log_count = 0
    for template in _DEMO_HABITS:
        existing = session.exec(
            select(Habit).where(Habit.name == template["name"], Habit.user_id == user_id)
        ).first()
        if existing is not None:
            continue
        habit = Habit(user_id=user_id, **copy.deepcopy(template))
        session.add(habit)
        session.flush()
        habit_count += 1

        logs = []
        for day in days_in_window(today - timedelta(days=1), DEMO_HISTORY_DAYS):
            if not is_due_on(habit, day):
                continue
            logs.append(
                HabitLog(
                    habit_id=habit.id,  # type: ignore[arg-type]
                    user_id=user_id,
                    log_date=day,
                    completed=rng.random() < 0.75,
                )
            )
        session.add_all(logs)
        log_count += len(logs)

        result = compute_streaks(habit, logs, today)
        habit.current_streak = result.current
        habit.longest_streak = result.longest
        session.add(habit)
    session.flush()
    return habit_count, log_count


def _seed_identity(session: Session, user_id: int) -> bool:
    if session.exec(select(Identity).where(Identity.user_id == user_id)).first() is not None:
        return False
    session.add(
        Identity(
            user_id=user_id,
            who_you_want_to_be="A healthy, curious person who keeps promises to myself",
            core_values=["Health", "Curiosity", "Discipline"],
        )
    )
    return True


def _seed_scorecard(session: Session, user_id: int) -> int:
    added = 0
    for name, rating, notes in _DEMO_SCORECARD:
        existing = session.exec(
            select(ScorecardItem).where(
                ScorecardItem.habit_name == name, ScorecardItem.user_id == user_id
            )
        ).first()
        if existing is None:
            session.add(ScorecardItem(user_id=user_id, habit_name=name, rating=rating, notes=notes))
            added += 1
    return added


def _seed_bad_habits(session: Session, user_id: int) -> int:
    added = 0
    for template in _DEMO_BAD_HABITS:
        existing = session.exec(
            select(BadHabit).where(BadHabit.name == template["name"], BadHabit.user_id == user_id)
        ).first()
        if existing is None:
            session.add(BadHabit(user_id=user_id, **template))
            added += 1
    return added


def run_demo_seed(
    session_factory: SessionFactory,
    *,
    user_id: int,
    today: Optional[date] = None,
    seed: Optional[int] = None,
) -> SeedSummary:
    """Seed demo data idempotently and return what was added."""

    today = today or date.today()
    rng = random.Random(seed if seed is not None else user_id)
    with persistence_guard("seed demo data"), session_factory() as session:
        habits, logs = _seed_habits(session, user_id, today, rng)
        identity = _seed_identity(session, user_id)
        scorecard = _seed_scorecard(session, user_id)
        bad = _seed_bad_habits(session, user_id)
        session.commit()
    summary = SeedSummary(
        habits=habits, logs=logs, scorecard_items=scorecard, bad_habits=bad, identity=identity
    )
    logger.info("Demo data seeded", extra={"user_id": user_id, "habits": habits, "logs": logs})
    return summary


def reset_user_data(session_factory: SessionFactory, *, user_id: int) -> None:
    """Delete every row the user owns, keeping the account itself."""

    with persistence_guard("reset user data"), session_factory() as session:
        for model in (HabitLog, Habit, Identity, ScorecardItem, BadHabit, UserSetting):
            rows = session.exec(select(model).where(getattr(model, "user_id") == user_id)).all()  # type: ignore[attr-defined]
            for row in rows:
                session.delete(row)
        session.commit()
    logger.info("User data reset", extra={"user_id": user_id})


def collect_bundle(
    session_factory: SessionFactory,
    *,
    user_id: int,
    today: date,
    version: str = "1.0",
) -> ExportBundle:
    """Load everything a user owns into an :class:`ExportBundle`."""

    with persistence_guard("collect export data"), session_factory() as session:
        identity = session.exec(select(Identity).where(Identity.user_id == user_id)).first()
        habits = list(
            session.exec(
                select(Habit).where(Habit.user_id == user_id).order_by(Habit.created_at, Habit.id)  # type: ignore[arg-type]
            ).all()
        )
        logs = list(
            session.exec(
                select(HabitLog)
                .where(HabitLog.user_id == user_id)
                .order_by(HabitLog.habit_id, HabitLog.log_date)  # type: ignore[arg-type]
            ).all()
        )
        scorecard = list(
            session.exec(
                select(ScorecardItem)
                .where(ScorecardItem.user_id == user_id)
                .order_by(ScorecardItem.created_at, ScorecardItem.id)  # type: ignore[arg-type]
            ).all()
        )
        bad_habits = list(
            session.exec(
                select(BadHabit).where(BadHabit.user_id == user_id).order_by(BadHabit.id)  # type: ignore[arg-type]
            ).all()
        )
        session.expunge_all()

    return build_export_bundle(
        identity=identity,
        habits=habits,
        habit_logs=logs,
        scorecard_items=scorecard,
        bad_habits=bad_habits,
        today=today,
        version=version,
    )


def import_bundle(
    bundle: ExportBundle, session_factory: SessionFactory, *, user_id: int
) -> ImportSummary:
    """Add the bundle's records to ``user_id``'s data.

    Ids in the bundle are not reused: habits get new ids and their logs are
    re-pointed. Logs for habit ids missing from the bundle are dropped, and a
    log for a (habit, day) that already exists overwrites its status. The
    identity statement replaces the current one.
    """

    now = datetime.now(timezone.utc)
    log_count = 0
    with persistence_guard("import export bundle"), session_factory() as session:
        id_map: dict[int, int] = {}
        for source in bundle.habits:
            payload = source.model_dump(exclude={"id", "user_id"})
            habit = Habit(user_id=user_id, **payload)
            session.add(habit)
            session.flush()
            if source.id is not None:
                id_map[source.id] = habit.id  # type: ignore[assignment]

        for source in bundle.habit_logs:
            habit_id = id_map.get(source.habit_id)
            if habit_id is None:
                logger.warning(
                    "Skipping imported log for unknown habit",
                    extra={"habit_id": source.habit_id, "log_date": to_date_key(source.log_date)},
                )
                continue
            existing = session.exec(
                select(HabitLog).where(HabitLog.habit_id == habit_id, HabitLog.log_date == source.log_date)
            ).first()
            if existing is not None:
                existing.completed = source.completed
                existing.notes = source.notes
                existing.updated_at = now
                session.add(existing)
            else:
                payload = source.model_dump(exclude={"id", "user_id", "habit_id"})
                session.add(HabitLog(habit_id=habit_id, user_id=user_id, **payload))
            log_count += 1

        for item in bundle.scorecard_items:
            session.add(ScorecardItem(user_id=user_id, **item.model_dump(exclude={"id", "user_id"})))
        for bad in bundle.bad_habits:
            session.add(BadHabit(user_id=user_id, **bad.model_dump(exclude={"id", "user_id"})))

        if bundle.identity is not None:
            identity = session.exec(select(Identity).where(Identity.user_id == user_id)).first()
            if identity is None:
                identity = Identity(user_id=user_id, who_you_want_to_be="")
            identity.who_you_want_to_be = bundle.identity.who_you_want_to_be
            identity.core_values = list(bundle.identity.core_values)
            identity.updated_at = now
            session.add(identity)
        session.commit()

    summary = ImportSummary(
        habits=len(id_map),
        logs=log_count,
        scorecard_items=len(bundle.scorecard_items),
        bad_habits=len(bundle.bad_habits),
        identity=bundle.identity is not None,
    )
    logger.info("Export bundle imported", extra={"user_id": user_id, "habits": summary.habits})
    return summary


def _ensure_secure_directory(directory: Path) -> None:
    """Create the directory and set restrictive permissions when possible."""

    directory.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(directory, 0o700)
    except (NotImplementedError, PermissionError):  # pragma: no cover - platform specific
        pass


def _prune_old_exports(directory: Path, keep: int = EXPORT_RETENTION) -> None:
    """Remove export archives beyond the retention count."""

    archives = sorted(
        directory.glob("habitloop_export_*.zip"),
        key=lambda file: (file.stat().st_mtime, file.name),
        reverse=True,
    )
    for old in archives[max(keep, 0):]:
        try:
            old.unlink()
        except OSError:  # pragma: no cover - best-effort cleanup
            logger.warning("Could not prune export archive", extra={"path": str(old)})


def run_export(
    output_dir: Path,
    session_factory: SessionFactory,
    *,
    user_id: int,
    today: Optional[date] = None,
    version: str = "1.0",
    retention: int = EXPORT_RETENTION,
) -> Path:
    """Write a zip with the JSON, CSV and Markdown exports plus PNG charts."""

    today = today or date.today()
    out_dir = Path(output_dir)
    _ensure_secure_directory(out_dir)
    bundle = collect_bundle(session_factory, user_id=user_id, today=today, version=version)

    active = [habit for habit in bundle.habits if habit.is_active]
    logs_by_habit: dict[int, list[HabitLog]] = {}
    for log in bundle.habit_logs:
        logs_by_habit.setdefault(log.habit_id, []).append(log)
    stats = export_stats(active, bundle.habit_logs, today)

    stamp = to_date_key(today)
    with TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        files = {
            f"habitloop-export-{stamp}.json": export_json(bundle),
            f"habitloop-export-{stamp}.csv": export_csv(bundle.habits, bundle.habit_logs),
            f"habitloop-summary-{stamp}.md": export_markdown(bundle.identity, active, stats, today),
        }
        for name, text in files.items():
            (tmp / name).write_text(text, encoding="utf-8")

        progress_png = export_progress_png(
            points=daily_series(active, logs_by_habit, end=today),
            output_path=tmp / f"progress-{stamp}.png",
        )
        heatmap_png = export_heatmap_png(
            cells=combined_heat_map(active, logs_by_habit, HEATMAP_WINDOW_DAYS, end=today),
            output_path=tmp / f"heatmap-{stamp}.png",
        )

        zip_name = f"habitloop_export_{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S%f')}.zip"
        zip_path = out_dir / zip_name
        with ZipFile(zip_path, "w") as archive:
            for name in files:
                archive.write(tmp / name, arcname=name)
            archive.write(progress_png, arcname=progress_png.name)
            archive.write(heatmap_png, arcname=heatmap_png.name)

    _prune_old_exports(out_dir, keep=retention)
    logger.info("Export archive written", extra={"user_id": user_id, "path": str(zip_path)})
    return zip_path


__all__ = [
    "EXPORT_RETENTION",
    "ImportSummary",
    "SeedSummary",
    "collect_bundle",
    "import_bundle",
    "reset_user_data",
    "run_demo_seed",
    "run_export",
]
