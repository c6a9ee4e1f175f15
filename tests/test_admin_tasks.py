"""Demo seed, import and archive export."""

from __future__ import annotations

import os
from datetime import date, timedelta
from zipfile import ZipFile

from habitloop.infra.repositories import SQLModelIdentityRepository, SQLModelScorecardRepository
from habitloop.services import admin_tasks
from habitloop.services.export import export_json, load_json_export
from habitloop.services.streaks import compute_streaks

TODAY = date(2024, 3, 22)


def test_demo_seed_is_idempotent(session_factory, user, habit_repo):
    first = admin_tasks.run_demo_seed(session_factory, user_id=user.id, today=TODAY, seed=1)
    assert first.habits == 4
    assert first.logs > 0
    assert first.identity is True
    assert first.scorecard_items == 4
    assert first.bad_habits == 1

    second = admin_tasks.run_demo_seed(session_factory, user_id=user.id, today=TODAY, seed=1)
    assert (second.habits, second.logs, second.scorecard_items, second.bad_habits) == (0, 0, 0, 0)
    assert second.identity is False
    assert len(habit_repo.list_habits(user_id=user.id)) == 4


def test_demo_seed_writes_consistent_streak_cache(session_factory, user, habit_repo):
    admin_tasks.run_demo_seed(session_factory, user_id=user.id, today=TODAY, seed=3)
    for habit in habit_repo.list_habits(user_id=user.id):
        logs = habit_repo.list_logs(habit.id, user_id=user.id)
        assert all(log.log_date < TODAY for log in logs)
        result = compute_streaks(habit, logs, TODAY)
        assert (habit.current_streak, habit.longest_streak) == (result.current, result.longest)


def test_reset_user_data_keeps_other_users(session_factory, user, user_factory, habit_repo):
    other = user_factory("other@example.com")
    admin_tasks.run_demo_seed(session_factory, user_id=user.id, today=TODAY)
    admin_tasks.run_demo_seed(session_factory, user_id=other.id, today=TODAY)

    admin_tasks.reset_user_data(session_factory, user_id=user.id)
    assert habit_repo.list_habits(user_id=user.id, include_inactive=True) == []
    assert habit_repo.list_all_logs(user_id=user.id) == []
    assert len(habit_repo.list_habits(user_id=other.id)) == 4


def test_import_remaps_habit_ids(session_factory, user, user_factory, habit_repo):
    source = user_factory("source@example.com")
    admin_tasks.run_demo_seed(session_factory, user_id=source.id, today=TODAY)
    bundle = admin_tasks.collect_bundle(session_factory, user_id=source.id, today=TODAY)
    bundle = load_json_export(export_json(bundle))

    summary = admin_tasks.import_bundle(bundle, session_factory, user_id=user.id)
    assert summary.habits == len(bundle.habits)
    assert summary.logs == len(bundle.habit_logs)
    assert summary.identity is True

    imported = habit_repo.list_habits(user_id=user.id)
    assert {h.name for h in imported} == {h.name for h in bundle.habits}
    assert not {h.id for h in imported} & {h.id for h in bundle.habits}
    assert len(habit_repo.list_all_logs(user_id=user.id)) == len(bundle.habit_logs)

    identity = SQLModelIdentityRepository(session_factory).get(user_id=user.id)
    assert identity.core_values == bundle.identity.core_values
    assert len(SQLModelScorecardRepository(session_factory).list_items(user_id=user.id)) == 4


def test_import_skips_logs_for_unknown_habits(session_factory, user, habit_factory, log_factory):
    habit = habit_factory()
    log_factory(habit, TODAY)
    bundle = admin_tasks.collect_bundle(session_factory, user_id=user.id, today=TODAY)
    bundle.habits = []

    summary = admin_tasks.import_bundle(bundle, session_factory, user_id=user.id)
    assert (summary.habits, summary.logs) == (0, 0)


def test_run_export_writes_zip(tmp_path, session_factory, user):
    admin_tasks.run_demo_seed(session_factory, user_id=user.id, today=TODAY)
    path = admin_tasks.run_export(tmp_path / "exports", session_factory, user_id=user.id, today=TODAY)

    assert path.exists()
    assert path.name.startswith("habitloop_export_")
    with ZipFile(path) as archive:
        names = set(archive.namelist())
        assert names == {
            "habitloop-export-2024-03-22.json",
            "habitloop-export-2024-03-22.csv",
            "habitloop-summary-2024-03-22.md",
            "progress-2024-03-22.png",
            "heatmap-2024-03-22.png",
        }
        assert archive.read("progress-2024-03-22.png").startswith(b"\x89PNG")
        document = archive.read("habitloop-export-2024-03-22.json").decode("utf-8")
    assert len(load_json_export(document).habits) == 4


def test_run_export_prunes_old_archives(tmp_path, session_factory, user):
    out_dir = tmp_path / "exports"
    out_dir.mkdir()
    for index in range(4):
        stale = out_dir / f"habitloop_export_2020010100000{index}.zip"
        stale.write_bytes(b"old")
        os.utime(stale, (1_000_000 + index, 1_000_000 + index))

    admin_tasks.run_export(out_dir, session_factory, user_id=user.id, today=TODAY, retention=2)
    remaining = sorted(p.name for p in out_dir.glob("habitloop_export_*.zip"))
    assert len(remaining) == 2
    assert "habitloop_export_20200101000003.zip" in remaining


def test_run_export_with_no_data(tmp_path, session_factory, user):
    path = admin_tasks.run_export(tmp_path, session_factory, user_id=user.id, today=TODAY - timedelta(days=1))
    with ZipFile(path) as archive:
        assert len(archive.namelist()) == 5
