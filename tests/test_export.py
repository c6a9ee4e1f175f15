"""Structured, tabular and narrative exports."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime, timezone

import pytest

from habitloop.errors import ValidationError
from habitloop.models import BadHabit, Habit, HabitLog, Identity, ScorecardItem
from habitloop.services.export import (
    HABIT_CSV_HEADERS,
    LOG_CSV_HEADERS,
    build_export_bundle,
    export_csv,
    export_filename,
    export_json,
    export_markdown,
    load_json_export,
)
from habitloop.services.progress import ExportStats

TODAY = date(2024, 3, 22)
CREATED = datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


def _habit(**overrides) -> Habit:
    fields = dict(
        id=7,
        user_id=1,
        name="Read, then sleep",
        identity_reason="I am a reader",
        action="read",
        time_of_day="21:00",
        location="bed",
        two_minute_version="Read one page",
        cue="Lights off",
        habit_stacking="After brushing teeth",
        friction_reducers=["Book on pillow"],
        frequency="custom",
        target_days=[1, 3, 5],
        routine_type="evening",
        current_streak=99,
        longest_streak=99,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return Habit(**fields)


def _bundle():
    habit = _habit()
    logs = [
        HabitLog(id=1, habit_id=7, user_id=1, log_date=date(2024, 3, 20), completed=True, notes="ok", created_at=CREATED, updated_at=CREATED),
        HabitLog(id=2, habit_id=7, user_id=1, log_date=date(2024, 3, 22), completed=True, created_at=CREATED, updated_at=CREATED),
        HabitLog(id=3, habit_id=7, user_id=1, log_date=date(2024, 3, 18), completed=False, created_at=CREATED, updated_at=CREATED),
    ]
    identity = Identity(id=1, user_id=1, who_you_want_to_be="A calm reader", core_values=["Curiosity", "Rest"], created_at=CREATED, updated_at=CREATED)
    scorecard = [ScorecardItem(id=1, user_id=1, habit_name="Check phone", rating="negative", created_at=CREATED, updated_at=CREATED)]
    bad = [BadHabit(id=1, user_id=1, name="Doomscrolling", cue="Boredom", make_difficult="Phone in drawer", created_at=CREATED, updated_at=CREATED)]
    return build_export_bundle(
        identity=identity,
        habits=[habit],
        habit_logs=logs,
        scorecard_items=scorecard,
        bad_habits=bad,
        today=TODAY,
        version="1.0",
        exported_at=datetime(2024, 3, 22, 12, 0, tzinfo=timezone.utc),
    )


def test_bundle_recomputes_streaks():
    bundle = _bundle()
    # Wed 20th and Fri 22nd completed, Mon 18th missed.
    assert (bundle.habits[0].current_streak, bundle.habits[0].longest_streak) == (2, 2)
    assert bundle.export_date == "2024-03-22T12:00:00+00:00"


def test_json_round_trip_is_lossless():
    bundle = _bundle()
    text = export_json(bundle)
    document = json.loads(text)
    assert set(document) == {
        "identity",
        "habits",
        "habit_logs",
        "scorecard_items",
        "bad_habits",
        "export_date",
        "version",
    }
    assert document["habit_logs"][0]["log_date"] == "2024-03-20"

    restored = load_json_export(text)
    assert restored.version == "1.0"
    assert restored.export_date == bundle.export_date
    assert restored.identity.model_dump() == bundle.identity.model_dump()
    assert [h.model_dump() for h in restored.habits] == [h.model_dump() for h in bundle.habits]
    assert [log.model_dump() for log in restored.habit_logs] == [log.model_dump() for log in bundle.habit_logs]
    assert restored.scorecard_items[0].model_dump() == bundle.scorecard_items[0].model_dump()
    assert restored.bad_habits[0].model_dump() == bundle.bad_habits[0].model_dump()


def test_load_rejects_invalid_documents():
    with pytest.raises(ValidationError) as excinfo:
        load_json_export("{not json")
    assert "file" in excinfo.value.errors

    with pytest.raises(ValidationError):
        load_json_export("[]")

    document = json.loads(export_json(_bundle()))
    document["habit_logs"][0]["log_date"] = "someday"
    with pytest.raises(ValidationError) as excinfo:
        load_json_export(json.dumps(document))
    assert any(key.startswith("habit_logs[0]") for key in excinfo.value.errors)


def test_load_accepts_missing_sections():
    bundle = load_json_export(b'{"version": "1.0", "habits": []}')
    assert bundle.identity is None
    assert bundle.habit_logs == []


def test_csv_has_two_sections():
    bundle = _bundle()
    rows = list(csv.reader(io.StringIO(export_csv(bundle.habits, bundle.habit_logs))))
    assert rows[0] == ["HABITS"]
    assert rows[1] == HABIT_CSV_HEADERS
    assert rows[2][HABIT_CSV_HEADERS.index("name")] == "Read, then sleep"
    assert rows[2][HABIT_CSV_HEADERS.index("created_at")] == "2024-03-01"
    assert rows[3] == []
    assert rows[4] == ["LOG"]
    assert rows[5] == LOG_CSV_HEADERS
    assert rows[6] == ["7", "2024-03-20", "yes", "ok"]
    assert rows[8] == ["7", "2024-03-18", "no", ""]


def test_markdown_summary():
    bundle = _bundle()
    text = export_markdown(bundle.identity, bundle.habits, ExportStats(daily=100, weekly=43, monthly=10), TODAY)
    assert text.startswith("# HabitLoop summary")
    assert "*Exported on 22 March 2024*" in text
    assert "- Curiosity" in text
    assert "- Weekly rate: 43%" in text
    assert "### 1. Read, then sleep" in text
    assert "> I will read at 21:00 in bed" in text
    assert "**Habit stacking:** After brushing teeth" in text
    assert "**Progress:** 2 days (record: 2)" in text


def test_markdown_without_identity():
    text = export_markdown(None, [], ExportStats(), TODAY)
    assert "## Identity" not in text
    assert "## Habits (0)" in text


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        ("json", "habitloop-export-2024-03-22.json"),
        ("csv", "habitloop-export-2024-03-22.csv"),
        ("markdown", "habitloop-summary-2024-03-22.md"),
    ],
)
def test_export_filename(kind, expected):
    assert export_filename(kind, TODAY) == expected
