"""Export helpers: JSON bundle, two-section CSV and a Markdown summary."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import BadHabit, Habit, HabitLog, Identity, ScorecardItem
from .dates import to_date_key
from .progress import ExportStats
from .streaks import compute_streaks

logger = get_logger(__name__)

HABIT_CSV_HEADERS = [
    "id",
    "name",
    "identity_reason",
    "action",
    "time_of_day",
    "location",
    "two_minute_version",
    "cue",
    "frequency",
    "routine_type",
    "current_streak",
    "longest_streak",
    "created_at",
]
LOG_CSV_HEADERS = ["habit_id", "date", "completed", "notes"]


@dataclass
class ExportBundle:
    """Everything a user owns, as written to the structured JSON export."""

    identity: Optional[Identity] = None
    habits: list[Habit] = field(default_factory=list)
    habit_logs: list[HabitLog] = field(default_factory=list)
    scorecard_items: list[ScorecardItem] = field(default_factory=list)
    bad_habits: list[BadHabit] = field(default_factory=list)
    export_date: str = ""
    version: str = "1.0"

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity.model_dump(mode="json") if self.identity else None,
            "habits": [habit.model_dump(mode="json") for habit in self.habits],
            "habit_logs": [log.model_dump(mode="json") for log in self.habit_logs],
            "scorecard_items": [item.model_dump(mode="json") for item in self.scorecard_items],
            "bad_habits": [bad.model_dump(mode="json") for bad in self.bad_habits],
            "export_date": self.export_date,
            "version": self.version,
        }


def with_recomputed_streaks(
    habits: Iterable[Habit], logs: Iterable[HabitLog], today: date
) -> list[Habit]:
    """Copies of ``habits`` whose streak counters are recomputed from ``logs``."""

    logs_by_habit: dict[Any, list[HabitLog]] = {}
    for log in logs:
        logs_by_habit.setdefault(log.habit_id, []).append(log)

    refreshed: list[Habit] = []
    for habit in habits:
        result = compute_streaks(habit, logs_by_habit.get(habit.id, ()), today)
        payload = habit.model_dump()
        payload.update(current_streak=result.current, longest_streak=result.longest)
        refreshed.append(Habit.model_validate(payload))
    return refreshed


def build_export_bundle(
    *,
    identity: Optional[Identity],
    habits: Sequence[Habit],
    habit_logs: Sequence[HabitLog],
    scorecard_items: Sequence[ScorecardItem] = (),
    bad_habits: Sequence[BadHabit] = (),
    today: date,
    version: str = "1.0",
    exported_at: Optional[datetime] = None,
) -> ExportBundle:
    exported_at = exported_at or datetime.now(timezone.utc)
    return ExportBundle(
        identity=identity,
        habits=with_recomputed_streaks(habits, habit_logs, today),
        habit_logs=list(habit_logs),
        scorecard_items=list(scorecard_items),
        bad_habits=list(bad_habits),
        export_date=exported_at.isoformat(),
        version=version,
    )


def export_json(bundle: ExportBundle) -> str:
    return json.dumps(bundle.to_dict(), indent=2, ensure_ascii=False)


def _validate_rows(model: Any, rows: Any, section: str, errors: dict[str, list[str]]) -> list[Any]:
    if rows is None:
        return []
    if not isinstance(rows, list):
        errors.setdefault(section, []).append("Expected a list.")
        return []
    parsed = []
    for index, row in enumerate(rows):
        try:
            parsed.append(model.model_validate(row))
        except PydanticValidationError as exc:
            for err in exc.errors():
                loc = ".".join(str(part) for part in err["loc"])
                errors.setdefault(f"{section}[{index}].{loc}", []).append(err["msg"])
    return parsed


def load_json_export(text: str | bytes) -> ExportBundle:
    """Parse a structured export back into model instances.

    Raises :class:`~habitloop.errors.ValidationError` with per-field messages
    when the document is not a valid export.
    """

    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ValidationError({"file": [f"Not valid JSON: {exc}"]}) from exc
    if not isinstance(payload, Mapping):
        raise ValidationError({"file": ["Export must be a JSON object."]})

    errors: dict[str, list[str]] = {}
    identity_rows = _validate_rows(
        Identity, [payload["identity"]] if payload.get("identity") else [], "identity", errors
    )
    bundle = ExportBundle(
        identity=identity_rows[0] if identity_rows else None,
        habits=_validate_rows(Habit, payload.get("habits"), "habits", errors),
        habit_logs=_validate_rows(HabitLog, payload.get("habit_logs"), "habit_logs", errors),
        scorecard_items=_validate_rows(
            ScorecardItem, payload.get("scorecard_items"), "scorecard_items", errors
        ),
        bad_habits=_validate_rows(BadHabit, payload.get("bad_habits"), "bad_habits", errors),
        export_date=str(payload.get("export_date") or ""),
        version=str(payload.get("version") or ""),
    )
    if errors:
        logger.warning("Rejected export file", extra={"error_count": len(errors)})
        raise ValidationError(errors, message="Export file is invalid.")
    return bundle


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return to_date_key(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def export_csv(habits: Iterable[Habit], logs: Iterable[HabitLog]) -> str:
    """Two sections in one file: ``HABITS`` then ``LOG``, separated by a blank row."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(["HABITS"])
    writer.writerow(HABIT_CSV_HEADERS)
    for habit in habits:
        writer.writerow([_cell(getattr(habit, name, None)) for name in HABIT_CSV_HEADERS])
    writer.writerow([])
    writer.writerow(["LOG"])
    writer.writerow(LOG_CSV_HEADERS)
    for log in logs:
        writer.writerow(
            [
                _cell(log.habit_id),
                _cell(log.log_date),
                "yes" if log.completed else "no",
                _cell(log.notes),
            ]
        )
    return buffer.getvalue()


def export_markdown(
    identity: Optional[Identity],
    habits: Sequence[Habit],
    stats: ExportStats,
    exported_on: date,
) -> str:
    lines = ["# HabitLoop summary", "", f"*Exported on {exported_on.strftime('%d %B %Y')}*", ""]

    if identity is not None:
        lines += ["## Identity", "", f"**Who I want to become:** {identity.who_you_want_to_be}", ""]
        lines.append("**Core values:**")
        lines += [f"- {value}" for value in identity.core_values]
        lines.append("")

    lines += [
        "## Statistics",
        "",
        f"- Daily rate: {stats.daily}%",
        f"- Weekly rate: {stats.weekly}%",
        f"- Monthly rate: {stats.monthly}%",
        "",
        f"## Habits ({len(habits)})",
        "",
    ]
    for index, habit in enumerate(habits, start=1):
        lines += [
            f"### {index}. {habit.name}",
            "",
            f"**Identity reason:** {habit.identity_reason}",
            "",
            "**Implementation intention:**",
            f"> I will {habit.action} at {habit.time_of_day} in {habit.location}",
            "",
            f"**Two-minute version:** {habit.two_minute_version}",
            "",
            f"**Cue:** {habit.cue}",
            "",
        ]
        if habit.habit_stacking:
            lines += [f"**Habit stacking:** {habit.habit_stacking}", ""]
        lines += [
            f"**Progress:** {habit.current_streak} days (record: {habit.longest_streak})",
            "",
            "---",
            "",
        ]
    return "\n".join(lines)


def export_filename(kind: str, day: date) -> str:
    extension = {"json": "json", "csv": "csv", "markdown": "md"}[kind]
    stem = "habitloop-summary" if kind == "markdown" else "habitloop-export"
    return f"{stem}-{to_date_key(day)}.{extension}"


__all__ = [
    "ExportBundle",
    "build_export_bundle",
    "export_csv",
    "export_filename",
    "export_json",
    "export_markdown",
    "load_json_export",
    "with_recomputed_streaks",
]
