"""Habit routes."""

from __future__ import annotations

from typing import Any

from flask import flash, g, request

from ...errors import NotFoundError, ValidationError, persistence_guard
from ...extensions import get_context
from ...models.habit import Habit
from ...services.dates import to_date_key
from ...services.guidance import (
    FOUR_LAWS,
    INVERTED_LAWS,
    habit_score,
    motivational_message,
    two_minute_suggestion,
)
from ...services.schedule import next_due_date
from ...services.streaks import compute_streaks
from ..common import (
    current_user_id,
    login_required,
    parse_form,
    query_day,
    respond,
    validate_json,
)
from . import bp
from .forms import HabitForm, ToggleForm


def habit_payload(habit: Habit) -> dict[str, Any]:
    return habit.model_dump(mode="json", exclude={"user_id"})


@bp.get("/")
@login_required
def list_habits():
    """Active habits, oldest first; ``?include_inactive=1`` adds archived ones."""

    ctx = get_context()
    user_id = current_user_id()
    if request.args.get("include_inactive") in {"1", "true", "yes"}:
        with persistence_guard("list habits"):
            habits = ctx.habit_repo.list_habits(user_id=user_id, include_inactive=True)
    else:
        habits = ctx.tracker.habits(user_id=user_id)
    return respond([habit_payload(habit) for habit in habits])


@bp.post("/")
@login_required
@validate_json(HabitForm)
def create_habit():
    form: HabitForm = g.form
    ctx = get_context()
    user_id = current_user_id()
    with persistence_guard("create habit"):
        habit = ctx.habit_repo.create_habit(
            Habit(user_id=user_id, **form.to_model_fields()), user_id=user_id
        )
    ctx.tracker.invalidate(user_id=user_id)
    flash(f"Habit '{habit.name}' created.", "success")
    return respond(habit_payload(habit), 201)


@bp.get("/today")
@login_required
def today():
    """Today's habits grouped by routine (``?date=`` shows another day)."""

    ctx = get_context()
    day = query_day("date", default=ctx.today())
    return respond(ctx.tracker.today_view(user_id=current_user_id(), day=day))


@bp.get("/suggestion")
@login_required
def suggestion():
    name = (request.args.get("name") or "").strip()
    if not name:
        raise ValidationError({"name": ["Provide a habit name."]})
    return respond({"name": name, "two_minute_version": two_minute_suggestion(name)})


@bp.get("/four-laws")
def four_laws():
    return respond({"laws": list(FOUR_LAWS), "inverted_laws": list(INVERTED_LAWS)})


@bp.get("/<int:habit_id>")
@login_required
def show_habit(habit_id: int):
    """One habit with freshly computed streaks and coaching copy."""

    ctx = get_context()
    user_id = current_user_id()
    today = ctx.today()
    habit = ctx.tracker.require_habit(habit_id, user_id=user_id)
    with persistence_guard("list habit logs"):
        logs = ctx.habit_repo.list_logs(habit_id, user_id=user_id)
    streaks = compute_streaks(habit, logs, today)
    next_due = next_due_date(habit, today)

    payload = habit_payload(habit)
    payload.update(
        current_streak=streaks.current,
        longest_streak=streaks.longest,
        last_completed_date=to_date_key(streaks.last_completed) if streaks.last_completed else None,
        next_due_date=to_date_key(next_due),
        score=habit_score(habit, logs, today),
        message=motivational_message(streaks.current),
    )
    return respond(payload)


@bp.patch("/<int:habit_id>")
@login_required
def update_habit(habit_id: int):
    """Partial update: the body is merged over the stored values, then validated."""

    ctx = get_context()
    user_id = current_user_id()
    habit = ctx.tracker.require_habit(habit_id, user_id=user_id)
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError({"__root__": ["Expected a JSON object."]})
    current = HabitForm.model_fields.keys()
    merged = {name: getattr(habit, name) for name in current}
    merged.update({key: value for key, value in body.items() if key in current})
    form = parse_form(HabitForm, merged)

    for name, value in form.to_model_fields().items():
        setattr(habit, name, value)
    with persistence_guard("update habit"):
        habit = ctx.habit_repo.update_habit(habit, user_id=user_id)
    # Schedule changes move due days, so the cached streaks must follow.
    ctx.tracker.refresh_streaks(habit, user_id=user_id)
    ctx.tracker.invalidate(user_id=user_id)
    with persistence_guard("load habit"):
        refreshed = ctx.habit_repo.get_habit(habit_id, user_id=user_id)
    flash(f"Habit '{habit.name}' updated.", "success")
    return respond(habit_payload(refreshed or habit))


@bp.delete("/<int:habit_id>")
@login_required
def delete_habit(habit_id: int):
    """Archive a habit; its logs are kept."""

    ctx = get_context()
    user_id = current_user_id()
    with persistence_guard("archive habit"):
        archived = ctx.habit_repo.soft_delete_habit(habit_id, user_id=user_id)
    if not archived:
        raise NotFoundError(f"Habit {habit_id} not found.", details={"habit_id": habit_id})
    ctx.tracker.invalidate(user_id=user_id)
    flash("Habit archived.", "info")
    return respond({"id": habit_id, "is_active": False})


@bp.post("/<int:habit_id>/toggle")
@login_required
def toggle_habit(habit_id: int):
    """Flip (or set, with ``completed``) the completion for a day.

    The day defaults to today in the configured timezone.
    """

    body = request.get_json(silent=True)
    form = parse_form(ToggleForm, body if isinstance(body, dict) else {})
    ctx = get_context()
    outcome = ctx.tracker.toggle(
        habit_id,
        user_id=current_user_id(),
        day=form.day,
        completed=form.completed,
        notes=form.notes,
    )
    if outcome.mutation.displayed:
        flash(motivational_message(outcome.streaks.current), "success")
    payload = outcome.mutation.to_dict()
    payload.update(current_streak=outcome.streaks.current, longest_streak=outcome.streaks.longest)
    return respond(payload)


@bp.get("/<int:habit_id>/logs")
@login_required
def habit_logs(habit_id: int):
    """Logs of one habit, optionally limited with ``?start=`` and ``?end=``."""

    ctx = get_context()
    user_id = current_user_id()
    ctx.tracker.require_habit(habit_id, user_id=user_id)
    start = query_day("start")
    end = query_day("end")
    with persistence_guard("list habit logs"):
        logs = ctx.habit_repo.list_logs(habit_id, user_id=user_id, start=start, end=end)
    return respond(
        [
            {
                "id": log.id,
                "habit_id": log.habit_id,
                "date": to_date_key(log.log_date),
                "completed": log.completed,
                "notes": log.notes,
            }
            for log in logs
        ]
    )
