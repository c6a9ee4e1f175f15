"""Bad habit routes."""

from __future__ import annotations

from flask import flash, g, request

from ...errors import NotFoundError, ValidationError, persistence_guard
from ...extensions import get_context
from ...models.bad_habit import BadHabit
from ..common import current_user_id, login_required, parse_form, respond, validate_json
from . import bp
from .forms import BadHabitForm


def _payload(bad_habit: BadHabit) -> dict:
    return bad_habit.model_dump(mode="json", exclude={"user_id"})


def _require(bad_habit_id: int, user_id: int) -> BadHabit:
    with persistence_guard("load bad habit"):
        bad_habit = get_context().bad_habit_repo.get(bad_habit_id, user_id=user_id)
    if bad_habit is None or not bad_habit.is_active:
        raise NotFoundError(
            f"Bad habit {bad_habit_id} not found.", details={"bad_habit_id": bad_habit_id}
        )
    return bad_habit


@bp.get("/")
@login_required
def list_bad_habits():
    ctx = get_context()
    with persistence_guard("list bad habits"):
        rows = ctx.bad_habit_repo.list_active(user_id=current_user_id())
    return respond([_payload(row) for row in rows])


@bp.post("/")
@login_required
@validate_json(BadHabitForm)
def create_bad_habit():
    form: BadHabitForm = g.form
    ctx = get_context()
    user_id = current_user_id()
    with persistence_guard("create bad habit"):
        bad_habit = ctx.bad_habit_repo.create(
            BadHabit(user_id=user_id, **form.model_dump()), user_id=user_id
        )
    flash(f"Plan to break '{bad_habit.name}' saved.", "success")
    return respond(_payload(bad_habit), 201)


@bp.get("/<int:bad_habit_id>")
@login_required
def show_bad_habit(bad_habit_id: int):
    return respond(_payload(_require(bad_habit_id, current_user_id())))


@bp.patch("/<int:bad_habit_id>")
@login_required
def update_bad_habit(bad_habit_id: int):
    ctx = get_context()
    user_id = current_user_id()
    bad_habit = _require(bad_habit_id, user_id)
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError({"__root__": ["Expected a JSON object."]})
    fields = BadHabitForm.model_fields.keys()
    merged = {name: getattr(bad_habit, name) for name in fields}
    merged.update({key: value for key, value in body.items() if key in fields})
    form = parse_form(BadHabitForm, merged)

    for name, value in form.model_dump().items():
        setattr(bad_habit, name, value)
    with persistence_guard("update bad habit"):
        bad_habit = ctx.bad_habit_repo.update(bad_habit, user_id=user_id)
    return respond(_payload(bad_habit))


@bp.delete("/<int:bad_habit_id>")
@login_required
def delete_bad_habit(bad_habit_id: int):
    ctx = get_context()
    with persistence_guard("archive bad habit"):
        archived = ctx.bad_habit_repo.soft_delete(bad_habit_id, user_id=current_user_id())
    if not archived:
        raise NotFoundError(
            f"Bad habit {bad_habit_id} not found.", details={"bad_habit_id": bad_habit_id}
        )
    return respond({"id": bad_habit_id, "is_active": False})
