"""Habit scorecard routes."""

from __future__ import annotations

from collections import Counter

from flask import flash, g, request

from ...errors import NotFoundError, ValidationError, persistence_guard
from ...extensions import get_context
from ...models.scorecard import Rating, ScorecardItem
from ..common import current_user_id, login_required, parse_form, respond, validate_json
from . import bp
from .forms import ScorecardItemForm


def _item_payload(item: ScorecardItem) -> dict:
    return item.model_dump(mode="json", exclude={"user_id"})


def _require_item(item_id: int, user_id: int) -> ScorecardItem:
    with persistence_guard("load scorecard item"):
        item = get_context().scorecard_repo.get(item_id, user_id=user_id)
    if item is None:
        raise NotFoundError(f"Scorecard item {item_id} not found.", details={"item_id": item_id})
    return item


@bp.get("/")
@login_required
def list_items():
    """Items plus a count per rating."""

    ctx = get_context()
    with persistence_guard("list scorecard items"):
        items = ctx.scorecard_repo.list_items(user_id=current_user_id())
    counts = Counter(item.rating for item in items)
    return respond(
        {
            "items": [_item_payload(item) for item in items],
            "counts": {rating.value: counts.get(rating.value, 0) for rating in Rating},
        }
    )


@bp.post("/")
@login_required
@validate_json(ScorecardItemForm)
def create_item():
    form: ScorecardItemForm = g.form
    ctx = get_context()
    user_id = current_user_id()
    item = ScorecardItem(
        user_id=user_id, habit_name=form.habit_name, rating=form.rating.value, notes=form.notes
    )
    with persistence_guard("create scorecard item"):
        item = ctx.scorecard_repo.create(item, user_id=user_id)
    return respond(_item_payload(item), 201)


@bp.patch("/<int:item_id>")
@login_required
def update_item(item_id: int):
    ctx = get_context()
    user_id = current_user_id()
    item = _require_item(item_id, user_id)
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError({"__root__": ["Expected a JSON object."]})
    merged = {"habit_name": item.habit_name, "rating": item.rating, "notes": item.notes}
    merged.update({key: value for key, value in body.items() if key in merged})
    form = parse_form(ScorecardItemForm, merged)

    item.habit_name = form.habit_name
    item.rating = form.rating.value
    item.notes = form.notes
    with persistence_guard("update scorecard item"):
        item = ctx.scorecard_repo.update(item, user_id=user_id)
    return respond(_item_payload(item))


@bp.delete("/<int:item_id>")
@login_required
def delete_item(item_id: int):
    ctx = get_context()
    with persistence_guard("delete scorecard item"):
        deleted = ctx.scorecard_repo.delete(item_id, user_id=current_user_id())
    if not deleted:
        raise NotFoundError(f"Scorecard item {item_id} not found.", details={"item_id": item_id})
    flash("Scorecard item removed.", "info")
    return respond({"id": item_id, "deleted": True})
