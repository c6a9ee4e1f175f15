"""Identity routes."""

from __future__ import annotations

from flask import flash, g

from ...errors import persistence_guard
from ...extensions import get_context
from ..common import current_user_id, login_required, respond, validate_json
from . import bp
from .forms import IdentityForm


def _identity_payload(identity) -> dict | None:
    if identity is None:
        return None
    return {
        "who_you_want_to_be": identity.who_you_want_to_be,
        "core_values": list(identity.core_values),
        "updated_at": identity.updated_at.isoformat() if identity.updated_at else None,
    }


@bp.get("/")
@login_required
def show_identity():
    """Return the identity statement, or ``null`` before onboarding."""

    ctx = get_context()
    with persistence_guard("load identity"):
        identity = ctx.identity_repo.get(user_id=current_user_id())
    return respond(_identity_payload(identity))


@bp.put("/")
@login_required
@validate_json(IdentityForm)
def save_identity():
    form: IdentityForm = g.form
    ctx = get_context()
    with persistence_guard("save identity"):
        identity = ctx.identity_repo.save(
            form.who_you_want_to_be, form.core_values, user_id=current_user_id()
        )
    flash("Identity saved.", "success")
    return respond(_identity_payload(identity))
