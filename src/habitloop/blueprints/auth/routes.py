"""Session authentication routes."""

from __future__ import annotations

from flask import flash, g, session

from ...errors import AuthenticationError
from ...extensions import get_context
from ...logging_config import get_logger
from ...services import auth as auth_service
from ..common import SESSION_USER_KEY, current_user_id, login_required, respond, validate_json
from . import bp
from .forms import LoginForm, SignupForm

logger = get_logger(__name__)


def _user_payload(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "last_login": user.last_login.isoformat() if user.last_login else None,
    }


@bp.post("/signup")
@validate_json(SignupForm)
def signup():
    form: SignupForm = g.form
    ctx = get_context()
    user = auth_service.create_user(
        email=form.email, password=form.password, session_factory=ctx.session_factory
    )
    session.clear()
    session[SESSION_USER_KEY] = user.id
    flash("Welcome! Start by defining who you want to become.", "success")
    return respond(_user_payload(user), 201)


@bp.post("/login")
@validate_json(LoginForm)
def login():
    form: LoginForm = g.form
    ctx = get_context()
    user = auth_service.authenticate(
        email=form.email, password=form.password, session_factory=ctx.session_factory
    )
    if user is None:
        raise AuthenticationError("Incorrect email or password.")
    session.clear()
    session[SESSION_USER_KEY] = user.id
    logger.info("User signed in", extra={"user_id": user.id})
    return respond(_user_payload(user))


@bp.post("/logout")
def logout():
    user_id = session.pop(SESSION_USER_KEY, None)
    if user_id is not None:
        get_context().cache.invalidate_user(user_id)
        flash("Signed out.", "info")
    return respond({"signed_out": user_id is not None})


@bp.get("/me")
@login_required
def me():
    ctx = get_context()
    user = auth_service.get_user(current_user_id(), ctx.session_factory)
    if user is None:
        session.pop(SESSION_USER_KEY, None)
        raise AuthenticationError("Sign in to continue.")
    return respond(_user_payload(user))
