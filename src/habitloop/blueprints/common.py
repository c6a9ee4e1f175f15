"""Request helpers shared by the JSON blueprints."""

from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Any, Callable, Optional, Type, TypeVar

from flask import Flask, g, get_flashed_messages, jsonify, request, session
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ..errors import AuthenticationError, HabitLoopError, PersistenceError, ValidationError
from ..logging_config import get_logger
from ..services.dates import parse_date_key

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
FormT = TypeVar("FormT", bound=BaseModel)

SESSION_USER_KEY = "user_id"


def form_errors(exc: PydanticValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by top-level field name."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        message = error.get("msg", "Invalid value")
        structured.setdefault(key, []).append(message.removeprefix("Value error, "))
    return structured


def parse_form(schema: Type[FormT], data: Optional[dict[str, Any]] = None) -> FormT:
    """Validate ``data`` (default: the JSON body) against ``schema``."""

    if data is None:
        data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError({"__root__": ["Expected a JSON object."]})
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        errors = form_errors(exc)
        logger.info("Rejected submission", extra={"form": schema.__name__, "fields": sorted(errors)})
        raise ValidationError(errors) from exc


def validate_json(schema: Type[BaseModel]) -> Callable[[F], F]:
    """Validate the JSON body and expose the parsed form as ``g.form``."""

    def decorator(view: F) -> F:
        @wraps(view)
        def wrapped(*args: Any, **kwargs: Any) -> Any:
            g.form = parse_form(schema)
            return view(*args, **kwargs)

        return wrapped  # type: ignore[return-value]

    return decorator


def login_required(view: F) -> F:
    @wraps(view)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        if session.get(SESSION_USER_KEY) is None:
            raise AuthenticationError("Sign in to continue.")
        return view(*args, **kwargs)

    return wrapped  # type: ignore[return-value]


def current_user_id() -> int:
    user_id = session.get(SESSION_USER_KEY)
    if user_id is None:
        raise AuthenticationError("Sign in to continue.")
    return int(user_id)


def query_day(name: str = "date", default: Optional[date] = None) -> Optional[date]:
    """Read a ``YYYY-MM-DD`` query/body value; malformed keys are rejected."""

    raw = request.args.get(name)
    if raw is None:
        body = request.get_json(silent=True)
        raw = body.get(name) if isinstance(body, dict) else None
    if raw in (None, ""):
        return default
    parsed = parse_date_key(raw)
    if parsed is None:
        raise ValidationError({name: ["Use the YYYY-MM-DD format."]})
    return parsed


def query_int(name: str, default: int, *, minimum: int = 0, maximum: int = 366) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError({name: ["Must be a whole number."]}) from None
    if not minimum <= value <= maximum:
        raise ValidationError({name: [f"Must be between {minimum} and {maximum}."]})
    return value


def respond(payload: Any = None, status: int = 200):
    """JSON response carrying any pending flash notices."""

    notices = [
        {"category": category, "message": message}
        for category, message in get_flashed_messages(with_categories=True)
    ]
    body = {"data": payload, "notices": notices}
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    """Render the error taxonomy as JSON bodies."""

    @app.errorhandler(HabitLoopError)
    def _habitloop_error(exc: HabitLoopError):
        if exc.status_code >= 500:
            logger.error("Request failed", extra={"error_code": exc.error_code, "path": request.path})
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def _database_error(exc: SQLAlchemyError):
        logger.error("Unhandled database error", exc_info=exc, extra={"path": request.path})
        error = PersistenceError(f"{request.method} {request.path}", exc)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        code = (exc.name or "error").lower().replace(" ", "_")
        body = {"error": code, "message": exc.description, "details": {}}
        return jsonify(body), exc.code or 500


__all__ = [
    "SESSION_USER_KEY",
    "current_user_id",
    "form_errors",
    "login_required",
    "parse_form",
    "query_day",
    "query_int",
    "register_error_handlers",
    "respond",
    "validate_json",
]
