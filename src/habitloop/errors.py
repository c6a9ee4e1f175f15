"""Error taxonomy shared by services and blueprints."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from .logging_config import get_logger

logger = get_logger(__name__)


class HabitLoopError(Exception):
    """Base exception for all HabitLoop errors."""

    error_code = "habitloop_error"
    status_code = 400

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class PersistenceError(HabitLoopError):
    """A read or write against the data store failed."""

    error_code = "persistence_failure"
    status_code = 503

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        details = {"operation": operation}
        if cause is not None:
            details["cause"] = type(cause).__name__
        super().__init__(f"Could not complete {operation}.", details=details)
        self.operation = operation
        self.cause = cause


class NotFoundError(HabitLoopError):
    """An explicitly requested record does not exist for this user."""

    error_code = "not_found"
    status_code = 404


class ValidationError(HabitLoopError):
    """Submitted data failed validation."""

    error_code = "validation_error"
    status_code = 400

    def __init__(self, errors: dict[str, list[str]], message: str = "Invalid submission."):
        super().__init__(message, details={"errors": errors})
        self.errors = errors


class NotDueError(HabitLoopError):
    """A completion was recorded on a day the habit is not scheduled."""

    error_code = "not_due"
    status_code = 409


class AuthenticationError(HabitLoopError):
    """Credentials are missing or wrong."""

    error_code = "authentication_required"
    status_code = 401


@contextmanager
def persistence_guard(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as :class:`PersistenceError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Persistence failure during %s", operation, exc_info=True)
        raise PersistenceError(operation, exc) from exc


__all__ = [
    "AuthenticationError",
    "HabitLoopError",
    "NotDueError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    "persistence_guard",
]
