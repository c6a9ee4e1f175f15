"""Local credential store: account creation and password checks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from sqlmodel import Session, select

from ..errors import ValidationError
from ..logging_config import get_logger
from ..models.user import User

SessionFactory = Callable[[], Session]

logger = get_logger(__name__)
_hasher = PasswordHasher()


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user(user_id: int, session_factory: SessionFactory) -> Optional[User]:
    with session_factory() as session:
        user = session.get(User, user_id)
        if user:
            session.expunge(user)
        return user


def get_user_by_email(email: str, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by email (case-insensitive)."""
    email = _normalize_email(email)
    with session_factory() as session:
        user = session.exec(select(User).where(User.email == email)).first()
        if user:
            session.expunge(user)
        return user


def create_user(*, email: str, password: str, session_factory: SessionFactory) -> User:
    """Create a new user with hashed password."""

    email = _normalize_email(email)
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing:
            raise ValidationError({"email": ["An account with this email already exists."]})
        user = User(email=email, password_hash=password_hash)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    logger.info("User created", extra={"user_id": user.id})
    return user


def authenticate(*, email: str, password: str, session_factory: SessionFactory) -> Optional[User]:
    """Validate credentials and return the user when correct."""

    email = _normalize_email(email)
    if not email:
        return None
    with session_factory() as session:
        user = session.exec(select(User).where(User.email == email)).first()
        if user is None:
            return None
        try:
            _hasher.verify(user.password_hash, password)
        except (VerifyMismatchError, InvalidHash, VerificationError):
            logger.info("Rejected login", extra={"user_id": user.id})
            return None

        if _hasher.check_needs_rehash(user.password_hash):
            user.password_hash = _hasher.hash(password)
        user.last_login = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


__all__ = ["authenticate", "create_user", "get_user", "get_user_by_email"]
