"""SQLModel implementation of the identity repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.identity import Identity


class SQLModelIdentityRepository:
    """One identity row per user, created on first save."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, *, user_id: int) -> Optional[Identity]:
        with self.session_factory() as session:
            obj = session.exec(select(Identity).where(Identity.user_id == user_id)).first()
            if obj:
                session.expunge(obj)
            return obj

    def save(self, who_you_want_to_be: str, core_values: list[str], *, user_id: int) -> Identity:
        with self.session_factory() as session:
            identity = session.exec(select(Identity).where(Identity.user_id == user_id)).first()
            if identity is None:
                identity = Identity(user_id=user_id, who_you_want_to_be=who_you_want_to_be)
            else:
                identity.who_you_want_to_be = who_you_want_to_be
                identity.updated_at = datetime.now(timezone.utc)
            identity.core_values = list(core_values)
            session.add(identity)
            session.commit()
            session.refresh(identity)
            session.expunge(identity)
            return identity


__all__ = ["SQLModelIdentityRepository"]
