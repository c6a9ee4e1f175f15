"""SQLModel implementation of the scorecard repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.scorecard import ScorecardItem


class SQLModelScorecardRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def list_items(self, *, user_id: int) -> list[ScorecardItem]:
        """Items in the order they were entered."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(ScorecardItem)
                    .where(ScorecardItem.user_id == user_id)
                    .order_by(ScorecardItem.created_at, ScorecardItem.id)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def get(self, item_id: int, *, user_id: int) -> Optional[ScorecardItem]:
        with self.session_factory() as session:
            obj = session.exec(
                select(ScorecardItem).where(
                    ScorecardItem.id == item_id, ScorecardItem.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(self, item: ScorecardItem, *, user_id: int) -> ScorecardItem:
        with self.session_factory() as session:
            item.user_id = user_id
            session.add(item)
            session.commit()
            session.refresh(item)
            session.expunge(item)
            return item

    def update(self, item: ScorecardItem, *, user_id: int) -> ScorecardItem:
        with self.session_factory() as session:
            item.user_id = user_id
            item.updated_at = datetime.now(timezone.utc)
            merged = session.merge(item)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, item_id: int, *, user_id: int) -> bool:
        with self.session_factory() as session:
            item = session.exec(
                select(ScorecardItem).where(
                    ScorecardItem.id == item_id, ScorecardItem.user_id == user_id
                )
            ).first()
            if item is None:
                return False
            session.delete(item)
            session.commit()
            return True


__all__ = ["SQLModelScorecardRepository"]
