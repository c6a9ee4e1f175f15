"""Scorecard repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.scorecard import ScorecardItem


class ScorecardRepository(Protocol):
    def list_items(self, *, user_id: int) -> list[ScorecardItem]:
        ...

    def get(self, item_id: int, *, user_id: int) -> Optional[ScorecardItem]:
        ...

    def create(self, item: ScorecardItem, *, user_id: int) -> ScorecardItem:
        ...

    def update(self, item: ScorecardItem, *, user_id: int) -> ScorecardItem:
        ...

    def delete(self, item_id: int, *, user_id: int) -> bool:
        ...
