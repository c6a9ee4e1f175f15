"""Per-user settings repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.settings import UserSetting


class SettingsRepository(Protocol):
    def get(self, key: str, *, user_id: int) -> Optional[UserSetting]:
        ...

    def set(
        self, key: str, value: str, *, user_id: int, description: str | None = None
    ) -> UserSetting:
        ...

    def delete(self, key: str, *, user_id: int) -> None:
        ...
