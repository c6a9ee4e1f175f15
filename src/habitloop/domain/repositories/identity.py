"""Identity repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.identity import Identity


class IdentityRepository(Protocol):
    def get(self, *, user_id: int) -> Optional[Identity]:
        """Return the user's identity, or None before onboarding."""
        ...

    def save(self, who_you_want_to_be: str, core_values: list[str], *, user_id: int) -> Identity:
        """Create or update the single identity row for the user."""
        ...
