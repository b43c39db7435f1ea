"""In-memory implementation of AuthBackend."""

import copy
from typing import Any

from herald.auth.backend import AuthBackend


class InMemoryAuthBackend(AuthBackend):
    """In-memory auth backend for testing and development.

    Values are deep-copied on the way in and out so callers cannot mutate
    stored state through a reference they still hold. Not durable.
    """

    def __init__(self) -> None:
        self._slots: dict[tuple[str, str], Any] = {}

    async def read(self, session_id: str, slot: str) -> Any | None:
        value = self._slots.get((session_id, slot))
        return copy.deepcopy(value)

    async def write(self, session_id: str, slot: str, value: Any) -> None:
        self._slots[(session_id, slot)] = copy.deepcopy(value)

    async def delete(self, session_id: str, slot: str) -> bool:
        return self._slots.pop((session_id, slot), None) is not None

    async def clear(self, session_id: str) -> int:
        doomed = [key for key in self._slots if key[0] == session_id]
        for key in doomed:
            del self._slots[key]
        return len(doomed)

    def slots(self, session_id: str) -> list[str]:
        """List the slot names stored for a session."""
        return sorted(slot for sid, slot in self._slots if sid == session_id)
