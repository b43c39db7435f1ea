"""AuthBackend abstract interface."""

from abc import ABC, abstractmethod
from typing import Any


class AuthBackend(ABC):
    """Abstract interface for auth state storage.

    Values are already codec-encoded documents; backends only move them.
    Every (session_id, slot) pair is stored independently so writing one
    slot never rewrites another.
    """

    @abstractmethod
    async def read(self, session_id: str, slot: str) -> Any | None:
        """Read one slot, returning None if it was never written."""
        pass

    @abstractmethod
    async def write(self, session_id: str, slot: str, value: Any) -> None:
        """Upsert one slot."""
        pass

    @abstractmethod
    async def delete(self, session_id: str, slot: str) -> bool:
        """Delete one slot, returning whether it existed."""
        pass

    @abstractmethod
    async def clear(self, session_id: str) -> int:
        """Delete every slot of a session, returning how many were removed."""
        pass

    async def ensure_indexes(self) -> None:
        """Create lookup indexes. Idempotent; no-op by default."""
        return None

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
