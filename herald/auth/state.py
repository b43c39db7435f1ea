"""Auth state objects handed to the protocol client."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from herald.auth.creds import AuthenticationCreds

if TYPE_CHECKING:
    from herald.auth.store import AuthStateStore


class SignalKeyStore:
    """The ``keys`` object the protocol client reads and writes.

    Thin adapter over AuthStateStore so the client only sees
    ``get(category, ids)`` and ``set(updates)``.
    """

    def __init__(self, store: "AuthStateStore") -> None:
        self._store = store

    async def get(self, category: str, ids: Iterable[str]) -> dict[str, Any]:
        return await self._store.get_keys(category, ids)

    async def set(self, updates: Mapping[str, Mapping[str, Any | None]]) -> None:
        await self._store.set_keys(updates)


@dataclass
class AuthenticationState:
    """Credentials plus key store, as consumed at session (re)establishment."""

    creds: AuthenticationCreds
    keys: SignalKeyStore
