"""Durable credential and signal key store for one messaging session.

AuthStateStore is the single source of truth for a session's long-term
credentials and its short-lived signal keys. Credentials are cached in
memory and written back only when `save_creds()` is called; keys are read
and written through to the backend slot by slot.

Failures follow one rule: nothing raised by the backend or the codec
escapes `get_keys`, `set_keys` or `save_creds`. A key that cannot be read
is reported absent, a key that cannot be written is logged and skipped.
Only `open()`/`create()` may fail, because no state is usable without the
store.
"""

import asyncio
import warnings
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from herald.auth.backend import AuthBackend
from herald.auth.codec import BufferCodec
from herald.auth.creds import AppStateSyncKeyData, AuthenticationCreds, init_auth_creds
from herald.auth.slots import CREDS_SLOT, key_slot, validate_session_id
from herald.auth.state import AuthenticationState, SignalKeyStore
from herald.auth.stores.mongodb import MongoDBAuthBackend
from herald.errors import (
    CodecError,
    ConnectionError,
    DecodeError,
    IndexCreationWarning,
    InvalidKeyError,
    StoreError,
)
from herald.observability.logging import get_logger
from herald.observability.metrics import CREDS_SAVES, KEY_OPERATIONS

logger = get_logger(__name__)

APP_STATE_SYNC_KEY = "app-state-sync-key"


class AuthStateStore:
    """Read/write/delete contract over one session's auth state.

    Use `open()` for MongoDB or `create()` with any AuthBackend.
    """

    def __init__(
        self,
        backend: AuthBackend,
        session_id: str,
        creds: AuthenticationCreds,
        codec: BufferCodec | None = None,
    ) -> None:
        """Initialize the store around already-loaded credentials.

        Prefer `create()`, which validates the session id, prepares
        indexes and loads the credentials.
        """
        self._backend = backend
        self._session_id = validate_session_id(session_id)
        self._creds = creds
        self._codec = codec or BufferCodec()
        self._keys = SignalKeyStore(self)

    @classmethod
    async def open(
        cls,
        connection_uri: str,
        session_id: str,
        *,
        database: str = "whatsapp",
        collection: str = "auth_states",
        server_selection_timeout_ms: int = 5000,
    ) -> "AuthStateStore":
        """Connect to MongoDB and load the session.

        Raises:
            ConnectionError: If the database cannot be reached
            InvalidKeyError: If the session id is unusable
        """
        validate_session_id(session_id)
        backend = await MongoDBAuthBackend.connect(
            connection_uri,
            database=database,
            collection=collection,
            server_selection_timeout_ms=server_selection_timeout_ms,
        )
        try:
            return await cls.create(backend, session_id)
        except ConnectionError:
            await backend.close()
            raise

    @classmethod
    async def create(
        cls,
        backend: AuthBackend,
        session_id: str,
        codec: BufferCodec | None = None,
    ) -> "AuthStateStore":
        """Prepare the backend and load credentials for a session.

        A missing or undecodable credential blob falls back to a freshly
        generated default set, which starts a new (unpaired) session.

        Raises:
            ConnectionError: If the stored credentials cannot be read
            InvalidKeyError: If the session id is unusable
        """
        validate_session_id(session_id)
        codec = codec or BufferCodec()

        try:
            await backend.ensure_indexes()
        except StoreError as e:
            logger.warning("index_creation_failed", session_id=session_id, error=str(e))
            warnings.warn(
                f"Auth store index could not be created: {e}",
                IndexCreationWarning,
                stacklevel=2,
            )

        creds = await cls._load_creds(backend, session_id, codec)
        return cls(backend, session_id, creds, codec)

    @staticmethod
    async def _load_creds(
        backend: AuthBackend, session_id: str, codec: BufferCodec
    ) -> AuthenticationCreds:
        # A read failure must not fall back to defaults: saving those would
        # overwrite the real credentials.
        try:
            stored = await backend.read(session_id, CREDS_SLOT)
        except StoreError as e:
            raise ConnectionError(f"Failed to load credentials: {e}", cause=e) from e

        if stored is None:
            logger.info("creds_initialized", session_id=session_id)
            return init_auth_creds()

        try:
            creds = AuthenticationCreds.model_validate(codec.decode(stored))
        except (DecodeError, ValidationError) as e:
            logger.warning(
                "creds_decode_failed",
                session_id=session_id,
                error=str(e),
            )
            return init_auth_creds()

        logger.info("creds_loaded", session_id=session_id, registered=creds.registered)
        return creds

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def creds(self) -> AuthenticationCreds:
        return self._creds

    @property
    def keys(self) -> SignalKeyStore:
        return self._keys

    @property
    def state(self) -> AuthenticationState:
        """Credentials and key store in the shape the protocol client expects."""
        return AuthenticationState(creds=self._creds, keys=self._keys)

    def get_creds(self) -> AuthenticationCreds:
        """Return the cached credentials. Never touches the database."""
        return self._creds

    async def save_creds(self) -> bool:
        """Persist the cached credentials.

        Call whenever the protocol client signals that credentials changed;
        the store does not watch for changes itself.

        Returns:
            True if the credentials were written
        """
        try:
            await self._backend.write(
                self._session_id, CREDS_SLOT, self._codec.encode(self._creds)
            )
        except (StoreError, CodecError) as e:
            CREDS_SAVES.labels(outcome="error").inc()
            logger.error("creds_save_failed", session_id=self._session_id, error=str(e))
            return False

        CREDS_SAVES.labels(outcome="ok").inc()
        logger.debug("creds_saved", session_id=self._session_id)
        return True

    async def update_creds(self, update: Mapping[str, Any] | None = None) -> bool:
        """Merge a partial credential update, then persist.

        Args:
            update: Changed fields as sent by the client's credential update
                event. None when the client already mutated `creds` in place.

        Returns:
            True if the credentials were written
        """
        if update:
            try:
                merged = AuthenticationCreds.model_validate(
                    {**self._creds.model_dump(), **update}
                )
            except ValidationError as e:
                logger.error(
                    "creds_update_rejected",
                    session_id=self._session_id,
                    fields=sorted(update),
                    error=str(e),
                )
                return False
            # The client holds a reference to self._creds; update it in place
            for name in update:
                setattr(self._creds, name, getattr(merged, name))
        return await self.save_creds()

    async def get_keys(self, category: str, ids: Iterable[str]) -> dict[str, Any]:
        """Look up signal keys of one category.

        Ids with no stored value, or whose value cannot be decoded, are
        omitted from the result.

        Args:
            category: Key category (e.g. "pre-key", "session")
            ids: Key ids to look up

        Returns:
            Mapping of id to value for the ids that were found
        """
        wanted = list(dict.fromkeys(ids))
        values = await asyncio.gather(
            *(self._read_key(category, key_id) for key_id in wanted)
        )
        return {
            key_id: value
            for key_id, value in zip(wanted, values, strict=True)
            if value is not None
        }

    async def _read_key(self, category: str, key_id: str) -> Any | None:
        try:
            slot = key_slot(category, key_id)
            stored = await self._backend.read(self._session_id, slot)
        except InvalidKeyError as e:
            KEY_OPERATIONS.labels(operation="get", outcome="invalid").inc()
            logger.warning("key_rejected", category=category, error=str(e))
            return None
        except StoreError as e:
            KEY_OPERATIONS.labels(operation="get", outcome="error").inc()
            logger.error(
                "key_read_failed",
                session_id=self._session_id,
                category=category,
                key_id=key_id,
                error=str(e),
            )
            return None

        if stored is None:
            KEY_OPERATIONS.labels(operation="get", outcome="miss").inc()
            return None

        try:
            value = self._codec.decode(stored)
            if category == APP_STATE_SYNC_KEY:
                value = AppStateSyncKeyData.model_validate(value)
        except (DecodeError, ValidationError) as e:
            KEY_OPERATIONS.labels(operation="get", outcome="corrupt").inc()
            logger.warning(
                "key_decode_failed",
                session_id=self._session_id,
                category=category,
                key_id=key_id,
                error=str(e),
            )
            return None

        KEY_OPERATIONS.labels(operation="get", outcome="hit").inc()
        return value

    async def set_keys(self, updates: Mapping[str, Mapping[str, Any | None]]) -> None:
        """Apply key upserts and deletes.

        A non-None value upserts its (category, id); None deletes it.
        Updates run concurrently and independently: a failure on one key
        is logged and the others still apply. Not atomic across keys.
        """
        tasks = [
            self._write_key(category, key_id, value)
            for category, entries in updates.items()
            for key_id, value in entries.items()
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    "key_update_crashed",
                    session_id=self._session_id,
                    error=str(result),
                    error_type=type(result).__name__,
                )

    async def _write_key(self, category: str, key_id: str, value: Any | None) -> None:
        operation = "delete" if value is None else "set"
        try:
            slot = key_slot(category, key_id)
            if value is None:
                await self._backend.delete(self._session_id, slot)
            else:
                await self._backend.write(self._session_id, slot, self._codec.encode(value))
        except InvalidKeyError as e:
            KEY_OPERATIONS.labels(operation=operation, outcome="invalid").inc()
            logger.warning("key_rejected", category=category, error=str(e))
            return
        except (StoreError, CodecError) as e:
            KEY_OPERATIONS.labels(operation=operation, outcome="error").inc()
            logger.error(
                "key_write_failed",
                session_id=self._session_id,
                category=category,
                key_id=key_id,
                operation=operation,
                error=str(e),
            )
            return

        KEY_OPERATIONS.labels(operation=operation, outcome="ok").inc()

    async def clear(self) -> None:
        """Forget the session: delete every stored slot and reset credentials.

        The credentials object is reset in place, so a client built from
        `state` keeps seeing the current credentials.

        Used after the account logs the device out, so the next start
        pairs again from scratch.

        Raises:
            StoreError: If the stored slots could not be deleted
        """
        removed = await self._backend.clear(self._session_id)
        self._creds.reset()
        logger.info("session_cleared", session_id=self._session_id, slots_removed=removed)

    async def close(self) -> None:
        """Release the backend connection."""
        await self._backend.close()
