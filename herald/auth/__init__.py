"""Durable auth state for the messaging session.

    from herald.auth import AuthStateStore

    store = await AuthStateStore.open(mongo_url, "default")
    client = make_client(auth=store.state)
    client.on("creds.update", store.update_creds)
"""

from herald.auth.backend import AuthBackend
from herald.auth.codec import BufferCodec, decode, dumps, encode, loads
from herald.auth.creds import (
    AppStateSyncKeyData,
    AuthenticationCreds,
    KeyPair,
    SignedKeyPair,
    init_auth_creds,
)
from herald.auth.state import AuthenticationState, SignalKeyStore
from herald.auth.store import APP_STATE_SYNC_KEY, AuthStateStore
from herald.auth.stores import InMemoryAuthBackend, MongoDBAuthBackend

__all__ = [
    "APP_STATE_SYNC_KEY",
    "AppStateSyncKeyData",
    "AuthBackend",
    "AuthStateStore",
    "AuthenticationCreds",
    "AuthenticationState",
    "BufferCodec",
    "InMemoryAuthBackend",
    "KeyPair",
    "MongoDBAuthBackend",
    "SignalKeyStore",
    "SignedKeyPair",
    "decode",
    "dumps",
    "encode",
    "init_auth_creds",
    "loads",
]
