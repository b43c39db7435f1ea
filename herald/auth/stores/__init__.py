"""Auth state backends."""

from herald.auth.backend import AuthBackend
from herald.auth.stores.inmemory import InMemoryAuthBackend
from herald.auth.stores.mongodb import MongoDBAuthBackend

__all__ = [
    "AuthBackend",
    "InMemoryAuthBackend",
    "MongoDBAuthBackend",
]
