"""MongoDB implementation of AuthBackend.

One document per session slot:

    {
        "_id": "<session_id>:<slot>",
        "session_id": "<session_id>",
        "slot": "creds" | "<category>:<id>",
        "value": <codec-encoded value>,
        "updated_at": <datetime>,
    }

Per-slot documents keep writes point-sized under heavy key churn and
avoid one session document growing without bound.
"""

from datetime import UTC, datetime
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from herald.auth.backend import AuthBackend
from herald.auth.slots import document_id
from herald.errors import ConnectionError, StoreError
from herald.observability.logging import get_logger

logger = get_logger(__name__)

SESSION_INDEX = "session_id_1"


class MongoDBAuthBackend(AuthBackend):
    """Auth backend over a motor collection.

    Construct directly with a collection (tests, shared clients) or use
    `connect()` to open and verify a new client.
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        client: AsyncIOMotorClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            collection: Collection holding the slot documents
            client: Owning client, closed by `close()` when given
        """
        self._collection = collection
        self._client = client

    @classmethod
    async def connect(
        cls,
        connection_uri: str,
        *,
        database: str = "whatsapp",
        collection: str = "auth_states",
        server_selection_timeout_ms: int = 5000,
    ) -> "MongoDBAuthBackend":
        """Open a client and verify the server is reachable.

        Raises:
            ConnectionError: If the URI is invalid or the server does not
                answer a ping
        """
        try:
            client: AsyncIOMotorClient = AsyncIOMotorClient(
                connection_uri,
                serverSelectionTimeoutMS=server_selection_timeout_ms,
            )
        except PyMongoError as e:
            raise ConnectionError(f"Invalid MongoDB connection URI: {e}", cause=e) from e

        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            logger.error("mongodb_unreachable", database=database, error=str(e))
            raise ConnectionError(f"MongoDB is unreachable: {e}", cause=e) from e

        logger.info("mongodb_connected", database=database, collection=collection)
        return cls(client[database][collection], client=client)

    async def read(self, session_id: str, slot: str) -> Any | None:
        try:
            doc = await self._collection.find_one({"_id": document_id(session_id, slot)})
        except PyMongoError as e:
            raise StoreError(f"Failed to read slot {slot}: {e}", cause=e) from e
        if doc is None:
            return None
        return doc.get("value")

    async def write(self, session_id: str, slot: str, value: Any) -> None:
        try:
            await self._collection.update_one(
                {"_id": document_id(session_id, slot)},
                {
                    "$set": {
                        "session_id": session_id,
                        "slot": slot,
                        "value": value,
                        "updated_at": datetime.now(UTC),
                    }
                },
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to write slot {slot}: {e}", cause=e) from e

    async def delete(self, session_id: str, slot: str) -> bool:
        try:
            result = await self._collection.delete_one(
                {"_id": document_id(session_id, slot)}
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to delete slot {slot}: {e}", cause=e) from e
        return result.deleted_count > 0

    async def clear(self, session_id: str) -> int:
        try:
            result = await self._collection.delete_many({"session_id": session_id})
        except PyMongoError as e:
            raise StoreError(f"Failed to clear session: {e}", cause=e) from e
        return result.deleted_count

    async def ensure_indexes(self) -> None:
        try:
            await self._collection.create_index(
                [("session_id", ASCENDING)],
                name=SESSION_INDEX,
            )
        except PyMongoError as e:
            raise StoreError(f"Failed to create index {SESSION_INDEX}: {e}", cause=e) from e

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
