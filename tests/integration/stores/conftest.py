"""Pytest fixtures for store integration tests.

Tests run against the MongoDB named by TEST_MONGO_URL and skip
gracefully when it is unset or unreachable.
"""

import os
from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from herald.auth.stores.mongodb import MongoDBAuthBackend


@pytest.fixture(scope="session")
def mongo_url() -> str:
    """Get MongoDB URL for tests."""
    url = os.environ.get("TEST_MONGO_URL")
    if not url:
        pytest.skip("TEST_MONGO_URL not set")
    return url


@pytest.fixture
def database_name() -> str:
    """Unique database per test so runs never share state."""
    return f"herald_test_{uuid4().hex[:8]}"


@pytest_asyncio.fixture
async def mongo_client(mongo_url: str) -> AsyncIterator[AsyncIOMotorClient]:
    client: AsyncIOMotorClient = AsyncIOMotorClient(
        mongo_url, serverSelectionTimeoutMS=2000
    )
    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        pytest.skip(f"MongoDB not reachable: {e}")
    yield client
    client.close()


@pytest_asyncio.fixture
async def mongo_backend(
    mongo_client: AsyncIOMotorClient, database_name: str
) -> AsyncIterator[MongoDBAuthBackend]:
    """Backend over a throwaway database, dropped after the test."""
    yield MongoDBAuthBackend(mongo_client[database_name]["auth_states"])
    await mongo_client.drop_database(database_name)
