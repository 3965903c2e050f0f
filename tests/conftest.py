"""
Pytest configuration and shared fixtures for MDB_ADAPTER tests.

This module provides:
- Mock motor database and collection fixtures
- Adapter configuration fixtures
- Test data factories
"""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection

from mdb_adapter.config import AdapterConfig
from mdb_adapter.database import MongoDBStore
from mdb_adapter.observability import get_metrics_collector

# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_cursor(docs=None) -> MagicMock:
    """Create a mock motor cursor whose to_list returns ``docs``."""
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


def make_collection(name: str = "test_collection") -> MagicMock:
    """Create a mock motor collection with async CRUD methods."""
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = name
    # find() is synchronous in motor and returns a cursor
    collection.find = MagicMock(return_value=make_cursor())
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=[]))
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one_and_replace = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.create_index = AsyncMock(return_value="test_index")
    return collection


class MockDatabase:
    """Dictionary-style database that hands out one mock per collection name."""

    def __init__(self, name: str = "test_db"):
        self.name = name
        self.collections: Dict[str, MagicMock] = {}

    def __getitem__(self, name: str) -> MagicMock:
        if name not in self.collections:
            self.collections[name] = make_collection(name)
        return self.collections[name]


@pytest.fixture
def mock_mongo_database() -> MockDatabase:
    """Create a mock MongoDB database."""
    return MockDatabase()


@pytest.fixture
def mock_mongo_collection(mock_mongo_database: MockDatabase) -> MagicMock:
    """The mock collection named "test_collection"."""
    return mock_mongo_database["test_collection"]


@pytest.fixture
def mock_mongo_client(mock_mongo_database: MockDatabase) -> MagicMock:
    """Create a mock motor client whose ping succeeds."""
    client = MagicMock()
    client.admin = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.__getitem__ = MagicMock(return_value=mock_mongo_database)
    client.get_default_database = MagicMock(return_value=mock_mongo_database)
    client.close = MagicMock()
    return client


@pytest.fixture
def store(mock_mongo_database: MockDatabase) -> MongoDBStore:
    """Create a MongoDBStore on the mock database."""
    return MongoDBStore(mock_mongo_database)


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def adapter_config() -> AdapterConfig:
    """Provide a default adapter configuration."""
    return AdapterConfig(
        host="localhost",
        port=27017,
        dbname="test_db",
        max_pool_size=10,
        min_pool_size=1,
    )


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start each test with an empty metrics collector."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def object_id_string() -> str:
    """A valid string-encoded ObjectId."""
    return "507f1f77bcf86cd799439011"


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """Provide a sample document as it arrives from a host request."""
    return {
        "title": "Intro to Databases",
        "owner": "507f1f77bcf86cd799439011",
        "tags": ["507f1f77bcf86cd799439012", "beginner"],
        "sections": [{"author": "507f1f77bcf86cd799439013", "pages": 12}],
    }
