"""
Adapter

The module entry point the host application loads. It manages:
- The MongoDB connection
- Schema keyword registration
- The MongoDBStore facade
- Readiness and health reporting

This module is part of MDB_ADAPTER - MongoDB Adapter.
"""

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient

from ..config import AdapterConfig
from ..database import ConnectionManager, ErrorClassifier, MongoDBStore
from ..observability import (HealthChecker, check_adapter_health,
                             check_mongodb_health)
from ..observability import get_logger as get_contextual_logger
from ..validation import KeywordRegistry, SchemaValidator, register_default_keywords

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class MongoDBAdapter:
    """
    The MongoDB adapter module.

    Example:
        adapter = MongoDBAdapter(AdapterConfig.from_env())
        await adapter.initialize()
        doc = await adapter.store.insert("users", {"name": "Test"})
        await adapter.shutdown()

        # Or as an async context manager
        async with MongoDBAdapter(config) as adapter:
            docs = await adapter.store.find("users", {"matchCriteria": {}})
    """

    def __init__(
        self,
        config: AdapterConfig,
        validator: Optional[KeywordRegistry] = None,
        classifier: Optional[ErrorClassifier] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            config: Adapter configuration
            validator: Schema keyword registry (defaults to a SchemaValidator)
            classifier: Driver error classifier (defaults to the standard code table)
            logger: Log sink handed to the store
        """
        self.config = config
        self.validator = validator if validator is not None else SchemaValidator()
        self.classifier = classifier or ErrorClassifier()
        self._logger = logger

        self._connection_manager = ConnectionManager(config)
        self._store: Optional[MongoDBStore] = None
        self._registered_keywords: list[str] = []

    async def initialize(self) -> None:
        """
        Connect, register schema keywords and build the store.

        Raises:
            ConnectionFailureError: If the connection cannot be established.
                The adapter stays unusable.
        """
        if self.is_ready:
            logger.warning("MongoDBAdapter already initialized. Skipping re-initialization.")
            return

        await self._connection_manager.initialize()

        if not self._registered_keywords:
            register_default_keywords(_RecordingRegistry(self.validator, self._registered_keywords))

        self._store = MongoDBStore(
            self._connection_manager.mongo_db,
            classifier=self.classifier,
            logger=self._logger,
        )
        contextual_logger.info(
            "MongoDBAdapter ready",
            extra={"keywords": list(self._registered_keywords)},
        )

    async def shutdown(self) -> None:
        """Close the connection. Safe to call more than once."""
        self._store = None
        await self._connection_manager.shutdown()

    @property
    def store(self) -> MongoDBStore:
        """
        The data-access facade.

        Raises:
            RuntimeError: If the adapter is not initialized
        """
        if self._store is None:
            raise RuntimeError("MongoDBAdapter not initialized. Call initialize() first.")
        return self._store

    @property
    def mongo_client(self) -> AsyncIOMotorClient:
        """
        The MongoDB client.

        Raises:
            RuntimeError: If the adapter is not initialized
        """
        return self._connection_manager.mongo_client

    @property
    def is_ready(self) -> bool:
        """True once initialize() has completed."""
        return self._store is not None and self._connection_manager.initialized

    @property
    def registered_keywords(self) -> list[str]:
        """Schema keywords registered at startup."""
        return list(self._registered_keywords)

    async def is_connected(self) -> bool:
        """Ping the server."""
        return await self._connection_manager.is_connected()

    async def get_health_status(self) -> dict[str, Any]:
        """
        Run the adapter and MongoDB health checks.

        Returns:
            Dictionary with overall status and individual check results
        """
        checker = HealthChecker()

        async def adapter_check():
            return await check_adapter_health(self)

        async def mongodb_check():
            client = self._connection_manager.mongo_client if self.is_ready else None
            return await check_mongodb_health(client)

        checker.register_check(adapter_check)
        checker.register_check(mongodb_check)
        return await checker.check_all()

    async def __aenter__(self) -> "MongoDBAdapter":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()


class _RecordingRegistry:
    """Forwards registrations to a registry and records the keyword names."""

    def __init__(self, registry: KeywordRegistry, names: list[str]) -> None:
        self._registry = registry
        self._names = names

    def add_keyword(self, name: str, check) -> None:
        self._registry.add_keyword(name, check)
        self._names.append(name)
