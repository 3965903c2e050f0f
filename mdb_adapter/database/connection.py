"""
Connection management for MongoDB Adapter.

Builds the connection URI from its parts and manages the motor client
lifecycle: connect, verify with a ping, and shutdown.

This module is part of MDB_ADAPTER - MongoDB Adapter.
"""

import logging
import time
from typing import TYPE_CHECKING
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import (ConnectionFailure, InvalidOperation,
                            OperationFailure, ServerSelectionTimeoutError)

from ..constants import DEFAULT_MAX_IDLE_TIME_MS, DEFAULT_SCHEME
from ..exceptions import ConnectionFailureError
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation

if TYPE_CHECKING:
    from ..config import AdapterConfig

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


def build_connection_uri(
    host: str,
    port: int | str,
    dbname: str | None = None,
    username: str | None = None,
    password: str | None = None,
    options: str | None = None,
    scheme: str = DEFAULT_SCHEME,
) -> str:
    """
    Assemble a MongoDB connection string.

    Parts are joined in a fixed order: scheme, ``user:pass@`` (only when
    both are set), ``host:port``, ``/dbname`` (if set), ``?options`` (if set).

    Args:
        host: Server host
        port: Server port
        dbname: Database name
        username: Username, percent-escaped into the URI
        password: Password, percent-escaped into the URI
        options: Extra connection string parameters, e.g. "authSource=admin"
        scheme: URI scheme

    Returns:
        The connection string

    Example:
        >>> build_connection_uri("db", 27017, "app", "u", "p", "authSource=admin")
        'mongodb://u:p@db:27017/app?authSource=admin'
    """
    user_string = ""
    if username and password:
        user_string = f"{quote_plus(username)}:{quote_plus(password)}@"
    db_string = f"/{dbname}" if dbname else ""
    opts_string = f"?{options.lstrip('?')}" if options else ""
    return f"{scheme}://{user_string}{host}:{port}{db_string}{opts_string}"


class ConnectionManager:
    """
    Manages the MongoDB client lifecycle.

    Handles connection initialization, verification, and shutdown. The
    database handle is read-only once initialize() has returned.
    """

    def __init__(self, config: "AdapterConfig") -> None:
        """
        Initialize the connection manager.

        Args:
            config: Adapter configuration
        """
        self.config = config

        self._mongo_client: AsyncIOMotorClient | None = None
        self._mongo_db: AsyncIOMotorDatabase | None = None
        self._initialized: bool = False

    async def initialize(self) -> None:
        """
        Connect to MongoDB and verify the connection with a ping.

        Raises:
            ConnectionFailureError: If the client cannot be created or the
                server does not answer
        """
        start_time = time.time()

        if self._initialized:
            logger.warning("ConnectionManager already initialized. Skipping re-initialization.")
            return

        contextual_logger.info(
            "Initializing MongoDB connection",
            extra={
                "mongo_uri": self.config.masked_uri,
                "db_name": self.config.dbname,
                "max_pool_size": self.config.max_pool_size,
                "min_pool_size": self.config.min_pool_size,
            },
        )

        client = None
        try:
            client = AsyncIOMotorClient(
                self.config.connection_uri,
                serverSelectionTimeoutMS=self.config.server_selection_timeout_ms,
                appname=self.config.app_name,
                maxPoolSize=self.config.max_pool_size,
                minPoolSize=self.config.min_pool_size,
                maxIdleTimeMS=DEFAULT_MAX_IDLE_TIME_MS,
                retryWrites=True,
                retryReads=True,
            )
            await client.admin.command("ping")
        except (
            ConnectionFailure,
            ServerSelectionTimeoutError,
            OperationFailure,
            PyMongoConfigurationError,
            TypeError,
            ValueError,
        ) as e:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=False)
            contextual_logger.critical(
                "MongoDB connection failed",
                extra={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            if client is not None:
                client.close()
            raise ConnectionFailureError(
                f"Failed to connect to MongoDB: {e}",
                mongo_uri=self.config.masked_uri,
                db_name=self.config.dbname,
                context={"error_type": type(e).__name__},
            ) from e

        self._mongo_client = client
        # Without a dbname in the URI this falls back to "test", as the driver does
        if self.config.dbname:
            self._mongo_db = client[self.config.dbname]
        else:
            self._mongo_db = client.get_default_database("test")
        self._initialized = True

        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.initialize", duration_ms, success=True)
        contextual_logger.info(
            f"connected to {self.config.masked_uri}",
            extra={
                "db_name": self._mongo_db.name,
                "pool_size": f"{self.config.min_pool_size}-{self.config.max_pool_size}",
                "duration_ms": round(duration_ms, 2),
            },
        )

    async def shutdown(self) -> None:
        """
        Close the MongoDB client.

        This method is idempotent - it's safe to call multiple times.
        """
        if not self._initialized:
            return

        if self._mongo_client is not None:
            try:
                self._mongo_client.close()
            except (InvalidOperation, RuntimeError) as e:
                logger.warning(f"Error closing MongoDB client: {e}")

        self._initialized = False
        self._mongo_client = None
        self._mongo_db = None
        contextual_logger.info("MongoDB connection closed")

    async def is_connected(self) -> bool:
        """
        Ping the server.

        Returns:
            True if initialized and the server answers, False otherwise
        """
        if not self._initialized or self._mongo_client is None:
            return False
        try:
            await self._mongo_client.admin.command("ping")
            return True
        except (ConnectionFailure, OperationFailure, InvalidOperation) as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @property
    def mongo_client(self) -> AsyncIOMotorClient:
        """
        Get the MongoDB client.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if not self._initialized:
            raise RuntimeError("ConnectionManager not initialized. Call initialize() first.")
        return self._mongo_client

    @property
    def mongo_db(self) -> AsyncIOMotorDatabase:
        """
        Get the MongoDB database.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if not self._initialized:
            raise RuntimeError("ConnectionManager not initialized. Call initialize() first.")
        return self._mongo_db

    @property
    def initialized(self) -> bool:
        """Check if connection is initialized."""
        return self._initialized
