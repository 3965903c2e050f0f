"""
Configuration management for MDB_ADAPTER.

This module provides Pydantic-based configuration for the adapter. Values
can be passed directly or read from ``MONGO_*`` environment variables.
"""

import os
from typing import Any, Optional
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .constants import (DEFAULT_APP_NAME, DEFAULT_HOST, DEFAULT_MAX_POOL_SIZE,
                        DEFAULT_MIN_POOL_SIZE, DEFAULT_PORT, DEFAULT_SCHEME,
                        DEFAULT_SERVER_SELECTION_TIMEOUT_MS, MASKED_PASSWORD,
                        MIN_SERVER_SELECTION_TIMEOUT_MS)
from .database.connection import build_connection_uri
from .exceptions import ConfigurationError

# Environment variable suffix -> config field
ENV_FIELDS: dict[str, str] = {
    "HOST": "host",
    "PORT": "port",
    "DBNAME": "dbname",
    "USERNAME": "username",
    "PASSWORD": "password",
    "OPTIONS": "options",
    "MAX_POOL_SIZE": "max_pool_size",
    "MIN_POOL_SIZE": "min_pool_size",
    "SERVER_SELECTION_TIMEOUT_MS": "server_selection_timeout_ms",
    "APP_NAME": "app_name",
}


class AdapterConfig(BaseModel):
    """
    MongoDB adapter configuration.

    Example:
        # Using environment variables (MONGO_HOST, MONGO_PORT, MONGO_DBNAME, ...)
        config = AdapterConfig.from_env()

        # Or using direct parameters
        config = AdapterConfig(host="localhost", port=27017, dbname="my_db")
        adapter = MongoDBAdapter(config)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    scheme: str = Field(DEFAULT_SCHEME, description="Connection string scheme")
    host: str = Field(DEFAULT_HOST, min_length=1, description="MongoDB host")
    port: int = Field(DEFAULT_PORT, ge=1, le=65535, description="MongoDB port")
    dbname: Optional[str] = Field(None, description="Database name")
    username: Optional[str] = Field(None, description="Username (used with password)")
    password: Optional[str] = Field(None, description="Password (used with username)")
    options: Optional[str] = Field(
        None, description="Extra connection string parameters, e.g. 'authSource=admin'"
    )
    max_pool_size: int = Field(
        DEFAULT_MAX_POOL_SIZE, ge=1, description="Maximum connection pool size"
    )
    min_pool_size: int = Field(
        DEFAULT_MIN_POOL_SIZE, ge=1, description="Minimum connection pool size"
    )
    server_selection_timeout_ms: int = Field(
        DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        ge=MIN_SERVER_SELECTION_TIMEOUT_MS,
        description="Server selection timeout in milliseconds",
    )
    app_name: str = Field(DEFAULT_APP_NAME, description="Client application name")

    @model_validator(mode="after")
    def _check_pool_sizes(self) -> "AdapterConfig":
        if self.min_pool_size > self.max_pool_size:
            raise ValueError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})"
            )
        return self

    @property
    def connection_uri(self) -> str:
        """The connection string built from host, port, credentials, dbname and options."""
        return build_connection_uri(
            host=self.host,
            port=self.port,
            dbname=self.dbname,
            username=self.username,
            password=self.password,
            options=self.options,
            scheme=self.scheme,
        )

    @property
    def masked_uri(self) -> str:
        """The connection string with the password hidden, safe to log."""
        uri = self.connection_uri
        if not (self.username and self.password):
            return uri
        credentials = f"{quote_plus(self.username)}:{quote_plus(self.password)}@"
        return uri.replace(
            credentials, f"{quote_plus(self.username)}:{MASKED_PASSWORD}@", 1
        )

    @classmethod
    def from_env(cls, prefix: str = "MONGO_", **overrides: Any) -> "AdapterConfig":
        """
        Build a configuration from environment variables.

        Args:
            prefix: Environment variable prefix
            **overrides: Values taking precedence over the environment

        Returns:
            Validated AdapterConfig

        Raises:
            ConfigurationError: If a value is missing or invalid
        """
        values: dict[str, Any] = {}
        for suffix, name in ENV_FIELDS.items():
            raw = os.getenv(f"{prefix}{suffix}")
            if raw not in (None, ""):
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)

    @classmethod
    def create(cls, **values: Any) -> "AdapterConfig":
        """
        Validate values into an AdapterConfig.

        Raises:
            ConfigurationError: If a value is missing or invalid
        """
        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            config_key = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ConfigurationError(
                f"Invalid adapter configuration: {first.get('msg')}",
                config_key=config_key,
                config_value=(
                    first.get("input") if config_key not in (None, "password") else None
                ),
            ) from e
