"""
MDB_ADAPTER - MongoDB Adapter

Data-access module for plugin-based host applications: connection
management, identifier coercion, query normalization and classified
storage errors on top of motor.
"""

# Configuration
from .config import AdapterConfig
# Core adapter
from .core import MongoDBAdapter
# Database layer
from .database import (DataQuery, ErrorClassifier, MongoDBStore,
                       NormalizedQuery, build_connection_uri, classify_error,
                       normalize_query)
# Errors
from .exceptions import (ConfigurationError, ConnectionFailureError,
                         DataValidationError, DuplicateKeyViolationError,
                         ImmutableFieldViolationError, InvalidIdentifierError,
                         InvalidQueryError, MongoDBAdapterError, StorageError)
# Identifier helpers
from .utils import (convert_object_ids, create_object_id, is_object_id,
                    is_valid_object_id, parse_object_id)
# Schema keywords
from .validation import SchemaValidator, register_default_keywords

__version__ = "0.1.0"

__all__ = [
    # Core
    "MongoDBAdapter",
    "AdapterConfig",
    # Database
    "MongoDBStore",
    "DataQuery",
    "NormalizedQuery",
    "normalize_query",
    "ErrorClassifier",
    "classify_error",
    "build_connection_uri",
    # Identifiers
    "convert_object_ids",
    "create_object_id",
    "is_object_id",
    "is_valid_object_id",
    "parse_object_id",
    # Validation
    "SchemaValidator",
    "register_default_keywords",
    # Errors
    "MongoDBAdapterError",
    "InvalidIdentifierError",
    "InvalidQueryError",
    "StorageError",
    "ImmutableFieldViolationError",
    "DuplicateKeyViolationError",
    "ConnectionFailureError",
    "ConfigurationError",
    "DataValidationError",
]
