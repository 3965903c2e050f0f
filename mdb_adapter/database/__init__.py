"""
Database access layer.

Connection lifecycle, query normalization, driver error classification and
the MongoDBStore facade.
"""

from .connection import ConnectionManager, build_connection_uri
from .errors import (DEFAULT_ERROR_CODES, ErrorClassifier, classify_error)
from .query import (DataQuery, NormalizedQuery, normalize_query,
                    validate_query)
from .store import MongoDBStore

__all__ = [
    # Connection
    "ConnectionManager",
    "build_connection_uri",
    # Errors
    "DEFAULT_ERROR_CODES",
    "ErrorClassifier",
    "classify_error",
    # Queries
    "DataQuery",
    "NormalizedQuery",
    "normalize_query",
    "validate_query",
    # Store
    "MongoDBStore",
]
