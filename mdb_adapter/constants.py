"""
Constants for MDB_ADAPTER.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

import re
from typing import Final

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_SCHEME: Final[str] = "mongodb"
"""Default connection string scheme."""

DEFAULT_HOST: Final[str] = "localhost"
"""Default MongoDB host."""

DEFAULT_PORT: Final[int] = 27017
"""Default MongoDB port."""

DEFAULT_APP_NAME: Final[str] = "MDB_ADAPTER"
"""Application name reported to the server in the handshake."""

# Connection pool defaults
DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

MIN_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 1000
"""Lowest accepted server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

DEFAULT_HEALTH_CHECK_TIMEOUT: Final[float] = 5.0
"""Timeout for the ping issued by health checks (seconds)."""

MASKED_PASSWORD: Final[str] = "****"
"""Replacement for passwords in logged connection strings."""

# ============================================================================
# IDENTIFIER CONSTANTS
# ============================================================================

OBJECT_ID_LENGTH: Final[int] = 24
"""Length of the hexadecimal text form of an ObjectId."""

OBJECT_ID_PATTERN: Final[re.Pattern] = re.compile(r"\A[0-9a-fA-F]{24}\Z")
"""Shape of a string-encoded ObjectId."""

ID_FIELD: Final[str] = "_id"
"""Primary key field name."""

MAX_COERCION_DEPTH: Final[int] = 32
"""Nesting depth below which identifier coercion stops descending."""

# ============================================================================
# DRIVER ERROR CODES
# ============================================================================

IMMUTABLE_FIELD_ERROR_CODE: Final[int] = 66
"""Server error code for an attempt to modify an immutable field."""

DUPLICATE_KEY_ERROR_CODE: Final[int] = 11000
"""Server error code for a unique index violation."""

LEGACY_DUPLICATE_KEY_ERROR_CODE: Final[int] = 11001
"""Duplicate key code still reported by some server versions on update."""

# ============================================================================
# SCHEMA KEYWORD CONSTANTS
# ============================================================================

OBJECT_ID_KEYWORD: Final[str] = "isObjectId"
"""Schema keyword that coerces identifier strings to ObjectId."""

DATE_KEYWORD: Final[str] = "isDate"
"""Schema keyword that coerces date strings to datetime."""

# ============================================================================
# QUERY CONSTANTS
# ============================================================================

SORT_DIRECTIONS: Final[dict] = {
    1: 1,
    -1: -1,
    "1": 1,
    "-1": -1,
    "asc": 1,
    "ascending": 1,
    "desc": -1,
    "descending": -1,
}
"""Accepted sort direction spellings mapped to driver directions."""
