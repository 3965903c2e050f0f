"""
Document serialization helpers for MDB_ADAPTER.

The inverse of identifier coercion: turns documents read from MongoDB back
into JSON-serializable structures for the host's HTTP layer.
"""

from datetime import datetime
from typing import Any

from bson import ObjectId


def clean_mongo_value(value: Any) -> Any:
    """
    Convert a single value to a JSON-serializable equivalent.

    - ObjectId -> str
    - datetime -> ISO format string
    - dict and list -> converted recursively

    Args:
        value: Any value read from MongoDB

    Returns:
        The converted value (a new container for dicts and lists)
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: clean_mongo_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clean_mongo_value(item) for item in value]
    return value


def clean_mongo_doc(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Convert a MongoDB document to JSON-serializable format.

    Args:
        doc: MongoDB document (dict) or None

    Returns:
        Cleaned copy of the document, or None if input was None

    Example:
        ```python
        doc = {"_id": ObjectId("507f1f77bcf86cd799439011"), "name": "John"}
        clean_mongo_doc(doc)
        # {"_id": "507f1f77bcf86cd799439011", "name": "John"}
        ```
    """
    if doc is None:
        return None
    return clean_mongo_value(doc)


def clean_mongo_docs(docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Apply clean_mongo_doc to each document in a list."""
    return [clean_mongo_doc(doc) for doc in docs]
