"""
Utility functions and helpers for MDB Adapter.

Identifier and date coercion plus document serialization.
"""

from .dates import is_date, parse_date
from .identifiers import (convert_object_ids, create_object_id, is_object_id,
                          is_valid_object_id, parse_object_id, parse_param_ids)
from .mongo import clean_mongo_doc, clean_mongo_docs, clean_mongo_value

__all__ = [
    # Identifiers
    "convert_object_ids",
    "create_object_id",
    "is_object_id",
    "is_valid_object_id",
    "parse_object_id",
    "parse_param_ids",
    # Dates
    "is_date",
    "parse_date",
    # Serialization
    "clean_mongo_doc",
    "clean_mongo_docs",
    "clean_mongo_value",
]
