"""
Schema validation with coercing keywords.

Registers ``isObjectId`` and ``isDate`` on a jsonschema-based validator so
identifier and date strings arrive at the storage layer correctly typed.
"""

from .keywords import (DEFAULT_KEYWORDS, KeywordCheck, KeywordRegistry,
                       date_keyword, object_id_keyword,
                       register_default_keywords)
from .validator import SchemaValidator

__all__ = [
    "SchemaValidator",
    "KeywordRegistry",
    "KeywordCheck",
    "DEFAULT_KEYWORDS",
    "object_id_keyword",
    "date_keyword",
    "register_default_keywords",
]
