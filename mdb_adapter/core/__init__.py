"""
Core adapter module.

The host-facing entry point that wires connection, schema keywords and
the store together.
"""

from .adapter import MongoDBAdapter

__all__ = ["MongoDBAdapter"]
