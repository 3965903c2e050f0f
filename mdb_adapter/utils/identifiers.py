"""
ObjectId helpers for MDB_ADAPTER.

Recognises, validates and converts string-encoded identifiers, and converts
them throughout arbitrarily nested payloads before those payloads reach a
schema validator or the driver.

Detection is shape based: any string of exactly 24 hexadecimal characters
is treated as an identifier, whatever the field it appears in. A string
that merely looks like an ObjectId is converted as well.

Example:
    ```python
    from mdb_adapter.utils import convert_object_ids

    payload = {
        "_id": "507f1f77bcf86cd799439011",
        "name": "plain",
        "tags": ["507f1f77bcf86cd799439012", "notanid"],
    }
    convert_object_ids(payload)
    # payload["_id"] and payload["tags"][0] are now ObjectId instances
    ```
"""

import logging
from typing import Any

from bson import ObjectId

from ..constants import ID_FIELD, MAX_COERCION_DEPTH, OBJECT_ID_PATTERN
from ..exceptions import InvalidIdentifierError

logger = logging.getLogger(__name__)


def is_valid_object_id(value: Any) -> bool:
    """
    Check whether a value is a string-encoded ObjectId.

    Only 24 character hexadecimal strings qualify (either case). Unlike
    ``ObjectId.is_valid`` this rejects 12-byte values and ObjectId instances.

    Args:
        value: Value to check

    Returns:
        True if ``value`` can be parsed into an ObjectId, False otherwise
    """
    return isinstance(value, str) and OBJECT_ID_PATTERN.match(value) is not None


def is_object_id(value: Any) -> bool:
    """Return True if ``value`` is already an ObjectId."""
    return isinstance(value, ObjectId)


def create_object_id() -> ObjectId:
    """Return a freshly generated ObjectId."""
    return ObjectId()


def parse_object_id(value: Any) -> ObjectId:
    """
    Convert a value to an ObjectId.

    ObjectId instances are returned unchanged, so parsing is idempotent.

    Args:
        value: ObjectId or 24 character hexadecimal string

    Returns:
        The parsed ObjectId

    Raises:
        InvalidIdentifierError: If ``value`` is not a valid identifier
    """
    if is_object_id(value):
        return value
    if not is_valid_object_id(value):
        raise InvalidIdentifierError(value)
    return ObjectId(value)


def parse_param_ids(*params: Any) -> None:
    """
    Parse the ``_id`` field of each mapping in place.

    Only the top-level ``_id`` key is touched. Values that fail to parse
    are left as they are.

    Args:
        *params: Mappings to inspect (None and non-mappings are skipped)
    """
    for param in params:
        if not isinstance(param, dict) or ID_FIELD not in param:
            continue
        try:
            param[ID_FIELD] = parse_object_id(param[ID_FIELD])
        except InvalidIdentifierError:
            pass


def convert_object_ids(payload: Any, max_depth: int = MAX_COERCION_DEPTH) -> None:
    """
    Convert identifier-shaped strings to ObjectId throughout a payload.

    The payload is modified in place: string values of mappings and string
    elements of lists are replaced when they are valid identifiers, and
    nested mappings and lists are walked recursively. Every other value is
    left untouched.

    This function never raises. Containers seen twice during one walk (cycles
    or shared sub-trees) are visited once, and containers nested deeper than
    ``max_depth`` are left unconverted with a warning.

    Args:
        payload: Mapping or list to convert (None is a no-op)
        max_depth: Maximum container nesting depth to descend into
    """
    if payload is None:
        return
    _convert_container(payload, 0, max_depth, set())


def _convert_container(container: Any, depth: int, max_depth: int, seen: set[int]) -> None:
    if isinstance(container, dict):
        entries = list(container.items())
    elif isinstance(container, list):
        entries = list(enumerate(container))
    else:
        return

    if id(container) in seen:
        logger.warning("Identifier conversion skipped a container already visited (cycle)")
        return
    if depth > max_depth:
        logger.warning(
            f"Identifier conversion stopped at depth {depth} (max_depth={max_depth})"
        )
        return
    seen.add(id(container))

    for key, value in entries:
        if isinstance(value, (dict, list)):
            _convert_container(value, depth + 1, max_depth, seen)
        elif is_valid_object_id(value):
            container[key] = _try_parse(value)


def _try_parse(value: str) -> Any:
    try:
        return parse_object_id(value)
    except InvalidIdentifierError:
        return value
