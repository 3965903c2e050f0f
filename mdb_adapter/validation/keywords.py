"""
Coercing schema keywords.

Each keyword check has the shape ``check(value, parent, key) -> bool``. It
returns whether ``value`` is acceptable and, when ``parent`` is given,
replaces ``parent[key]`` with the typed value. With ``parent=None`` the
check only validates.
"""

from typing import Any, Callable, Protocol

from ..constants import DATE_KEYWORD, OBJECT_ID_KEYWORD
from ..utils.dates import parse_date
from ..utils.identifiers import is_object_id, is_valid_object_id, parse_object_id

KeywordCheck = Callable[[Any, Any, Any], bool]


class KeywordRegistry(Protocol):
    """Anything that accepts named keyword checks."""

    def add_keyword(self, name: str, check: KeywordCheck) -> None:
        ...


def object_id_keyword(value: Any, parent: Any = None, key: Any = None) -> bool:
    """Accept ObjectIds and identifier strings, converting the latter in place."""
    if is_object_id(value):
        return True
    if not is_valid_object_id(value):
        return False
    if parent is not None:
        parent[key] = parse_object_id(value)
    return True


def date_keyword(value: Any, parent: Any = None, key: Any = None) -> bool:
    """Accept datetimes, ISO-8601 strings and epoch milliseconds, converting in place."""
    try:
        parsed = parse_date(value)
    except ValueError:
        return False
    if parent is not None:
        parent[key] = parsed
    return True


DEFAULT_KEYWORDS: dict[str, KeywordCheck] = {
    OBJECT_ID_KEYWORD: object_id_keyword,
    DATE_KEYWORD: date_keyword,
}


def register_default_keywords(registry: KeywordRegistry) -> None:
    """Register the isObjectId and isDate keywords."""
    for name, check in DEFAULT_KEYWORDS.items():
        registry.add_keyword(name, check)
