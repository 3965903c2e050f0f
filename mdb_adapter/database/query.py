"""
Query normalization for MongoDB Adapter.

Turns a declarative query description (match criteria, pagination, sort,
projection, relation expansion) into the filter and options a driver call
expects.

Normalization is strict about identity and lenient about paging:
- a missing descriptor or missing match criteria raises InvalidQueryError
- an ``_id`` that is not a valid identifier raises InvalidIdentifierError
- a malformed ``limit`` or ``skip`` is dropped with a warning

Usage:
    from mdb_adapter.database import DataQuery, normalize_query

    query = DataQuery(match_criteria={"_id": "507f1f77bcf86cd799439011"}, limit="10")
    normalized = normalize_query(query)
    docs = await collection.find(**normalized.as_find_kwargs()).to_list(length=None)
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..constants import ID_FIELD, SORT_DIRECTIONS
from ..exceptions import InvalidQueryError
from ..utils.identifiers import convert_object_ids, parse_object_id

logger = logging.getLogger(__name__)

# Host-facing spellings accepted by DataQuery.from_dict, mapped to field names
QUERY_FIELD_ALIASES: dict[str, str] = {
    "matchCriteria": "match_criteria",
    "fieldsMatching": "match_criteria",
    "match_criteria": "match_criteria",
    "limit": "limit",
    "limitResultsTo": "limit",
    "skip": "skip",
    "startResultsFrom": "skip",
    "sortBy": "sort_by",
    "sortResultsBy": "sort_by",
    "sort_by": "sort_by",
    "includeFields": "include_fields",
    "include_fields": "include_fields",
    "expandFields": "expand_fields",
    "expand_fields": "expand_fields",
    "populate": "expand_fields",
    "collection": "collection",
    "type": "collection",
}


@dataclass
class DataQuery:
    """
    Declarative description of a read, update or delete selection.

    Attributes:
        match_criteria: Field path -> expected value or match expression
        limit: Maximum number of results (int or digit string)
        skip: Number of results to skip (int or digit string)
        sort_by: Field path -> direction (1/-1, "asc"/"desc")
        include_fields: Field paths to project
        expand_fields: Relation field names to populate, in order
        collection: Collection the query targets
    """

    match_criteria: dict[str, Any] | None = None
    limit: Any = None
    skip: Any = None
    sort_by: Any = None
    include_fields: Any = None
    expand_fields: list[str] | None = None
    collection: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "DataQuery":
        """
        Build a DataQuery from a host-style mapping.

        Both snake_case names and the camelCase spellings listed in
        QUERY_FIELD_ALIASES are accepted. Unknown keys are ignored.

        Raises:
            InvalidQueryError: If ``data`` is not a mapping
        """
        if data is None:
            raise InvalidQueryError("Expected a query, none provided")
        if not isinstance(data, Mapping):
            raise InvalidQueryError(
                f"Query must be a mapping, got {type(data).__name__}",
            )
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = QUERY_FIELD_ALIASES.get(key)
            if name is not None and kwargs.get(name) is None:
                kwargs[name] = value
        return cls(**kwargs)


@dataclass
class NormalizedQuery:
    """
    Driver-facing form of a DataQuery.

    ``options`` only holds the keys whose source field was present.
    """

    filter: dict[str, Any]
    options: dict[str, Any] = field(default_factory=dict)
    populate_paths: str | None = None

    def as_find_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for ``collection.find()``."""
        return {"filter": self.filter, **self.options}


def validate_query(query: DataQuery | None) -> None:
    """
    Check that a query is present and carries match criteria.

    Raises:
        InvalidQueryError: If the query or its match criteria are missing
    """
    if query is None:
        raise InvalidQueryError("Expected a query, none provided")
    if query.match_criteria is None:
        raise InvalidQueryError(
            "Query is missing match criteria",
            context={"collection": query.collection} if query.collection else None,
        )
    if not isinstance(query.match_criteria, Mapping):
        raise InvalidQueryError(
            f"Match criteria must be a mapping, got {type(query.match_criteria).__name__}",
        )


def normalize_query(query: DataQuery | Mapping[str, Any] | None) -> NormalizedQuery:
    """
    Convert a query description into a driver filter and options.

    Args:
        query: DataQuery instance or host-style mapping

    Returns:
        NormalizedQuery with ``filter``, ``options`` and ``populate_paths``

    Raises:
        InvalidQueryError: If the query or its match criteria are missing
        InvalidIdentifierError: If ``_id`` in the match criteria is malformed
    """
    if query is not None and not isinstance(query, DataQuery):
        query = DataQuery.from_dict(query)
    validate_query(query)

    query_filter = dict(query.match_criteria)
    if ID_FIELD in query_filter:
        query_filter[ID_FIELD] = _normalize_id(query_filter[ID_FIELD])

    options: dict[str, Any] = {}
    limit = _coerce_int("limit", query.limit, minimum=1)
    if limit is not None:
        options["limit"] = limit
    skip = _coerce_int("skip", query.skip, minimum=0)
    if skip is not None:
        options["skip"] = skip
    sort = _normalize_sort(query.sort_by)
    if sort is not None:
        options["sort"] = sort
    projection = _normalize_projection(query.include_fields)
    if projection is not None:
        options["projection"] = projection

    populate_paths = None
    if query.expand_fields:
        if isinstance(query.expand_fields, str):
            populate_paths = query.expand_fields
        else:
            populate_paths = " ".join(str(name) for name in query.expand_fields)

    return NormalizedQuery(filter=query_filter, options=options, populate_paths=populate_paths)


def _normalize_id(value: Any) -> Any:
    # Operator expressions such as {"$in": [...]} are converted member-wise
    if isinstance(value, dict):
        value = copy.deepcopy(value)
        convert_object_ids(value)
        return value
    return parse_object_id(value)


def _coerce_int(name: str, value: Any, minimum: int) -> int | None:
    if value is None:
        return None
    coerced = None
    if isinstance(value, bool):
        coerced = None
    elif isinstance(value, int):
        coerced = value
    elif isinstance(value, float) and value.is_integer():
        coerced = int(value)
    elif isinstance(value, str):
        try:
            coerced = int(value.strip())
        except ValueError:
            coerced = None

    if coerced is None or coerced < minimum:
        logger.warning(f"Dropping malformed query option '{name}': {value!r}")
        return None
    return coerced


def _normalize_sort(sort_by: Any) -> list[tuple[str, int]] | None:
    if sort_by is None:
        return None

    if isinstance(sort_by, str):
        # "name -created" style
        pairs = [
            (token[1:], -1) if token.startswith("-") else (token, 1)
            for token in sort_by.split()
        ]
    elif isinstance(sort_by, Mapping):
        pairs = list(sort_by.items())
    elif isinstance(sort_by, (list, tuple)):
        pairs = list(sort_by)
    else:
        logger.warning(f"Dropping malformed query option 'sort': {sort_by!r}")
        return None

    sort: list[tuple[str, int]] = []
    for pair in pairs:
        try:
            key, direction = pair
        except (TypeError, ValueError):
            logger.warning(f"Dropping malformed query option 'sort': {sort_by!r}")
            return None
        resolved = _sort_direction(direction)
        if not isinstance(key, str) or resolved is None:
            logger.warning(f"Dropping malformed query option 'sort': {sort_by!r}")
            return None
        sort.append((key, resolved))
    return sort or None


def _sort_direction(direction: Any) -> int | None:
    if isinstance(direction, bool):
        return None
    if isinstance(direction, str):
        direction = direction.strip().lower()
    try:
        return SORT_DIRECTIONS.get(direction)
    except TypeError:
        return None


def _normalize_projection(include_fields: Any) -> dict[str, Any] | None:
    if include_fields is None:
        return None
    if isinstance(include_fields, Mapping):
        return dict(include_fields)
    if isinstance(include_fields, str):
        include_fields = include_fields.split()
    if isinstance(include_fields, (list, tuple, set, frozenset)):
        return {str(name): 1 for name in include_fields} or None
    logger.warning(f"Dropping malformed query option 'projection': {include_fields!r}")
    return None
