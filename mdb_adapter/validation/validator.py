"""
JSON Schema validation with coercing keywords.

Extends a jsonschema validator class so that registered keywords (such as
``isObjectId``) both validate a value and replace it in its parent
container with the typed value.

Every keyword is checked in two places:
- as a regular keyword, which reports a ValidationError when the check fails
- from the enclosing ``properties`` or ``items``, after the standard
  validation of the child, where the check runs with the parent container
  so it can convert the value in place

Usage:
    validator = SchemaValidator()
    register_default_keywords(validator)

    doc = {"owner": "507f1f77bcf86cd799439011"}
    validator.validate(
        {"type": "object", "properties": {"owner": {"type": "string", "isObjectId": True}}},
        doc,
    )
    # doc["owner"] is now an ObjectId
"""

import logging
from collections.abc import Iterator
from typing import Any

from jsonschema import Draft7Validator, SchemaError, ValidationError, validators

from ..exceptions import ConfigurationError, DataValidationError
from .keywords import KeywordCheck

logger = logging.getLogger(__name__)


class SchemaValidator:
    """
    Keyword registry and validator built on jsonschema.

    Keyword registration happens once at startup; the extended validator
    class is rebuilt lazily after each registration.
    """

    def __init__(self, base_validator: type = Draft7Validator):
        """
        Initialize the validator.

        Args:
            base_validator: jsonschema validator class to extend
        """
        self._base = base_validator
        self._keywords: dict[str, KeywordCheck] = {}
        self._validator_cls: type | None = None

    @property
    def keywords(self) -> list[str]:
        """Names of the registered keywords."""
        return list(self._keywords)

    def add_keyword(self, name: str, check: KeywordCheck) -> None:
        """
        Register a coercing keyword.

        Args:
            name: Keyword name as used in schemas
            check: ``check(value, parent, key) -> bool``
        """
        if name in self._keywords:
            logger.warning(f"Replacing schema keyword '{name}'")
        self._keywords[name] = check
        self._validator_cls = None
        logger.debug(f"Registered schema keyword '{name}'")

    @property
    def validator_class(self) -> type:
        """The extended jsonschema validator class."""
        if self._validator_cls is None:
            self._validator_cls = self._build()
        return self._validator_cls

    def iter_errors(self, schema: dict[str, Any], instance: Any) -> Iterator[ValidationError]:
        """
        Validate ``instance``, yielding each error.

        Conversions happen as the iterator is consumed.

        Raises:
            ConfigurationError: If the schema itself is invalid
        """
        try:
            self.validator_class.check_schema(schema)
        except SchemaError as e:
            raise ConfigurationError(f"Invalid schema: {e.message}") from e
        return self.validator_class(schema).iter_errors(instance)

    def validate(self, schema: dict[str, Any], instance: Any) -> Any:
        """
        Validate ``instance`` and convert keyword values in place.

        Returns:
            The (converted) instance

        Raises:
            DataValidationError: Listing every failing path
            ConfigurationError: If the schema itself is invalid
        """
        errors = list(self.iter_errors(schema, instance))
        if errors:
            raise DataValidationError(
                "Data failed schema validation",
                errors=[(error.json_path, error.message) for error in errors],
            )
        return instance

    def _build(self) -> type:
        keywords = dict(self._keywords)
        base_properties = self._base.VALIDATORS["properties"]
        base_items = self._base.VALIDATORS["items"]

        def properties(validator, properties, instance, schema):
            yield from base_properties(validator, properties, instance, schema)
            if validator.is_type(instance, "object"):
                for prop, subschema in properties.items():
                    if prop in instance:
                        _coerce(keywords, subschema, instance, prop)

        def items(validator, items, instance, schema):
            yield from base_items(validator, items, instance, schema)
            if not validator.is_type(instance, "array"):
                return
            if isinstance(items, dict):
                for index in range(len(instance)):
                    _coerce(keywords, items, instance, index)
            elif isinstance(items, list):
                for index, subschema in zip(range(len(instance)), items):
                    _coerce(keywords, subschema, instance, index)

        extra = {"properties": properties, "items": items}
        for name, check in keywords.items():
            extra[name] = _keyword_validator(name, check)
        return validators.extend(self._base, extra)


def _keyword_validator(name: str, check: KeywordCheck):
    def validate_keyword(validator, enabled, instance, schema):
        if enabled and not check(instance, None, None):
            yield ValidationError(f"{instance!r} is not valid under keyword '{name}'")

    return validate_keyword


def _coerce(
    keywords: dict[str, KeywordCheck], subschema: Any, parent: Any, key: Any
) -> None:
    if not isinstance(subschema, dict):
        return
    for name, check in keywords.items():
        if subschema.get(name):
            check(parent[key], parent, key)
