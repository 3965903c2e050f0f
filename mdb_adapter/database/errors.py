"""
Driver error classification for MongoDB Adapter.

Maps low-level driver failures to the adapter's closed set of storage error
kinds using the server's numeric error code. The mapping is a table: adding
a code is one ``register`` call (or one entry in DEFAULT_ERROR_CODES).

Usage:
    from mdb_adapter.database import classify_error

    try:
        await collection.insert_one(doc)
    except (PyMongoError, BSONError) as e:
        raise classify_error(e, collection="users", action="insert") from e
"""

import re
from collections.abc import Mapping
from typing import Any

from ..constants import (DUPLICATE_KEY_ERROR_CODE, IMMUTABLE_FIELD_ERROR_CODE,
                         LEGACY_DUPLICATE_KEY_ERROR_CODE)
from ..exceptions import (DuplicateKeyViolationError,
                          ImmutableFieldViolationError, StorageError)

DEFAULT_ERROR_CODES: dict[int, type[StorageError]] = {
    IMMUTABLE_FIELD_ERROR_CODE: ImmutableFieldViolationError,
    DUPLICATE_KEY_ERROR_CODE: DuplicateKeyViolationError,
    LEGACY_DUPLICATE_KEY_ERROR_CODE: DuplicateKeyViolationError,
}
"""Server error codes with a dedicated error kind."""

ACTION_MESSAGES: dict[str, str] = {
    "insert": "Failed to insert document",
    "insert_many": "Failed to insert documents",
    "find": "Failed to retrieve documents",
    "update": "Failed to update document",
    "replace": "Failed to replace document",
    "delete": "Failed to delete document",
    "delete_many": "Failed to delete documents",
}

_IMMUTABLE_FIELD_PATTERN = re.compile(r"immutable field '([^']+)'")


class ErrorClassifier:
    """
    Table-driven classifier for driver errors.

    Example:
        classifier = ErrorClassifier()
        classifier.register(50, StorageError)  # exceeded time limit
        error = classifier.classify(driver_error, collection="users", action="find")
    """

    def __init__(self, codes: Mapping[int, type[StorageError]] | None = None):
        """
        Initialize the classifier.

        Args:
            codes: Error code -> error class table (defaults to DEFAULT_ERROR_CODES)
        """
        self._codes: dict[int, type[StorageError]] = dict(
            DEFAULT_ERROR_CODES if codes is None else codes
        )

    @property
    def codes(self) -> dict[int, type[StorageError]]:
        """Return a copy of the error code table."""
        return dict(self._codes)

    def register(self, code: int, error_cls: type[StorageError]) -> None:
        """
        Map a server error code to an error class.

        Raises:
            TypeError: If ``error_cls`` is not a StorageError subclass
        """
        if not (isinstance(error_cls, type) and issubclass(error_cls, StorageError)):
            raise TypeError(f"error_cls must be a StorageError subclass, got {error_cls!r}")
        self._codes[code] = error_cls

    def lookup(self, code: int | None) -> type[StorageError]:
        """Return the error class for a code, StorageError when unmapped."""
        if code is None:
            return StorageError
        return self._codes.get(code, StorageError)

    def classify(
        self,
        error: Any,
        collection: str | None = None,
        action: str | None = None,
    ) -> StorageError:
        """
        Build the classified error for a driver failure.

        Args:
            error: Driver exception, or a mapping with ``code``/``errmsg`` keys
            collection: Collection the operation targeted
            action: Attempted action

        Returns:
            StorageError (or subclass) carrying collection, action, code and
            the driver's message. The caller is expected to raise it ``from``
            the driver error.
        """
        # Bulk writes report the per-document failure inside writeErrors
        write_error = _first_write_error(error)
        if write_error is not None:
            error = write_error

        code = _error_code(error)
        original_message = _error_message(error)
        error_cls = self.lookup(code)

        prefix = ACTION_MESSAGES.get(action, "Storage operation failed")
        message = f"{prefix}: {original_message}" if original_message else prefix

        return error_cls(
            message,
            collection=collection,
            action=action,
            code=code,
            original_message=original_message,
            field_path=_field_path(error, error_cls, original_message),
        )


def _error_details(error: Any) -> Mapping[str, Any]:
    if isinstance(error, Mapping):
        return error
    details = getattr(error, "details", None)
    return details if isinstance(details, Mapping) else {}


def _first_write_error(error: Any) -> Mapping[str, Any] | None:
    write_errors = _error_details(error).get("writeErrors")
    if isinstance(write_errors, list) and write_errors and isinstance(write_errors[0], Mapping):
        return write_errors[0]
    return None


def _error_code(error: Any) -> int | None:
    if isinstance(error, Mapping):
        code = error.get("code")
    else:
        code = getattr(error, "code", None)
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    return code


def _error_message(error: Any) -> str:
    details = _error_details(error)
    message = details.get("errmsg") or details.get("message")
    if message:
        return str(message)
    if isinstance(error, Mapping):
        return ""
    return str(error)


def _field_path(error: Any, error_cls: type[StorageError], message: str) -> str | None:
    if issubclass(error_cls, DuplicateKeyViolationError):
        key_pattern = _error_details(error).get("keyPattern")
        if isinstance(key_pattern, Mapping) and key_pattern:
            return ",".join(str(key) for key in key_pattern)
    if issubclass(error_cls, ImmutableFieldViolationError) and message:
        match = _IMMUTABLE_FIELD_PATTERN.search(message)
        if match:
            return match.group(1)
    return None


_default_classifier = ErrorClassifier()


def classify_error(
    error: Any, collection: str | None = None, action: str | None = None
) -> StorageError:
    """Classify a driver error using the default code table."""
    return _default_classifier.classify(error, collection=collection, action=action)
