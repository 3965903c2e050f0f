"""
Custom exceptions for MDB_ADAPTER.

Every error raised by the adapter derives from MongoDBAdapterError, which
stays compatible with RuntimeError. Error kinds are inspectable through the
class hierarchy and the ``kind`` attribute so callers never need to match
on message text.
"""

from typing import Any, Dict, List, Optional, Tuple


class MongoDBAdapterError(RuntimeError):
    """
    Base exception for MongoDB adapter errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection,
                 action, etc.)
    """

    kind: str = "adapter_error"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class InvalidIdentifierError(MongoDBAdapterError, ValueError):
    """
    Raised when a value cannot be parsed as an ObjectId.

    Attributes:
        value: The offending value
    """

    kind = "invalid_identifier"

    def __init__(self, value: Any, context: Optional[Dict[str, Any]] = None) -> None:
        context = context or {}
        context["value"] = repr(value)
        super().__init__("Not a valid ObjectId", context=context)
        self.value = value


class InvalidQueryError(MongoDBAdapterError):
    """Raised when a query descriptor is missing or lacks match criteria."""

    kind = "invalid_query"


class StorageError(MongoDBAdapterError):
    """
    Raised when a driver call fails.

    Subclasses narrow the failure using the server error code. The original
    driver error is always chained as ``__cause__``.

    Attributes:
        collection: Collection the operation targeted
        action: Attempted action (insert, find, update, ...)
        code: Numeric server error code, if any
        original_message: Message reported by the driver
        field_path: Offending field path, if the driver reported one
    """

    kind = "storage_error"

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        action: Optional[str] = None,
        code: Optional[int] = None,
        original_message: Optional[str] = None,
        field_path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if collection:
            context["collection"] = collection
        if action:
            context["action"] = action
        if code is not None:
            context["code"] = code
        if field_path:
            context["field_path"] = field_path
        super().__init__(message, context=context)
        self.collection = collection
        self.action = action
        self.code = code
        self.original_message = original_message
        self.field_path = field_path


class ImmutableFieldViolationError(StorageError):
    """Raised when an operation attempts to change an immutable field such as _id."""

    kind = "immutable_field"


class DuplicateKeyViolationError(StorageError):
    """Raised when a write violates a unique index."""

    kind = "duplicate_key"


class ConnectionFailureError(MongoDBAdapterError):
    """
    Raised when the adapter cannot connect at startup.

    This is fatal to initialization: an adapter that raised it is not usable.

    Attributes:
        mongo_uri: Connection URI with credentials masked (if available)
        db_name: Database name (if available)
    """

    kind = "connection_failure"

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        db_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if mongo_uri:
            context["mongo_uri"] = mongo_uri
        if db_name:
            context["db_name"] = db_name
        super().__init__(message, context=context)
        self.mongo_uri = mongo_uri
        self.db_name = db_name


class ConfigurationError(MongoDBAdapterError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
    """

    kind = "configuration"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class DataValidationError(MongoDBAdapterError):
    """
    Raised when a document fails schema validation.

    Attributes:
        errors: List of (path, message) pairs, one per failure
    """

    kind = "data_validation"

    def __init__(
        self,
        message: str,
        errors: Optional[List[Tuple[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        self.errors = errors or []
        if self.errors:
            context["error_paths"] = [path for path, _ in self.errors]
        super().__init__(message, context=context)
