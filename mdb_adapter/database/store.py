"""
MongoDB Store

The data-access facade consumed by the host application. Every operation
runs the same sequence:

1. convert identifier strings in write payloads to ObjectId
2. normalize the query into a driver filter and options
3. call the driver
4. classify any driver failure into a StorageError subclass

This module is part of MDB_ADAPTER - MongoDB Adapter.

Usage:
    store = MongoDBStore(connection_manager.mongo_db)

    doc = await store.insert("users", {"name": "Test", "team": "507f1f77bcf86cd799439011"})
    docs = await store.find("users", {"matchCriteria": {"name": "Test"}, "limit": 10})
    await store.update("users", {"matchCriteria": {"_id": doc["_id"]}}, {"$set": {"name": "New"}})
    await store.delete("users", {"matchCriteria": {"_id": doc["_id"]}})
"""

import logging
import time
from collections.abc import Hashable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..constants import ID_FIELD
from ..exceptions import DataValidationError, StorageError
from ..observability import (record_operation, reset_operation_context,
                             set_operation_context)
from ..utils.identifiers import convert_object_ids
from .errors import ErrorClassifier
from .query import DataQuery, NormalizedQuery, normalize_query

QueryLike = DataQuery | Mapping[str, Any]


class MongoDBStore:
    """
    Insert, find, update, replace and delete documents in MongoDB.

    The store holds no state beyond the database handle, the error
    classifier and the logger it was constructed with.

    Example:
        store = MongoDBStore(db, classifier=ErrorClassifier(), logger=logging.getLogger("app"))
        doc = await store.insert("courses", {"title": "Intro"})
    """

    def __init__(
        self,
        mongo_db: AsyncIOMotorDatabase,
        classifier: ErrorClassifier | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        """
        Initialize the store.

        Args:
            mongo_db: Database handle (shared, read-only)
            classifier: Driver error classifier (defaults to the standard code table)
            logger: Log sink (defaults to this module's logger)
        """
        self._db = mongo_db
        self._classifier = classifier or ErrorClassifier()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """Return the driver collection for a name."""
        return self._db[collection_name]

    async def set_index(
        self, collection_name: str, field_or_spec: Any, **options: Any
    ) -> str | None:
        """
        Create an index, logging and swallowing any failure.

        Args:
            collection_name: Collection name
            field_or_spec: Field name, or list of (field, direction) pairs
            **options: Index options (unique, name, ...)

        Returns:
            The index name, or None if creation failed
        """
        try:
            return await self.get_collection(collection_name).create_index(
                field_or_spec, **options
            )
        except (PyMongoError, BSONError) as e:
            self._logger.warning(f"Failed to create index on '{collection_name}': {e}")
            return None

    async def insert(self, collection_name: str, data: dict[str, Any], **options: Any) -> Any:
        """
        Insert a document and return it as stored.

        Identifier strings in ``data`` are converted in place. After the
        insert the document is read back by its assigned ``_id``, using the
        caller's session if one was passed.

        Args:
            collection_name: Collection name
            data: Document to insert (consumed)
            **options: Passed to insert_one (session, ...)

        Returns:
            The stored document

        Raises:
            DataValidationError: If ``data`` is not a mapping
            StorageError: If the driver call fails
        """
        _require_document(data)
        convert_object_ids(data)
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "insert"):
            try:
                result = await collection.insert_one(data, **options)
                stored = await collection.find_one(
                    {ID_FIELD: result.inserted_id}, session=options.get("session")
                )
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "insert") from e

        if stored is None:
            # Deleted between the insert and the read-back
            self._logger.warning(
                f"Inserted document {result.inserted_id} not found on read-back "
                f"in '{collection_name}'"
            )
            return data
        return stored

    async def insert_many(
        self, collection_name: str, documents: list[dict[str, Any]], **options: Any
    ) -> list[dict[str, Any]]:
        """
        Insert several documents and return them as stored, in input order.

        Raises:
            DataValidationError: If ``documents`` is not a list of mappings
            StorageError: If the driver call fails
        """
        if not isinstance(documents, list) or not documents:
            raise DataValidationError("Expected a non-empty list of documents")
        for document in documents:
            _require_document(document)
            convert_object_ids(document)
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "insert_many"):
            try:
                result = await collection.insert_many(documents, **options)
                cursor = collection.find(
                    {ID_FIELD: {"$in": list(result.inserted_ids)}},
                    session=options.get("session"),
                )
                stored = await cursor.to_list(length=None)
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "insert_many") from e

        by_id = {doc[ID_FIELD]: doc for doc in stored}
        return [by_id.get(_id, doc) for _id, doc in zip(result.inserted_ids, documents)]

    async def find(
        self,
        collection_name: str,
        query: QueryLike,
        references: Mapping[str, str] | None = None,
        **options: Any,
    ) -> list[dict[str, Any]]:
        """
        Find documents matching a query.

        Args:
            collection_name: Collection name
            query: DataQuery or host-style mapping
            references: Relation field -> collection name, used to resolve
                the query's expand fields
            **options: Passed to find (session, max_time_ms, ...)

        Returns:
            Matching documents

        Raises:
            InvalidQueryError: If the query is missing or has no match criteria
            InvalidIdentifierError: If the query's ``_id`` is malformed
            StorageError: If the driver call fails
        """
        normalized = normalize_query(query)
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "find"):
            try:
                cursor = collection.find(normalized.filter, **{**normalized.options, **options})
                docs = await cursor.to_list(length=None)
                if normalized.populate_paths and docs:
                    await self._populate(docs, normalized, references, options.get("session"))
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "find") from e
        return docs

    async def find_one(
        self, collection_name: str, query: QueryLike, **options: Any
    ) -> dict[str, Any] | None:
        """Return the first document matching a query, or None."""
        normalized = normalize_query(query)
        normalized.options["limit"] = 1
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "find"):
            try:
                cursor = collection.find(normalized.filter, **{**normalized.options, **options})
                docs = await cursor.to_list(length=1)
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "find") from e
        return docs[0] if docs else None

    async def update(
        self, collection_name: str, query: QueryLike, data: dict[str, Any], **options: Any
    ) -> dict[str, Any] | None:
        """
        Update the first document matching a query.

        ``data`` may use update operators or be a plain mapping of fields,
        which is applied with ``$set``. Any ``_id`` in ``data`` (or its
        ``$set``) is removed first.

        Returns:
            The updated document, or None if nothing matched

        Raises:
            InvalidQueryError: If the query is missing or has no match criteria
            InvalidIdentifierError: If the query's ``_id`` is malformed
            DataValidationError: If ``data`` has no fields left to update
            StorageError: If the driver call fails
        """
        normalized = normalize_query(query)
        _require_document(data)
        convert_object_ids(data)
        _strip_id(data)
        if not any(key.startswith("$") for key in data):
            data = {"$set": data}
        if not any(data.values()):
            raise DataValidationError("Update has no fields")
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "update"):
            try:
                return await collection.find_one_and_update(
                    normalized.filter, data, **_find_and_modify_options(normalized, options)
                )
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "update") from e

    async def replace(
        self, collection_name: str, query: QueryLike, data: dict[str, Any], **options: Any
    ) -> dict[str, Any] | None:
        """
        Replace the first document matching a query.

        Returns:
            The replacement as stored, or None if nothing matched

        Raises:
            InvalidQueryError: If the query is missing or has no match criteria
            InvalidIdentifierError: If the query's ``_id`` is malformed
            StorageError: If the driver call fails
        """
        normalized = normalize_query(query)
        _require_document(data)
        convert_object_ids(data)
        _strip_id(data)
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "replace"):
            try:
                return await collection.find_one_and_replace(
                    normalized.filter, data, **_find_and_modify_options(normalized, options)
                )
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "replace") from e

    async def delete(self, collection_name: str, query: QueryLike, **options: Any) -> int:
        """
        Delete the first document matching a query.

        Returns:
            Number of documents deleted (0 or 1)
        """
        normalized = normalize_query(query)
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "delete"):
            try:
                result = await collection.delete_one(normalized.filter, **options)
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "delete") from e
        return result.deleted_count

    async def delete_many(self, collection_name: str, query: QueryLike, **options: Any) -> int:
        """
        Delete every document matching a query.

        Returns:
            Number of documents deleted
        """
        normalized = normalize_query(query)
        collection = self.get_collection(collection_name)

        with self._operation(collection_name, "delete_many"):
            try:
                result = await collection.delete_many(normalized.filter, **options)
            except (PyMongoError, BSONError) as e:
                raise self._classify(e, collection_name, "delete_many") from e
        return result.deleted_count

    async def _populate(
        self,
        docs: list[dict[str, Any]],
        normalized: NormalizedQuery,
        references: Mapping[str, str] | None,
        session: Any = None,
    ) -> None:
        # Replace reference ids in each expand path with the referenced documents
        for path in normalized.populate_paths.split():
            target = (references or {}).get(path)
            if target is None:
                self._logger.debug(f"No reference collection for expand field '{path}'")
                continue

            ids = []
            for doc in docs:
                value = doc.get(path)
                for item in value if isinstance(value, list) else [value]:
                    if isinstance(item, Hashable) and item is not None and item not in ids:
                        ids.append(item)
            if not ids:
                continue

            cursor = self.get_collection(target).find({ID_FIELD: {"$in": ids}}, session=session)
            related = {item[ID_FIELD]: item for item in await cursor.to_list(length=None)}
            for doc in docs:
                value = doc.get(path)
                if isinstance(value, list):
                    doc[path] = [_resolve(related, item) for item in value]
                elif value is not None:
                    doc[path] = _resolve(related, value)

    def _classify(self, error: Exception, collection_name: str, action: str) -> StorageError:
        classified = self._classifier.classify(error, collection=collection_name, action=action)
        self._logger.error(
            f"{classified.message} (collection={collection_name}, action={action}, "
            f"kind={classified.kind})"
        )
        return classified

    @contextmanager
    def _operation(self, collection_name: str, action: str) -> Iterator[None]:
        token = set_operation_context(collection=collection_name, action=action)
        start_time = time.time()
        success = True
        try:
            yield
        except Exception:
            success = False
            raise
        finally:
            duration_ms = (time.time() - start_time) * 1000
            record_operation(f"store.{action}", duration_ms, success, collection=collection_name)
            reset_operation_context(token)


def _resolve(related: dict[Any, dict[str, Any]], value: Any) -> Any:
    if isinstance(value, Hashable):
        return related.get(value, value)
    return value


def _require_document(data: Any) -> None:
    if not isinstance(data, dict):
        raise DataValidationError(
            f"Expected a document, got {type(data).__name__}",
        )


def _strip_id(data: dict[str, Any]) -> None:
    data.pop(ID_FIELD, None)
    set_fields = data.get("$set")
    if isinstance(set_fields, dict):
        set_fields.pop(ID_FIELD, None)


def _find_and_modify_options(
    normalized: NormalizedQuery, options: dict[str, Any]
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"return_document": ReturnDocument.AFTER}
    for key in ("sort", "projection"):
        if key in normalized.options:
            kwargs[key] = normalized.options[key]
    kwargs.update(options)
    return kwargs
