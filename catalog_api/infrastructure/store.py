"""In-memory document store.

Stands in for the persistence engine: named collections of documents,
filtered find, insert, update-many, delete-many and delete-by-id, plus
per-collection unique indexes. Each call is atomic for the documents it
touches; nothing spans calls, so multi-step cascades are not transactional.

Filters are dictionaries of ``field: value`` equality matches or
``field: {"$ne" | "$in" | "$nin": value}`` operator matches, all ANDed.
"""

import copy
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

logger = structlog.get_logger()

USERS = "users"
CATEGORIES = "categories"
SUBCATEGORIES = "subcategories"
PRODUCTS = "products"

# Unique indexes per collection
DEFAULT_INDEXES: dict[str, tuple[str, ...]] = {
    USERS: ("username", "email"),
    CATEGORIES: ("name",),
    SUBCATEGORIES: ("name",),
    PRODUCTS: ("name",),
}


# ============================================================================
# Store Errors
# ============================================================================


class StoreError(Exception):
    """Base class for store failures."""


class StoreUnavailableError(StoreError):
    """Raised when the store cannot serve a request."""


class DuplicateKeyError(StoreError):
    """Raised when a write violates a unique index."""

    def __init__(self, collection: str, field: str, value: Any) -> None:
        super().__init__(f"Duplicate key in {collection}: {field}={value!r}")
        self.collection = collection
        self.field = field
        self.value = value


# ============================================================================
# Results
# ============================================================================


@dataclass
class UpdateResult:
    """Outcome of an update-many call.

    Attributes:
        matched_count: Documents matching the filter.
        modified_count: Documents whose values actually changed.
    """

    matched_count: int = 0
    modified_count: int = 0


@dataclass
class DeleteResult:
    """Outcome of a delete-many call."""

    deleted_count: int = 0


# ============================================================================
# Filtering
# ============================================================================


def _match_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict):
        for op, operand in condition.items():
            if op == "$ne":
                if value == operand:
                    return False
            elif op == "$in":
                if value not in operand:
                    return False
            elif op == "$nin":
                if value in operand:
                    return False
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
        return True
    return value == condition


def matches(document: dict[str, Any], query: dict[str, Any] | None) -> bool:
    """Check whether a document satisfies a filter."""
    if not query:
        return True
    return all(
        _match_condition(document.get(field), condition)
        for field, condition in query.items()
    )


# ============================================================================
# Collection
# ============================================================================


class Collection:
    """A named set of documents keyed by ``id``."""

    def __init__(self, name: str, unique_fields: tuple[str, ...] = ()) -> None:
        self.name = name
        self.unique_fields = unique_fields
        self._docs: dict[str, dict[str, Any]] = {}

    def _check_unique(self, document: dict[str, Any], exclude_id: str | None = None) -> None:
        for field in self.unique_fields:
            value = document.get(field)
            if value is None:
                continue
            for doc_id, existing in self._docs.items():
                if doc_id != exclude_id and existing.get(field) == value:
                    raise DuplicateKeyError(self.name, field, value)

    def find(
        self,
        query: dict[str, Any] | None = None,
        sort: tuple[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        docs = [copy.deepcopy(d) for d in self._docs.values() if matches(d, query)]
        if sort is not None:
            field, descending = sort
            docs.sort(key=lambda d: d.get(field), reverse=descending)
        return docs

    def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        if "id" not in document:
            raise ValueError("Documents must carry an 'id'")
        if document["id"] in self._docs:
            raise DuplicateKeyError(self.name, "id", document["id"])
        self._check_unique(document)
        now = datetime.now(timezone.utc)
        stored = copy.deepcopy(document)
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)
        self._docs[stored["id"]] = stored
        return copy.deepcopy(stored)

    def update(self, query: dict[str, Any], changes: dict[str, Any]) -> UpdateResult:
        targets = [d for d in self._docs.values() if matches(d, query)]
        for doc in targets:
            self._check_unique({**doc, **changes}, exclude_id=doc["id"])

        result = UpdateResult(matched_count=len(targets))
        now = datetime.now(timezone.utc)
        for doc in targets:
            if any(doc.get(k) != v for k, v in changes.items()):
                doc.update(copy.deepcopy(changes))
                doc["updated_at"] = now
                result.modified_count += 1
        return result

    def delete(self, query: dict[str, Any]) -> DeleteResult:
        doomed = [doc_id for doc_id, d in self._docs.items() if matches(d, query)]
        for doc_id in doomed:
            del self._docs[doc_id]
        return DeleteResult(deleted_count=len(doomed))


# ============================================================================
# Document Store
# ============================================================================


class DocumentStore:
    """Async facade over named collections.

    Example usage:
        store = DocumentStore()
        await store.insert_one("categories", {"id": "c1", "name": "Tools"})
        docs = await store.find("categories", {"active": {"$ne": False}})
    """

    def __init__(self, indexes: dict[str, tuple[str, ...]] | None = None) -> None:
        """Initialize store with its collections and unique indexes.

        Args:
            indexes: Unique fields per collection name.
        """
        self._collections: dict[str, Collection] = {
            name: Collection(name, fields)
            for name, fields in (indexes or DEFAULT_INDEXES).items()
        }

    def _collection(self, name: str) -> Collection:
        if name not in self._collections:
            self._collections[name] = Collection(name)
        return self._collections[name]

    async def find(
        self,
        collection: str,
        query: dict[str, Any] | None = None,
        sort: tuple[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        """Find all documents matching a filter.

        Args:
            collection: Collection name.
            query: Filter document.
            sort: Optional ``(field, descending)`` ordering.

        Returns:
            Copies of the matching documents.
        """
        return self._collection(collection).find(query, sort)

    async def find_one(
        self,
        collection: str,
        query: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find the first document matching a filter."""
        docs = self._collection(collection).find(query)
        return docs[0] if docs else None

    async def find_by_id(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Find a document by its id."""
        return await self.find_one(collection, {"id": doc_id})

    async def count(self, collection: str, query: dict[str, Any] | None = None) -> int:
        """Count documents matching a filter."""
        return len(self._collection(collection).find(query))

    async def insert_one(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a document.

        Raises:
            DuplicateKeyError: If a unique index is violated.
        """
        return self._collection(collection).insert(document)

    async def update_by_id(
        self,
        collection: str,
        doc_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Apply changes to one document and return its new state.

        Raises:
            DuplicateKeyError: If a unique index is violated.
        """
        result = self._collection(collection).update({"id": doc_id}, changes)
        if result.matched_count == 0:
            return None
        return await self.find_by_id(collection, doc_id)

    async def update_many(
        self,
        collection: str,
        query: dict[str, Any],
        changes: dict[str, Any],
    ) -> UpdateResult:
        """Apply changes to every document matching a filter."""
        return self._collection(collection).update(query, changes)

    async def delete_many(self, collection: str, query: dict[str, Any]) -> DeleteResult:
        """Delete every document matching a filter."""
        return self._collection(collection).delete(query)

    async def delete_by_id(self, collection: str, doc_id: str) -> DeleteResult:
        """Delete a document by id."""
        return self._collection(collection).delete({"id": doc_id})


# Global store instance
_store: DocumentStore | None = None


def get_document_store() -> DocumentStore:
    """Get document store singleton."""
    global _store
    if _store is None:
        _store = DocumentStore()
        logger.info("Document store initialized", collections=list(DEFAULT_INDEXES))
    return _store


def reset_document_store() -> None:
    """Reset document store (for testing)."""
    global _store
    _store = DocumentStore()
