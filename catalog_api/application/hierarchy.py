"""Hierarchy validation.

Checks parent existence and parent-child consistency at write time. The
store enforces no foreign keys, so every write that sets a relation goes
through here first.
"""

from typing import Any

import structlog

from catalog_api.domain.entities import Category, Product, Subcategory
from catalog_api.domain.exceptions import NotFoundError, StorageError
from catalog_api.infrastructure.store import (
    CATEGORIES,
    SUBCATEGORIES,
    DocumentStore,
    StoreError,
    get_document_store,
)

logger = structlog.get_logger()


class HierarchyValidator:
    """Validates Category → Subcategory → Product references."""

    def __init__(self, store: DocumentStore | None = None) -> None:
        self.store = store or get_document_store()

    async def _find_one(self, collection: str, query: dict[str, Any]) -> dict[str, Any] | None:
        try:
            return await self.store.find_one(collection, query)
        except StoreError as e:
            raise StorageError(f"lookup in {collection}", str(e))

    async def validate_subcategory_parent(self, category_id: str | None) -> Category:
        """Ensure a subcategory's parent category exists.

        Args:
            category_id: Referenced category id.

        Returns:
            The parent category.

        Raises:
            NotFoundError: If the category does not exist.
        """
        if not category_id:
            raise NotFoundError("category")
        doc = await self._find_one(CATEGORIES, {"id": category_id})
        if doc is None:
            raise NotFoundError("category", category_id)
        return Category.from_document(doc)

    async def validate_product_parents(
        self,
        category_id: str | None,
        subcategory_id: str | None,
    ) -> tuple[Category, Subcategory]:
        """Ensure a product's category exists and owns its subcategory.

        The subcategory is looked up constrained to the category, so a
        subcategory that exists under a different category is reported the
        same way as a missing one.

        Args:
            category_id: Referenced category id.
            subcategory_id: Referenced subcategory id.

        Returns:
            The resolved ``(category, subcategory)`` pair.

        Raises:
            NotFoundError: ``category`` or ``subcategory`` did not resolve.
        """
        category = await self.validate_subcategory_parent(category_id)

        if not subcategory_id:
            raise NotFoundError("subcategory")
        doc = await self._find_one(
            SUBCATEGORIES,
            {"id": subcategory_id, "category": category_id},
        )
        if doc is None:
            logger.info(
                "Subcategory does not resolve under category",
                category_id=category_id,
                subcategory_id=subcategory_id,
            )
            raise NotFoundError("subcategory", subcategory_id)
        return category, Subcategory.from_document(doc)

    async def validate_product_update(
        self,
        current: Product,
        changes: dict[str, Any],
    ) -> tuple[Category, Subcategory] | None:
        """Re-validate relations for a partial product update.

        Validation only runs when ``category`` or ``subcategory`` is among
        the supplied changes; it then checks the resulting pair.

        Returns:
            The resolved pair, or None if no relation field changed.
        """
        if "category" not in changes and "subcategory" not in changes:
            return None
        category_id = changes.get("category", current.category)
        subcategory_id = changes.get("subcategory", current.subcategory)
        return await self.validate_product_parents(category_id, subcategory_id)
