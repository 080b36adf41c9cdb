"""Lifecycle engine for the catalog hierarchy.

Orchestrates soft delete (deactivation), hard delete (permanent removal)
and reactivation across Category → Subcategory → Product.

Cascades are ordered sequences of independent store calls. There is no
transaction around them: if a step fails, the steps before it stay applied
and the operation fails with ``StorageError`` listing what completed.

Hard deletes always remove children before parents. Reactivation only
touches the target entity; children stay as they are.
"""

from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import structlog

from catalog_api.domain.entities import Category, Product, Subcategory
from catalog_api.domain.exceptions import NotFoundError, StorageError
from catalog_api.infrastructure.store import (
    CATEGORIES,
    PRODUCTS,
    SUBCATEGORIES,
    DocumentStore,
    StoreError,
    get_document_store,
)

logger = structlog.get_logger()

R = TypeVar("R")

Entity = Category | Subcategory | Product

_ENTITY_TYPES: dict[str, tuple[str, type]] = {
    "category": (CATEGORIES, Category),
    "subcategory": (SUBCATEGORIES, Subcategory),
    "product": (PRODUCTS, Product),
}


# ============================================================================
# Results
# ============================================================================


@dataclass
class CascadeResult:
    """Outcome of a lifecycle operation.

    Attributes:
        entity_type: "category", "subcategory" or "product".
        entity: Target entity. For hard deletes, its last state before removal.
        hard_delete: Whether the target was permanently removed.
        subcategories_affected: Subcategories deactivated or deleted by the cascade.
        products_affected: Products deactivated or deleted by the cascade.
        steps: Cascade steps completed, in order.
    """

    entity_type: str
    entity: Entity
    hard_delete: bool = False
    subcategories_affected: int = 0
    products_affected: int = 0
    steps: list[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of an out-of-band reconciliation pass."""

    subcategories_deleted: int = 0
    products_deleted: int = 0
    subcategories_deactivated: int = 0
    products_deactivated: int = 0
    steps: list[str] = field(default_factory=list)


# ============================================================================
# Lifecycle Engine
# ============================================================================


class LifecycleEngine:
    """Runs cascading lifecycle operations against the store.

    Example usage:
        engine = LifecycleEngine(store)
        result = await engine.soft_delete_category(category_id)
        result.products_affected  # products newly deactivated
    """

    def __init__(self, store: DocumentStore | None = None) -> None:
        """Initialize engine.

        Args:
            store: Document store; defaults to the global store.
        """
        self.store = store or get_document_store()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _step(self, operation: str, steps: list[str], name: str, call: Awaitable[R]) -> R:
        """Run one cascade step, translating store failures.

        Raises:
            StorageError: If the store call fails; earlier steps stay applied.
        """
        try:
            result = await call
        except StoreError as e:
            logger.error(
                "Cascade step failed",
                operation=operation,
                step=name,
                completed_steps=steps,
                error=str(e),
            )
            raise StorageError(name, str(e), completed_steps=list(steps))
        steps.append(name)
        return result

    async def _load(self, entity_type: str, entity_id: str) -> Any:
        collection, cls = _ENTITY_TYPES[entity_type]
        try:
            doc = await self.store.find_by_id(collection, entity_id)
        except StoreError as e:
            raise StorageError(f"load {entity_type}", str(e))
        if doc is None:
            raise NotFoundError(entity_type, entity_id)
        return cls.from_document(doc)

    async def _set_active(
        self,
        entity_type: str,
        entity_id: str,
        active: bool,
        operation: str,
        steps: list[str],
    ) -> Any:
        collection, cls = _ENTITY_TYPES[entity_type]
        verb = "activate" if active else "deactivate"
        doc = await self._step(
            operation,
            steps,
            f"{verb} {entity_type}",
            self.store.update_by_id(collection, entity_id, {"active": active}),
        )
        if doc is None:
            # Removed by a concurrent request between load and update
            raise NotFoundError(entity_type, entity_id)
        return cls.from_document(doc)

    # ------------------------------------------------------------------
    # Category
    # ------------------------------------------------------------------

    async def soft_delete_category(self, category_id: str) -> CascadeResult:
        """Deactivate a category and everything under it.

        Subcategories are matched by ``category``; products are matched
        directly by their own ``category`` reference. Calling this again on
        an already inactive category reports zero affected children.

        Args:
            category_id: Category id.

        Returns:
            Cascade result with newly deactivated child counts.
        """
        operation = "soft_delete_category"
        await self._load("category", category_id)

        steps: list[str] = []
        category = await self._set_active("category", category_id, False, operation, steps)
        subcategories = await self._step(
            operation,
            steps,
            "deactivate subcategories",
            self.store.update_many(SUBCATEGORIES, {"category": category_id}, {"active": False}),
        )
        products = await self._step(
            operation,
            steps,
            "deactivate products",
            self.store.update_many(PRODUCTS, {"category": category_id}, {"active": False}),
        )

        logger.info(
            "Category deactivated",
            category_id=category_id,
            subcategories_affected=subcategories.modified_count,
            products_affected=products.modified_count,
        )
        return CascadeResult(
            entity_type="category",
            entity=category,
            subcategories_affected=subcategories.modified_count,
            products_affected=products.modified_count,
            steps=steps,
        )

    async def hard_delete_category(self, category_id: str) -> CascadeResult:
        """Permanently delete a category and everything under it.

        Order: collect subcategory ids, delete products by category, delete
        products by any of the collected subcategories, delete the
        subcategories, delete the category.

        Args:
            category_id: Category id.

        Returns:
            Cascade result with deleted child counts.
        """
        operation = "hard_delete_category"
        category = await self._load("category", category_id)

        steps: list[str] = []
        subcategory_docs = await self._step(
            operation,
            steps,
            "collect subcategories",
            self.store.find(SUBCATEGORIES, {"category": category_id}),
        )
        subcategory_ids = [doc["id"] for doc in subcategory_docs]

        by_category = await self._step(
            operation,
            steps,
            "delete products by category",
            self.store.delete_many(PRODUCTS, {"category": category_id}),
        )
        products_deleted = by_category.deleted_count

        if subcategory_ids:
            by_subcategory = await self._step(
                operation,
                steps,
                "delete products by subcategory",
                self.store.delete_many(PRODUCTS, {"subcategory": {"$in": subcategory_ids}}),
            )
            products_deleted += by_subcategory.deleted_count

        subcategories = await self._step(
            operation,
            steps,
            "delete subcategories",
            self.store.delete_many(SUBCATEGORIES, {"category": category_id}),
        )
        await self._step(
            operation,
            steps,
            "delete category",
            self.store.delete_by_id(CATEGORIES, category_id),
        )

        logger.info(
            "Category deleted permanently",
            category_id=category_id,
            subcategories_deleted=subcategories.deleted_count,
            products_deleted=products_deleted,
        )
        return CascadeResult(
            entity_type="category",
            entity=category,
            hard_delete=True,
            subcategories_affected=subcategories.deleted_count,
            products_affected=products_deleted,
            steps=steps,
        )

    async def delete_category(self, category_id: str, hard_delete: bool = False) -> CascadeResult:
        """Soft or hard delete a category."""
        if hard_delete:
            return await self.hard_delete_category(category_id)
        return await self.soft_delete_category(category_id)

    # ------------------------------------------------------------------
    # Subcategory
    # ------------------------------------------------------------------

    async def soft_delete_subcategory(self, subcategory_id: str) -> CascadeResult:
        """Deactivate a subcategory and its products."""
        operation = "soft_delete_subcategory"
        await self._load("subcategory", subcategory_id)

        steps: list[str] = []
        subcategory = await self._set_active(
            "subcategory", subcategory_id, False, operation, steps
        )
        products = await self._step(
            operation,
            steps,
            "deactivate products",
            self.store.update_many(PRODUCTS, {"subcategory": subcategory_id}, {"active": False}),
        )

        logger.info(
            "Subcategory deactivated",
            subcategory_id=subcategory_id,
            products_affected=products.modified_count,
        )
        return CascadeResult(
            entity_type="subcategory",
            entity=subcategory,
            products_affected=products.modified_count,
            steps=steps,
        )

    async def hard_delete_subcategory(self, subcategory_id: str) -> CascadeResult:
        """Permanently delete a subcategory after deleting its products."""
        operation = "hard_delete_subcategory"
        subcategory = await self._load("subcategory", subcategory_id)

        steps: list[str] = []
        products = await self._step(
            operation,
            steps,
            "delete products",
            self.store.delete_many(PRODUCTS, {"subcategory": subcategory_id}),
        )
        await self._step(
            operation,
            steps,
            "delete subcategory",
            self.store.delete_by_id(SUBCATEGORIES, subcategory_id),
        )

        logger.info(
            "Subcategory deleted permanently",
            subcategory_id=subcategory_id,
            products_deleted=products.deleted_count,
        )
        return CascadeResult(
            entity_type="subcategory",
            entity=subcategory,
            hard_delete=True,
            products_affected=products.deleted_count,
            steps=steps,
        )

    async def delete_subcategory(
        self, subcategory_id: str, hard_delete: bool = False
    ) -> CascadeResult:
        """Soft or hard delete a subcategory."""
        if hard_delete:
            return await self.hard_delete_subcategory(subcategory_id)
        return await self.soft_delete_subcategory(subcategory_id)

    # ------------------------------------------------------------------
    # Product
    # ------------------------------------------------------------------

    async def soft_delete_product(self, product_id: str) -> CascadeResult:
        """Deactivate a single product."""
        await self._load("product", product_id)
        steps: list[str] = []
        product = await self._set_active(
            "product", product_id, False, "soft_delete_product", steps
        )
        logger.info("Product deactivated", product_id=product_id)
        return CascadeResult(entity_type="product", entity=product, steps=steps)

    async def hard_delete_product(self, product_id: str) -> CascadeResult:
        """Permanently delete a single product."""
        product = await self._load("product", product_id)
        steps: list[str] = []
        await self._step(
            "hard_delete_product",
            steps,
            "delete product",
            self.store.delete_by_id(PRODUCTS, product_id),
        )
        logger.info("Product deleted permanently", product_id=product_id)
        return CascadeResult(
            entity_type="product", entity=product, hard_delete=True, steps=steps
        )

    async def delete_product(self, product_id: str, hard_delete: bool = False) -> CascadeResult:
        """Soft or hard delete a product."""
        if hard_delete:
            return await self.hard_delete_product(product_id)
        return await self.soft_delete_product(product_id)

    # ------------------------------------------------------------------
    # Reactivation
    # ------------------------------------------------------------------

    async def reactivate(self, entity_type: str, entity_id: str) -> CascadeResult:
        """Set ``active=true`` on one entity without touching its children.

        Args:
            entity_type: "category", "subcategory" or "product".
            entity_id: Entity id.
        """
        await self._load(entity_type, entity_id)
        steps: list[str] = []
        entity = await self._set_active(
            entity_type, entity_id, True, f"reactivate_{entity_type}", steps
        )
        logger.info("Entity reactivated", entity_type=entity_type, entity_id=entity_id)
        return CascadeResult(entity_type=entity_type, entity=entity, steps=steps)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def reconcile(self) -> ReconcileResult:
        """Repair what interrupted cascades can leave behind.

        Deletes subcategories whose category no longer exists and products
        whose subcategory does not resolve under their category, then
        deactivates active children of inactive parents. Never runs
        implicitly.
        """
        operation = "reconcile"
        result = ReconcileResult()
        steps = result.steps

        categories = await self._step(
            operation, steps, "collect categories", self.store.find(CATEGORIES)
        )
        category_ids = {doc["id"] for doc in categories}
        inactive_category_ids = [doc["id"] for doc in categories if doc.get("active") is False]

        orphan_subcategories = await self._step(
            operation,
            steps,
            "delete orphan subcategories",
            self.store.delete_many(SUBCATEGORIES, {"category": {"$nin": list(category_ids)}}),
        )
        result.subcategories_deleted = orphan_subcategories.deleted_count

        subcategories = await self._step(
            operation, steps, "collect subcategories", self.store.find(SUBCATEGORIES)
        )
        owner_of = {doc["id"]: doc["category"] for doc in subcategories}
        products = await self._step(
            operation, steps, "collect products", self.store.find(PRODUCTS)
        )
        orphan_product_ids = [
            doc["id"]
            for doc in products
            if owner_of.get(doc.get("subcategory")) != doc.get("category")
        ]
        if orphan_product_ids:
            orphan_products = await self._step(
                operation,
                steps,
                "delete orphan products",
                self.store.delete_many(PRODUCTS, {"id": {"$in": orphan_product_ids}}),
            )
            result.products_deleted = orphan_products.deleted_count

        if inactive_category_ids:
            stale_subcategories = await self._step(
                operation,
                steps,
                "deactivate subcategories of inactive categories",
                self.store.update_many(
                    SUBCATEGORIES,
                    {"category": {"$in": inactive_category_ids}},
                    {"active": False},
                ),
            )
            result.subcategories_deactivated = stale_subcategories.modified_count
            stale_products = await self._step(
                operation,
                steps,
                "deactivate products of inactive categories",
                self.store.update_many(
                    PRODUCTS,
                    {"category": {"$in": inactive_category_ids}},
                    {"active": False},
                ),
            )
            result.products_deactivated = stale_products.modified_count

        logger.info(
            "Reconciliation complete",
            subcategories_deleted=result.subcategories_deleted,
            products_deleted=result.products_deleted,
            subcategories_deactivated=result.subcategories_deactivated,
            products_deactivated=result.products_deactivated,
        )
        return result
