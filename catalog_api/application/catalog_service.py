"""Catalog application service.

Composes the access policy, hierarchy validator and lifecycle engine into
the category, subcategory and product operations used by the API layer:

- create: field validation, parent validation, name uniqueness, insert
- read: ``include_inactive`` toggle, newest first, policy redaction
- update: partial; only supplied relations are re-validated
- delete: role check, then the lifecycle engine
"""

import math
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from catalog_api.application.hierarchy import HierarchyValidator
from catalog_api.application.lifecycle import CascadeResult, LifecycleEngine, ReconcileResult
from catalog_api.domain.entities import Actor, Category, Product, Subcategory
from catalog_api.domain.exceptions import (
    DuplicateNameError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from catalog_api.domain.policy import CREATOR_FIELD, Action, enforce
from catalog_api.infrastructure.store import (
    CATEGORIES,
    PRODUCTS,
    SUBCATEGORIES,
    USERS,
    DocumentStore,
    DuplicateKeyError,
    StoreError,
    get_document_store,
)

logger = structlog.get_logger()

R = TypeVar("R")

NEWEST_FIRST = ("created_at", True)
ACTIVE_ONLY = {"active": {"$ne": False}}


# ============================================================================
# Read Models
# ============================================================================


@dataclass
class EntityRef:
    """Display reference to a parent entity."""

    id: str
    name: str
    description: str = ""


@dataclass
class CreatorRef:
    """Display reference to the user that created a product."""

    id: str
    username: str
    email: str


@dataclass
class SubcategoryDetail:
    """Subcategory with its category populated."""

    subcategory: Subcategory
    category: EntityRef | None = None


@dataclass
class ProductDetail:
    """Product with category, subcategory and creator populated.

    Attributes:
        creator_redacted: True when the reader's role may not see the creator.
    """

    product: Product
    category: EntityRef | None = None
    subcategory: EntityRef | None = None
    creator: CreatorRef | None = None
    creator_redacted: bool = False


# ============================================================================
# Field Validation
# ============================================================================


def _clean_text(field: str, value: Any, required: bool = True) -> str:
    if value is None:
        if required:
            raise ValidationError(field, "is required")
        return ""
    if not isinstance(value, str):
        raise ValidationError(field, "must be text")
    cleaned = value.strip()
    if required and not cleaned:
        raise ValidationError(field, "is required")
    return cleaned


def _clean_price(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("price", "must be a number")
    if not math.isfinite(value):
        raise ValidationError("price", "must be a finite number")
    if value < 0:
        raise ValidationError("price", "cannot be negative")
    return value


def _clean_stock(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("stock", "must be an integer")
    if value < 0:
        raise ValidationError("stock", "cannot be negative")
    return value


def _clean_images(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError("images", "must be a list of URLs")
    return [v.strip() for v in value if v.strip()]


def _clean_reference(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    return value.strip()


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Application service for the catalog hierarchy.

    Example usage:
        service = CatalogService()
        category = await service.create_category(actor, "Electronics", "Gadgets")
        await service.delete_category(actor, category.id, hard_delete=True)
    """

    def __init__(
        self,
        store: DocumentStore | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            store: Document store; defaults to the global store.
            request_id: Request ID for correlation.
        """
        self.store = store or get_document_store()
        self.validator = HierarchyValidator(self.store)
        self.lifecycle = LifecycleEngine(self.store)
        self.request_id = request_id

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    async def _call(self, operation: str, call: Awaitable[R]) -> R:
        try:
            return await call
        except StoreError as e:
            logger.error(
                "Store call failed",
                operation=operation,
                error=str(e),
                request_id=self.request_id,
            )
            raise StorageError(operation, str(e))

    async def _load(self, collection: str, entity_type: str, entity_id: str) -> dict[str, Any]:
        doc = await self._call(
            f"load {entity_type}", self.store.find_by_id(collection, entity_id)
        )
        if doc is None:
            raise NotFoundError(entity_type, entity_id)
        return doc

    async def _ensure_unique_name(
        self,
        collection: str,
        entity_type: str,
        name: str,
        exclude_id: str | None = None,
    ) -> None:
        query: dict[str, Any] = {"name": name}
        if exclude_id is not None:
            query["id"] = {"$ne": exclude_id}
        existing = await self._call(
            f"check {entity_type} name", self.store.find_one(collection, query)
        )
        if existing is not None:
            raise DuplicateNameError(entity_type, name)

    async def _insert(
        self,
        collection: str,
        entity_type: str,
        document: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            return await self.store.insert_one(collection, document)
        except DuplicateKeyError:
            # Lost the race between the name check and the insert
            raise DuplicateNameError(entity_type, document["name"])
        except StoreError as e:
            raise StorageError(f"insert {entity_type}", str(e))

    async def _update(
        self,
        collection: str,
        entity_type: str,
        entity_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            doc = await self.store.update_by_id(collection, entity_id, changes)
        except DuplicateKeyError:
            raise DuplicateNameError(entity_type, changes.get("name", ""))
        except StoreError as e:
            raise StorageError(f"update {entity_type}", str(e))
        if doc is None:
            raise NotFoundError(entity_type, entity_id)
        return doc

    async def _list(self, collection: str, entity_type: str, include_inactive: bool) -> list[dict[str, Any]]:
        query = {} if include_inactive else dict(ACTIVE_ONLY)
        return await self._call(
            f"list {entity_type}", self.store.find(collection, query, sort=NEWEST_FIRST)
        )

    async def _refs(self, collection: str, ids: set[str]) -> dict[str, EntityRef]:
        if not ids:
            return {}
        docs = await self._call(
            f"populate {collection}", self.store.find(collection, {"id": {"$in": list(ids)}})
        )
        return {
            doc["id"]: EntityRef(
                id=doc["id"], name=doc["name"], description=doc.get("description", "")
            )
            for doc in docs
        }

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def create_category(
        self,
        actor: Actor,
        name: Any,
        description: Any = None,
    ) -> Category:
        """Create a category.

        Raises:
            ForbiddenError: Actor may not modify the catalog.
            ValidationError: Name missing or not text.
            DuplicateNameError: Name already taken.
        """
        enforce(actor, Action.CATALOG_WRITE)
        category = Category(
            name=_clean_text("name", name),
            description=_clean_text("description", description, required=False),
        )
        await self._ensure_unique_name(CATEGORIES, "category", category.name)
        doc = await self._insert(CATEGORIES, "category", category.to_document())

        logger.info(
            "Category created",
            category_id=category.id,
            name=category.name,
            actor_id=actor.id,
            request_id=self.request_id,
        )
        return Category.from_document(doc)

    async def list_categories(self, actor: Actor, include_inactive: bool = False) -> list[Category]:
        """List categories, active only unless ``include_inactive``."""
        enforce(actor, Action.CATALOG_READ)
        docs = await self._list(CATEGORIES, "category", include_inactive)
        return [Category.from_document(doc) for doc in docs]

    async def get_category(self, actor: Actor, category_id: str) -> Category:
        """Get a category by id, active or not."""
        enforce(actor, Action.CATALOG_READ)
        return Category.from_document(await self._load(CATEGORIES, "category", category_id))

    async def update_category(
        self,
        actor: Actor,
        category_id: str,
        changes: dict[str, Any],
    ) -> Category:
        """Partially update a category's name and/or description."""
        enforce(actor, Action.CATALOG_WRITE)
        await self._load(CATEGORIES, "category", category_id)

        update: dict[str, Any] = {}
        if "name" in changes:
            update["name"] = _clean_text("name", changes["name"])
            await self._ensure_unique_name(CATEGORIES, "category", update["name"], category_id)
        if "description" in changes:
            update["description"] = _clean_text("description", changes["description"], required=False)

        if not update:
            return await self.get_category(actor, category_id)
        doc = await self._update(CATEGORIES, "category", category_id, update)
        logger.info(
            "Category updated",
            category_id=category_id,
            fields=sorted(update),
            request_id=self.request_id,
        )
        return Category.from_document(doc)

    async def delete_category(
        self,
        actor: Actor,
        category_id: str,
        hard_delete: bool = False,
    ) -> CascadeResult:
        """Deactivate (default) or permanently delete a category and its subtree."""
        enforce(actor, Action.CATALOG_HARD_DELETE if hard_delete else Action.CATALOG_WRITE)
        return await self.lifecycle.delete_category(category_id, hard_delete=hard_delete)

    async def reactivate_category(self, actor: Actor, category_id: str) -> Category:
        """Reactivate a category. Children keep their current state."""
        enforce(actor, Action.CATALOG_WRITE)
        result = await self.lifecycle.reactivate("category", category_id)
        return result.entity

    # ------------------------------------------------------------------
    # Subcategories
    # ------------------------------------------------------------------

    async def _subcategory_details(self, docs: list[dict[str, Any]]) -> list[SubcategoryDetail]:
        categories = await self._refs(CATEGORIES, {doc["category"] for doc in docs})
        return [
            SubcategoryDetail(
                subcategory=Subcategory.from_document(doc),
                category=categories.get(doc["category"]),
            )
            for doc in docs
        ]

    async def create_subcategory(
        self,
        actor: Actor,
        name: Any,
        category: Any,
        description: Any = None,
    ) -> SubcategoryDetail:
        """Create a subcategory under an existing category.

        Raises:
            NotFoundError: The parent category does not exist.
            DuplicateNameError: Name already taken.
        """
        enforce(actor, Action.CATALOG_WRITE)
        clean_name = _clean_text("name", name)
        clean_description = _clean_text("description", description)
        parent = await self.validator.validate_subcategory_parent(
            _clean_reference("category", category)
        )
        await self._ensure_unique_name(SUBCATEGORIES, "subcategory", clean_name)

        subcategory = Subcategory(
            name=clean_name,
            description=clean_description,
            category=parent.id,
        )
        doc = await self._insert(SUBCATEGORIES, "subcategory", subcategory.to_document())

        logger.info(
            "Subcategory created",
            subcategory_id=subcategory.id,
            category_id=parent.id,
            name=subcategory.name,
            actor_id=actor.id,
            request_id=self.request_id,
        )
        return SubcategoryDetail(
            subcategory=Subcategory.from_document(doc),
            category=EntityRef(id=parent.id, name=parent.name, description=parent.description),
        )

    async def list_subcategories(
        self,
        actor: Actor,
        include_inactive: bool = False,
    ) -> list[SubcategoryDetail]:
        """List subcategories with their category populated."""
        enforce(actor, Action.CATALOG_READ)
        docs = await self._list(SUBCATEGORIES, "subcategory", include_inactive)
        return await self._subcategory_details(docs)

    async def get_subcategory(self, actor: Actor, subcategory_id: str) -> SubcategoryDetail:
        """Get a subcategory by id with its category populated."""
        enforce(actor, Action.CATALOG_READ)
        doc = await self._load(SUBCATEGORIES, "subcategory", subcategory_id)
        return (await self._subcategory_details([doc]))[0]

    async def update_subcategory(
        self,
        actor: Actor,
        subcategory_id: str,
        changes: dict[str, Any],
    ) -> SubcategoryDetail:
        """Partially update a subcategory.

        Moving a subcategory to another category validates the new parent
        and carries its products along, so their category keeps matching.
        """
        enforce(actor, Action.CATALOG_WRITE)
        current = Subcategory.from_document(
            await self._load(SUBCATEGORIES, "subcategory", subcategory_id)
        )

        update: dict[str, Any] = {}
        if "name" in changes:
            update["name"] = _clean_text("name", changes["name"])
            await self._ensure_unique_name(
                SUBCATEGORIES, "subcategory", update["name"], subcategory_id
            )
        if "description" in changes:
            update["description"] = _clean_text("description", changes["description"])
        if "category" in changes:
            parent = await self.validator.validate_subcategory_parent(
                _clean_reference("category", changes["category"])
            )
            update["category"] = parent.id

        if not update:
            return await self.get_subcategory(actor, subcategory_id)
        doc = await self._update(SUBCATEGORIES, "subcategory", subcategory_id, update)

        moved = update.get("category", current.category) != current.category
        if moved:
            products = await self._call(
                "move products with subcategory",
                self.store.update_many(
                    PRODUCTS,
                    {"subcategory": subcategory_id},
                    {"category": update["category"]},
                ),
            )
            logger.info(
                "Subcategory moved",
                subcategory_id=subcategory_id,
                from_category=current.category,
                to_category=update["category"],
                products_moved=products.modified_count,
                request_id=self.request_id,
            )

        logger.info(
            "Subcategory updated",
            subcategory_id=subcategory_id,
            fields=sorted(update),
            request_id=self.request_id,
        )
        return (await self._subcategory_details([doc]))[0]

    async def delete_subcategory(
        self,
        actor: Actor,
        subcategory_id: str,
        hard_delete: bool = False,
    ) -> CascadeResult:
        """Deactivate (default) or permanently delete a subcategory and its products."""
        enforce(actor, Action.CATALOG_HARD_DELETE if hard_delete else Action.CATALOG_WRITE)
        return await self.lifecycle.delete_subcategory(subcategory_id, hard_delete=hard_delete)

    async def reactivate_subcategory(self, actor: Actor, subcategory_id: str) -> Subcategory:
        """Reactivate a subcategory. Its products keep their current state."""
        enforce(actor, Action.CATALOG_WRITE)
        result = await self.lifecycle.reactivate("subcategory", subcategory_id)
        return result.entity

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def _product_details(
        self,
        actor: Actor,
        docs: list[dict[str, Any]],
    ) -> list[ProductDetail]:
        decision = enforce(actor, Action.PRODUCT_READ)
        hide_creator = decision.hides(CREATOR_FIELD)

        categories = await self._refs(CATEGORIES, {doc["category"] for doc in docs})
        subcategories = await self._refs(SUBCATEGORIES, {doc["subcategory"] for doc in docs})

        creators: dict[str, CreatorRef] = {}
        creator_ids = {doc["created_by"] for doc in docs if doc.get("created_by")}
        if creator_ids and not hide_creator:
            users = await self._call(
                "populate creators",
                self.store.find(USERS, {"id": {"$in": list(creator_ids)}}),
            )
            creators = {
                u["id"]: CreatorRef(id=u["id"], username=u["username"], email=u["email"])
                for u in users
            }

        details = []
        for doc in docs:
            product = Product.from_document(doc)
            if hide_creator:
                product.created_by = None
            details.append(
                ProductDetail(
                    product=product,
                    category=categories.get(product.category),
                    subcategory=subcategories.get(product.subcategory),
                    creator=creators.get(product.created_by) if product.created_by else None,
                    creator_redacted=hide_creator,
                )
            )
        return details

    async def create_product(
        self,
        actor: Actor,
        name: Any,
        description: Any,
        price: Any,
        stock: Any,
        category: Any,
        subcategory: Any,
        images: Any = None,
    ) -> ProductDetail:
        """Create a product under a consistent category/subcategory pair.

        The creating actor is recorded as ``created_by``.

        Raises:
            ValidationError: A field is missing or out of range.
            NotFoundError: Category missing, or subcategory missing or
                owned by another category.
            DuplicateNameError: Name already taken.
        """
        enforce(actor, Action.CATALOG_WRITE)
        product = Product(
            name=_clean_text("name", name),
            description=_clean_text("description", description),
            price=_clean_price(price),
            stock=_clean_stock(stock),
            category=_clean_reference("category", category),
            subcategory=_clean_reference("subcategory", subcategory),
            images=_clean_images(images),
            created_by=actor.id,
        )
        await self.validator.validate_product_parents(product.category, product.subcategory)
        await self._ensure_unique_name(PRODUCTS, "product", product.name)
        doc = await self._insert(PRODUCTS, "product", product.to_document())

        logger.info(
            "Product created",
            product_id=product.id,
            category_id=product.category,
            subcategory_id=product.subcategory,
            actor_id=actor.id,
            request_id=self.request_id,
        )
        return (await self._product_details(actor, [doc]))[0]

    async def list_products(
        self,
        actor: Actor,
        include_inactive: bool = False,
    ) -> list[ProductDetail]:
        """List products with relations populated and creator redacted by role."""
        docs = await self._list(PRODUCTS, "product", include_inactive)
        return await self._product_details(actor, docs)

    async def get_product(self, actor: Actor, product_id: str) -> ProductDetail:
        """Get a product by id with relations populated and creator redacted by role."""
        doc = await self._load(PRODUCTS, "product", product_id)
        return (await self._product_details(actor, [doc]))[0]

    async def update_product(
        self,
        actor: Actor,
        product_id: str,
        changes: dict[str, Any],
    ) -> ProductDetail:
        """Partially update a product.

        Parents are re-validated only when ``category`` or ``subcategory``
        is supplied, using the resulting pair.
        """
        enforce(actor, Action.CATALOG_WRITE)
        current = Product.from_document(await self._load(PRODUCTS, "product", product_id))

        update: dict[str, Any] = {}
        if "name" in changes:
            update["name"] = _clean_text("name", changes["name"])
        if "description" in changes:
            update["description"] = _clean_text("description", changes["description"])
        if "price" in changes:
            update["price"] = _clean_price(changes["price"])
        if "stock" in changes:
            update["stock"] = _clean_stock(changes["stock"])
        if "images" in changes:
            update["images"] = _clean_images(changes["images"])
        if "category" in changes:
            update["category"] = _clean_reference("category", changes["category"])
        if "subcategory" in changes:
            update["subcategory"] = _clean_reference("subcategory", changes["subcategory"])

        await self.validator.validate_product_update(current, update)
        if "name" in update:
            await self._ensure_unique_name(PRODUCTS, "product", update["name"], product_id)

        if update:
            doc = await self._update(PRODUCTS, "product", product_id, update)
            logger.info(
                "Product updated",
                product_id=product_id,
                fields=sorted(update),
                request_id=self.request_id,
            )
        else:
            doc = current.to_document()
        return (await self._product_details(actor, [doc]))[0]

    async def delete_product(
        self,
        actor: Actor,
        product_id: str,
        hard_delete: bool = False,
    ) -> CascadeResult:
        """Deactivate (default) or permanently delete a product."""
        enforce(actor, Action.CATALOG_HARD_DELETE if hard_delete else Action.CATALOG_WRITE)
        return await self.lifecycle.delete_product(product_id, hard_delete=hard_delete)

    async def reactivate_product(self, actor: Actor, product_id: str) -> ProductDetail:
        """Reactivate a product."""
        enforce(actor, Action.CATALOG_WRITE)
        result = await self.lifecycle.reactivate("product", product_id)
        return (await self._product_details(actor, [result.entity.to_document()]))[0]

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def reconcile(self, actor: Actor) -> ReconcileResult:
        """Run the orphan repair pass. Admin only."""
        enforce(actor, Action.MAINTENANCE)
        return await self.lifecycle.reconcile()


def get_catalog_service(request_id: str | None = None) -> CatalogService:
    """Get catalog service bound to the global store."""
    return CatalogService(request_id=request_id)
