"""Tests for the catalog application service."""

from unittest.mock import AsyncMock, patch

import pytest

from catalog_api.application.catalog_service import CatalogService
from catalog_api.domain.entities import Actor, Role, User
from catalog_api.domain.exceptions import (
    DuplicateNameError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from catalog_api.infrastructure.store import (
    CATEGORIES,
    PRODUCTS,
    USERS,
    DocumentStore,
    StoreUnavailableError,
)


class TestCreate:
    """Tests for create operations."""

    @pytest.mark.asyncio
    async def test_create_category(self, catalog: CatalogService, coordinator: Actor) -> None:
        """Coordinators can create categories; names are trimmed."""
        category = await catalog.create_category(coordinator, "  Garden ", None)
        assert category.name == "Garden"
        assert category.description == ""
        assert category.active is True

    @pytest.mark.asyncio
    async def test_duplicate_category_name(self, catalog: CatalogService, admin: Actor) -> None:
        """A second category with the same name fails with DuplicateNameError."""
        await catalog.create_category(admin, "Garden")
        with pytest.raises(DuplicateNameError):
            await catalog.create_category(admin, "Garden")

    @pytest.mark.asyncio
    async def test_auxiliary_cannot_create(self, catalog: CatalogService, auxiliary: Actor) -> None:
        with pytest.raises(ForbiddenError):
            await catalog.create_category(auxiliary, "Garden")

    @pytest.mark.asyncio
    async def test_category_name_required(self, catalog: CatalogService, admin: Actor) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await catalog.create_category(admin, "   ")
        assert exc_info.value.details["field"] == "name"

    @pytest.mark.asyncio
    async def test_subcategory_requires_existing_category(self, catalog: CatalogService, admin: Actor) -> None:
        with pytest.raises(NotFoundError):
            await catalog.create_subcategory(admin, "Orphans", "missing", "No parent")

    @pytest.mark.asyncio
    async def test_subcategory_description_required(self, catalog: CatalogService, admin: Actor, tree) -> None:
        with pytest.raises(ValidationError):
            await catalog.create_subcategory(admin, "Tablets", tree.electronics.id, None)

    @pytest.mark.asyncio
    async def test_product_records_creator(self, catalog: CatalogService, coordinator: Actor, tree) -> None:
        """The creating actor becomes created_by."""
        detail = await catalog.create_product(
            coordinator,
            name="Pixel Fold",
            description="Foldable",
            price=1799.0,
            stock=1,
            category=tree.electronics.id,
            subcategory=tree.phones.id,
        )
        assert detail.product.created_by == coordinator.id
        assert detail.category.name == "Electronics"
        assert detail.subcategory.name == "Phones"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field,value",
        [
            ("price", -1),
            ("price", "free"),
            ("price", True),
            ("price", float("nan")),
            ("price", float("inf")),
            ("stock", -3),
            ("stock", 1.5),
        ],
    )
    async def test_product_rejects_bad_numbers(
        self, catalog: CatalogService, admin: Actor, tree, field: str, value
    ) -> None:
        """Price and stock must be finite, non-negative numbers."""
        fields = {"price": 10.0, "stock": 1, field: value}
        with pytest.raises(ValidationError) as exc_info:
            await catalog.create_product(
                admin,
                name="Broken",
                description="Bad numbers",
                category=tree.electronics.id,
                subcategory=tree.phones.id,
                **fields,
            )
        assert exc_info.value.details["field"] == field

    @pytest.mark.asyncio
    async def test_product_cross_branch_rejected(self, catalog: CatalogService, admin: Actor, tree) -> None:
        """The subcategory must belong to the given category."""
        with pytest.raises(NotFoundError):
            await catalog.create_product(
                admin,
                name="Misplaced",
                description="Wrong branch",
                price=1.0,
                stock=1,
                category=tree.books.id,
                subcategory=tree.phones.id,
            )

    @pytest.mark.asyncio
    async def test_product_store_failure(self, catalog: CatalogService, admin: Actor, store: DocumentStore, tree) -> None:
        """Store failures surface as StorageError with the underlying text."""
        with patch.object(store, "insert_one", AsyncMock(side_effect=StoreUnavailableError("disk full"))):
            with pytest.raises(StorageError) as exc_info:
                await catalog.create_product(
                    admin,
                    name="Pixel 9",
                    description="Phone",
                    price=1.0,
                    stock=1,
                    category=tree.electronics.id,
                    subcategory=tree.phones.id,
                )
        assert exc_info.value.error == "disk full"


class TestRead:
    """Tests for listing, lookup and redaction."""

    @pytest.mark.asyncio
    async def test_inactive_hidden_by_default(self, catalog: CatalogService, admin: Actor, tree) -> None:
        """Deactivated entries only show up with include_inactive."""
        await catalog.delete_category(admin, tree.books.id)

        names = {c.name for c in await catalog.list_categories(admin)}
        all_names = {c.name for c in await catalog.list_categories(admin, include_inactive=True)}

        assert names == {"Electronics"}
        assert all_names == {"Electronics", "Books"}

    @pytest.mark.asyncio
    async def test_inactive_product_hidden_from_list(self, catalog: CatalogService, admin: Actor, tree) -> None:
        await catalog.delete_product(admin, tree.dune.id)
        products = await catalog.list_products(admin)
        assert tree.dune.id not in {p.product.id for p in products}

    @pytest.mark.asyncio
    async def test_get_returns_inactive_entries(self, catalog: CatalogService, admin: Actor, tree) -> None:
        """Lookup by id ignores the activity flag."""
        await catalog.delete_category(admin, tree.books.id)
        category = await catalog.get_category(admin, tree.books.id)
        assert category.active is False

    @pytest.mark.asyncio
    async def test_auxiliary_never_sees_creator(self, catalog: CatalogService, auxiliary: Actor, tree) -> None:
        """created_by is redacted on lists and single reads."""
        listed = await catalog.list_products(auxiliary)
        single = await catalog.get_product(auxiliary, tree.pixel.id)

        assert listed
        for detail in [*listed, single]:
            assert detail.creator_redacted is True
            assert detail.product.created_by is None
            assert detail.creator is None

    @pytest.mark.asyncio
    async def test_creator_populated_for_writers(
        self, catalog: CatalogService, admin: Actor, coordinator: Actor, store: DocumentStore, tree
    ) -> None:
        """Admins and coordinators see the creator's identity."""
        user = User(
            id=admin.id,
            username="root",
            email="admin@example.com",
            password_hash="x",
            role=Role.ADMIN,
        )
        await store.insert_one(USERS, user.to_document())

        detail = await catalog.get_product(coordinator, tree.pixel.id)

        assert detail.creator_redacted is False
        assert detail.creator.username == "root"
        assert detail.creator.email == "admin@example.com"

    @pytest.mark.asyncio
    async def test_subcategory_populates_category(self, catalog: CatalogService, auxiliary: Actor, tree) -> None:
        detail = await catalog.get_subcategory(auxiliary, tree.phones.id)
        assert detail.category.name == "Electronics"

    @pytest.mark.asyncio
    async def test_get_missing_product(self, catalog: CatalogService, admin: Actor) -> None:
        with pytest.raises(NotFoundError):
            await catalog.get_product(admin, "missing")


class TestUpdate:
    """Tests for partial updates."""

    @pytest.mark.asyncio
    async def test_rename_to_own_name_allowed(self, catalog: CatalogService, admin: Actor, tree) -> None:
        """Uniqueness excludes the entity being updated."""
        category = await catalog.update_category(admin, tree.books.id, {"name": "Books"})
        assert category.name == "Books"

    @pytest.mark.asyncio
    async def test_rename_to_taken_name(self, catalog: CatalogService, admin: Actor, tree) -> None:
        with pytest.raises(DuplicateNameError):
            await catalog.update_category(admin, tree.books.id, {"name": "Electronics"})

    @pytest.mark.asyncio
    async def test_product_price_only(self, catalog: CatalogService, admin: Actor, tree) -> None:
        """Unsupplied fields keep their values."""
        detail = await catalog.update_product(admin, tree.pixel.id, {"price": 450.0})
        assert detail.product.price == 450.0
        assert detail.product.stock == tree.pixel.stock
        assert detail.product.subcategory == tree.phones.id

    @pytest.mark.asyncio
    async def test_product_move_requires_consistent_pair(self, catalog: CatalogService, admin: Actor, tree) -> None:
        with pytest.raises(NotFoundError):
            await catalog.update_product(admin, tree.pixel.id, {"subcategory": tree.novels.id})

    @pytest.mark.asyncio
    async def test_product_move_to_other_branch(self, catalog: CatalogService, admin: Actor, tree) -> None:
        detail = await catalog.update_product(
            admin, tree.pixel.id, {"category": tree.books.id, "subcategory": tree.novels.id}
        )
        assert detail.category.name == "Books"
        assert detail.subcategory.name == "Novels"

    @pytest.mark.asyncio
    async def test_moving_subcategory_carries_products(
        self, catalog: CatalogService, admin: Actor, store: DocumentStore, tree
    ) -> None:
        """Products follow their subcategory to the new category."""
        detail = await catalog.update_subcategory(admin, tree.phones.id, {"category": tree.books.id})

        assert detail.category.name == "Books"
        for product in (tree.pixel, tree.galaxy):
            doc = await store.find_by_id(PRODUCTS, product.id)
            assert doc["category"] == tree.books.id
        thinkpad = await store.find_by_id(PRODUCTS, tree.thinkpad.id)
        assert thinkpad["category"] == tree.electronics.id

    @pytest.mark.asyncio
    async def test_update_missing_category(self, catalog: CatalogService, admin: Actor) -> None:
        with pytest.raises(NotFoundError):
            await catalog.update_category(admin, "missing", {"name": "X"})


class TestDelete:
    """Tests for delete authorization."""

    @pytest.mark.asyncio
    async def test_coordinator_soft_deletes(self, catalog: CatalogService, coordinator: Actor, tree) -> None:
        result = await catalog.delete_category(coordinator, tree.books.id)
        assert result.hard_delete is False
        assert result.products_affected == 1

    @pytest.mark.asyncio
    async def test_coordinator_cannot_hard_delete(self, catalog: CatalogService, coordinator: Actor, tree) -> None:
        with pytest.raises(ForbiddenError):
            await catalog.delete_category(coordinator, tree.books.id, hard_delete=True)

    @pytest.mark.asyncio
    async def test_auxiliary_cannot_soft_delete(self, catalog: CatalogService, auxiliary: Actor, tree) -> None:
        with pytest.raises(ForbiddenError):
            await catalog.delete_product(auxiliary, tree.pixel.id)

    @pytest.mark.asyncio
    async def test_hard_deleted_product_is_gone(self, catalog: CatalogService, admin: Actor, tree) -> None:
        await catalog.delete_product(admin, tree.pixel.id, hard_delete=True)
        with pytest.raises(NotFoundError):
            await catalog.get_product(admin, tree.pixel.id)

    @pytest.mark.asyncio
    async def test_reactivate_product(self, catalog: CatalogService, coordinator: Actor, tree) -> None:
        await catalog.delete_product(coordinator, tree.pixel.id)
        detail = await catalog.reactivate_product(coordinator, tree.pixel.id)
        assert detail.product.active is True

    @pytest.mark.asyncio
    async def test_reconcile_admin_only(self, catalog: CatalogService, coordinator: Actor) -> None:
        with pytest.raises(ForbiddenError):
            await catalog.reconcile(coordinator)


def _blind_name_check(store: DocumentStore):
    """Make name lookups miss so only the unique index can catch a clash."""
    original = store.find_one

    async def find_one(collection, query):
        if "name" in query:
            return None
        return await original(collection, query)

    return patch.object(store, "find_one", AsyncMock(side_effect=find_one))


class TestNameRace:
    """A clash missed by the name check is still reported as DuplicateNameError."""

    @pytest.mark.asyncio
    async def test_create_category(self, catalog: CatalogService, admin: Actor, store: DocumentStore, tree) -> None:
        with _blind_name_check(store):
            with pytest.raises(DuplicateNameError) as exc_info:
                await catalog.create_category(admin, "Electronics")
        assert exc_info.value.error_code == "DUPLICATE_NAME"
        assert len(await store.find(CATEGORIES, {"name": "Electronics"})) == 1

    @pytest.mark.asyncio
    async def test_update_product_rename(self, catalog: CatalogService, admin: Actor, store: DocumentStore, tree) -> None:
        with _blind_name_check(store):
            with pytest.raises(DuplicateNameError):
                await catalog.update_product(admin, tree.galaxy.id, {"name": "Pixel"})
        galaxy = await store.find_by_id(PRODUCTS, tree.galaxy.id)
        assert galaxy["name"] == "Galaxy"
