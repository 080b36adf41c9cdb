"""Fixtures for application service tests."""

from dataclasses import dataclass

import pytest

from catalog_api.application.catalog_service import CatalogService, SubcategoryDetail
from catalog_api.application.lifecycle import LifecycleEngine
from catalog_api.domain.entities import Actor, Category, Product, Subcategory
from catalog_api.infrastructure.store import DocumentStore


@dataclass
class CatalogTree:
    """A small seeded hierarchy.

    Electronics -> Phones -> Pixel, Galaxy
    Electronics -> Laptops -> ThinkPad
    Books -> Novels -> Dune
    """

    electronics: Category
    books: Category
    phones: Subcategory
    laptops: Subcategory
    novels: Subcategory
    pixel: Product
    galaxy: Product
    thinkpad: Product
    dune: Product


@pytest.fixture
def catalog(store: DocumentStore) -> CatalogService:
    """Catalog service over the test store."""
    return CatalogService(store, request_id="test-request")


@pytest.fixture
def engine(store: DocumentStore) -> LifecycleEngine:
    """Lifecycle engine over the test store."""
    return LifecycleEngine(store)


@pytest.fixture
async def tree(catalog: CatalogService, admin: Actor) -> CatalogTree:
    """Seed a two-branch catalog."""
    electronics = await catalog.create_category(admin, "Electronics", "Gadgets")
    books = await catalog.create_category(admin, "Books", "Printed matter")
    phones = await catalog.create_subcategory(admin, "Phones", electronics.id, "Mobile phones")
    laptops = await catalog.create_subcategory(admin, "Laptops", electronics.id, "Portable computers")
    novels = await catalog.create_subcategory(admin, "Novels", books.id, "Fiction")

    async def product(name: str, category: Category, subcategory: SubcategoryDetail) -> Product:
        detail = await catalog.create_product(
            admin,
            name=name,
            description=f"{name} description",
            price=100.0,
            stock=5,
            category=category.id,
            subcategory=subcategory.subcategory.id,
        )
        return detail.product

    return CatalogTree(
        electronics=electronics,
        books=books,
        phones=phones.subcategory,
        laptops=laptops.subcategory,
        novels=novels.subcategory,
        pixel=await product("Pixel", electronics, phones),
        galaxy=await product("Galaxy", electronics, phones),
        thinkpad=await product("ThinkPad", electronics, laptops),
        dune=await product("Dune", books, novels),
    )
