"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from catalog_api.api.auth import router as auth_router
from catalog_api.api.categories import router as categories_router
from catalog_api.api.health import router as health_router
from catalog_api.api.maintenance import router as maintenance_router
from catalog_api.api.products import router as products_router
from catalog_api.api.subcategories import router as subcategories_router
from catalog_api.api.users import router as users_router

__all__ = [
    "auth_router",
    "categories_router",
    "health_router",
    "maintenance_router",
    "products_router",
    "subcategories_router",
    "users_router",
]
