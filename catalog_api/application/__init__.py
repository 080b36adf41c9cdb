"""Application layer - services orchestrating domain logic.

Contains application services that coordinate between
the domain layer and the document store.
"""

from catalog_api.application.auth_service import AuthResult, AuthService, get_auth_service
from catalog_api.application.catalog_service import (
    CatalogService,
    ProductDetail,
    SubcategoryDetail,
    get_catalog_service,
)
from catalog_api.application.hierarchy import HierarchyValidator
from catalog_api.application.lifecycle import CascadeResult, LifecycleEngine, ReconcileResult
from catalog_api.application.user_service import UserService, get_user_service

__all__ = [
    "AuthResult",
    "AuthService",
    "CascadeResult",
    "CatalogService",
    "HierarchyValidator",
    "LifecycleEngine",
    "ProductDetail",
    "ReconcileResult",
    "SubcategoryDetail",
    "UserService",
    "get_auth_service",
    "get_catalog_service",
    "get_user_service",
]
