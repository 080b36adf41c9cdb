"""API schemas for the catalog API.

Pydantic models for request/response validation and serialization.
Every response is wrapped in an envelope carrying ``success``.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from catalog_api.domain.entities import Role

T = TypeVar("T")


# ============================================================================
# Envelopes
# ============================================================================


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope."""

    success: bool = Field(default=True, description="Always true for successful calls")
    message: str | None = Field(default=None, description="Human-readable summary")
    data: T


class ListResponse(BaseModel, Generic[T]):
    """Success envelope for collections."""

    success: bool = Field(default=True, description="Always true for successful calls")
    count: int = Field(..., description="Number of items returned")
    data: list[T]


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    success: bool = Field(default=False, description="Always false for errors")
    message: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Machine-readable error code")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error context")
    error: str | None = Field(default=None, description="Underlying error text for unexpected failures")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


# ============================================================================
# Shared Schemas
# ============================================================================


class EntityRefSchema(BaseModel):
    """Populated parent reference."""

    id: str
    name: str
    description: str = ""


class CreatorSchema(BaseModel):
    """Populated product creator."""

    id: str
    username: str
    email: str


class DeletionSchema(BaseModel):
    """Outcome of a delete request."""

    entity_type: str = Field(..., description="category, subcategory or product")
    id: str = Field(..., description="Target entity id")
    name: str = Field(..., description="Target entity name")
    active: bool = Field(..., description="Target state after a soft delete")
    hard_delete: bool = Field(..., description="Whether the entity was permanently removed")
    subcategories_affected: int = Field(default=0, description="Subcategories deactivated or deleted")
    products_affected: int = Field(default=0, description="Products deactivated or deleted")


# ============================================================================
# Auth Schemas
# ============================================================================


class SignupRequest(BaseModel):
    """Request to register a user."""

    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Unique email, stored lowercased")
    password: str = Field(..., description="Plaintext password")
    role: Role | None = Field(default=None, description="Defaults to auxiliar")


class SigninRequest(BaseModel):
    """Request to sign in by email or username."""

    email_or_username: str | None = Field(default=None, description="Email or username")
    email: str | None = Field(default=None, description="Alternative to email_or_username")
    username: str | None = Field(default=None, description="Alternative to email_or_username")
    password: str | None = Field(default=None, description="Plaintext password")

    @property
    def identifier(self) -> str | None:
        return self.email_or_username or self.email or self.username


class UserSchema(BaseModel):
    """User as returned by the API. Never includes the password digest."""

    id: str
    username: str
    email: str
    role: Role
    active: bool
    created_at: datetime
    updated_at: datetime


class AuthData(BaseModel):
    """Token plus user."""

    token: str
    user: UserSchema


class UserCreateRequest(BaseModel):
    """Request to create a user (admin or coordinator)."""

    username: str
    email: str
    password: str
    role: Role | None = None


class UserUpdateRequest(BaseModel):
    """Partial user update. Only supplied fields change."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    role: Role | None = None
    active: bool | None = None


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryCreateRequest(BaseModel):
    """Request to create a category."""

    name: str = Field(..., description="Unique category name")
    description: str | None = Field(default=None, description="Category description")


class CategoryUpdateRequest(BaseModel):
    """Partial category update."""

    name: str | None = None
    description: str | None = None


class CategorySchema(BaseModel):
    """Category response."""

    id: str
    name: str
    description: str
    active: bool
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Subcategory Schemas
# ============================================================================


class SubcategoryCreateRequest(BaseModel):
    """Request to create a subcategory."""

    name: str = Field(..., description="Unique subcategory name")
    description: str = Field(..., description="Subcategory description")
    category: str = Field(..., description="Parent category id")


class SubcategoryUpdateRequest(BaseModel):
    """Partial subcategory update."""

    name: str | None = None
    description: str | None = None
    category: str | None = None


class SubcategorySchema(BaseModel):
    """Subcategory response with its category populated."""

    id: str
    name: str
    description: str
    category_id: str
    category: EntityRefSchema | None = None
    active: bool
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Product Schemas
# ============================================================================


class ProductCreateRequest(BaseModel):
    """Request to create a product."""

    name: str = Field(..., description="Unique product name")
    description: str = Field(..., description="Product description")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Price, not negative")
    stock: int = Field(..., description="Units in stock, not negative")
    category: str = Field(..., description="Category id")
    subcategory: str = Field(..., description="Subcategory id; must belong to the category")
    images: list[str] = Field(default_factory=list, description="Image URLs")


class ProductUpdateRequest(BaseModel):
    """Partial product update."""

    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    stock: int | None = None
    category: str | None = None
    subcategory: str | None = None
    images: list[str] | None = None


class ProductSchema(BaseModel):
    """Product response.

    ``created_by`` is left out entirely when the reader may not see it.
    """

    id: str
    name: str
    description: str
    price: float
    stock: int
    images: list[str] = Field(default_factory=list)
    category_id: str
    subcategory_id: str
    category: EntityRefSchema | None = None
    subcategory: EntityRefSchema | None = None
    created_by: CreatorSchema | None = None
    active: bool
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Maintenance Schemas
# ============================================================================


class ReconcileSchema(BaseModel):
    """Outcome of a reconciliation pass."""

    subcategories_deleted: int
    products_deleted: int
    subcategories_deactivated: int
    products_deactivated: int
    steps: list[str]
