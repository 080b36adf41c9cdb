"""Category API endpoints.

- GET /categories - list categories
- GET /categories/{id} - category details
- POST /categories - create a category
- PUT /categories/{id} - partial update
- DELETE /categories/{id} - deactivate, or permanently delete with ?hardDelete=true
- POST /categories/{id}/reactivate - reactivate a category only
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from catalog_api.api.dependencies import get_actor, get_request_id
from catalog_api.api.schemas import (
    ApiResponse,
    CategoryCreateRequest,
    CategorySchema,
    CategoryUpdateRequest,
    DeletionSchema,
    ErrorResponse,
    ListResponse,
)
from catalog_api.application.catalog_service import CatalogService, get_catalog_service
from catalog_api.application.lifecycle import CascadeResult
from catalog_api.domain.entities import Actor, Category

router = APIRouter(prefix="/categories", tags=["Categories"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request_id: Annotated[str | None, Depends(get_request_id)]) -> CatalogService:
    """Get catalog service with request ID."""
    return get_catalog_service(request_id=request_id)


IncludeInactive = Annotated[
    bool,
    Query(alias="includeInactive", description="Include deactivated entries"),
]
HardDelete = Annotated[
    bool,
    Query(alias="hardDelete", description="Permanently delete instead of deactivating"),
]


# ============================================================================
# Converters
# ============================================================================


def category_to_response(category: Category) -> CategorySchema:
    """Convert a Category to CategorySchema."""
    return CategorySchema(
        id=category.id,
        name=category.name,
        description=category.description,
        active=category.active,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def cascade_to_response(result: CascadeResult) -> ApiResponse[DeletionSchema]:
    """Convert a CascadeResult to the deletion envelope."""
    action = "deleted permanently" if result.hard_delete else "deactivated"
    return ApiResponse[DeletionSchema](
        message=f"{result.entity_type.capitalize()} {action}",
        data=DeletionSchema(
            entity_type=result.entity_type,
            id=result.entity.id,
            name=result.entity.name,
            active=False,
            hard_delete=result.hard_delete,
            subcategories_affected=result.subcategories_affected,
            products_affected=result.products_affected,
        ),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ListResponse[CategorySchema],
    responses={401: {"model": ErrorResponse}},
    summary="List categories",
)
async def list_categories(
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
    include_inactive: IncludeInactive = False,
) -> ListResponse[CategorySchema]:
    """List categories, newest first. Inactive ones only on request."""
    categories = await service.list_categories(actor, include_inactive=include_inactive)
    return ListResponse[CategorySchema](
        count=len(categories),
        data=[category_to_response(c) for c in categories],
    )


@router.get(
    "/{category_id}",
    response_model=ApiResponse[CategorySchema],
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Get category",
)
async def get_category(
    category_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[CategorySchema]:
    """Get a category by ID."""
    category = await service.get_category(actor, category_id)
    return ApiResponse[CategorySchema](data=category_to_response(category))


@router.post(
    "",
    response_model=ApiResponse[CategorySchema],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Create category",
)
async def create_category(
    request: CategoryCreateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[CategorySchema]:
    """Create a category.

    Args:
        request: Category data.
        actor: Authenticated user.
        service: Catalog service.

    Returns:
        The created category.
    """
    category = await service.create_category(actor, request.name, request.description)
    return ApiResponse[CategorySchema](
        message="Category created",
        data=category_to_response(category),
    )


@router.put(
    "/{category_id}",
    response_model=ApiResponse[CategorySchema],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update category",
)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[CategorySchema]:
    """Update the supplied fields of a category."""
    category = await service.update_category(
        actor, category_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse[CategorySchema](
        message="Category updated",
        data=category_to_response(category),
    )


@router.delete(
    "/{category_id}",
    response_model=ApiResponse[DeletionSchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Delete category",
    description=(
        "Deactivates the category with its subcategories and products. "
        "With hardDelete=true (admin only) removes them permanently."
    ),
)
async def delete_category(
    category_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
    hard_delete: HardDelete = False,
) -> ApiResponse[DeletionSchema]:
    """Deactivate or permanently delete a category and its subtree.

    Args:
        category_id: Category identifier.
        actor: Authenticated user.
        service: Catalog service.
        hard_delete: Remove permanently instead of deactivating.

    Returns:
        Target and cascade counts.
    """
    result = await service.delete_category(actor, category_id, hard_delete=hard_delete)
    return cascade_to_response(result)


@router.post(
    "/{category_id}/reactivate",
    response_model=ApiResponse[CategorySchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Reactivate category",
    description="Reactivates the category only. Subcategories and products keep their state.",
)
async def reactivate_category(
    category_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[CategorySchema]:
    """Reactivate a category."""
    category = await service.reactivate_category(actor, category_id)
    return ApiResponse[CategorySchema](
        message="Category reactivated",
        data=category_to_response(category),
    )
