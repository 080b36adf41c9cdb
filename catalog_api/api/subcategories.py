"""Subcategory API endpoints.

- GET /subcategories - list subcategories with their category
- GET /subcategories/{id} - subcategory details
- POST /subcategories - create under an existing category
- PUT /subcategories/{id} - partial update, including moving to another category
- DELETE /subcategories/{id} - deactivate, or permanently delete with ?hardDelete=true
- POST /subcategories/{id}/reactivate - reactivate a subcategory only
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from catalog_api.api.categories import HardDelete, IncludeInactive, cascade_to_response, get_service
from catalog_api.api.dependencies import get_actor
from catalog_api.api.schemas import (
    ApiResponse,
    DeletionSchema,
    EntityRefSchema,
    ErrorResponse,
    ListResponse,
    SubcategoryCreateRequest,
    SubcategorySchema,
    SubcategoryUpdateRequest,
)
from catalog_api.application.catalog_service import CatalogService, SubcategoryDetail
from catalog_api.domain.entities import Actor, Subcategory

router = APIRouter(prefix="/subcategories", tags=["Subcategories"])


def subcategory_to_response(
    subcategory: Subcategory,
    category: EntityRefSchema | None = None,
) -> SubcategorySchema:
    """Convert a Subcategory to SubcategorySchema."""
    return SubcategorySchema(
        id=subcategory.id,
        name=subcategory.name,
        description=subcategory.description,
        category_id=subcategory.category,
        category=category,
        active=subcategory.active,
        created_at=subcategory.created_at,
        updated_at=subcategory.updated_at,
    )


def detail_to_response(detail: SubcategoryDetail) -> SubcategorySchema:
    category = None
    if detail.category is not None:
        category = EntityRefSchema(
            id=detail.category.id,
            name=detail.category.name,
            description=detail.category.description,
        )
    return subcategory_to_response(detail.subcategory, category)


@router.get(
    "",
    response_model=ListResponse[SubcategorySchema],
    responses={401: {"model": ErrorResponse}},
    summary="List subcategories",
)
async def list_subcategories(
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
    include_inactive: IncludeInactive = False,
) -> ListResponse[SubcategorySchema]:
    """List subcategories, newest first, with their category populated."""
    details = await service.list_subcategories(actor, include_inactive=include_inactive)
    return ListResponse[SubcategorySchema](
        count=len(details),
        data=[detail_to_response(d) for d in details],
    )


@router.get(
    "/{subcategory_id}",
    response_model=ApiResponse[SubcategorySchema],
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Get subcategory",
)
async def get_subcategory(
    subcategory_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[SubcategorySchema]:
    """Get a subcategory by ID."""
    detail = await service.get_subcategory(actor, subcategory_id)
    return ApiResponse[SubcategorySchema](data=detail_to_response(detail))


@router.post(
    "",
    response_model=ApiResponse[SubcategorySchema],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Create subcategory",
    description="The parent category must exist.",
)
async def create_subcategory(
    request: SubcategoryCreateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[SubcategorySchema]:
    """Create a subcategory."""
    detail = await service.create_subcategory(
        actor,
        name=request.name,
        category=request.category,
        description=request.description,
    )
    return ApiResponse[SubcategorySchema](
        message="Subcategory created",
        data=detail_to_response(detail),
    )


@router.put(
    "/{subcategory_id}",
    response_model=ApiResponse[SubcategorySchema],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update subcategory",
    description="Moving to another category carries the subcategory's products along.",
)
async def update_subcategory(
    subcategory_id: str,
    request: SubcategoryUpdateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[SubcategorySchema]:
    """Update the supplied fields of a subcategory."""
    detail = await service.update_subcategory(
        actor, subcategory_id, request.model_dump(exclude_unset=True)
    )
    return ApiResponse[SubcategorySchema](
        message="Subcategory updated",
        data=detail_to_response(detail),
    )


@router.delete(
    "/{subcategory_id}",
    response_model=ApiResponse[DeletionSchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Delete subcategory",
    description=(
        "Deactivates the subcategory and its products. "
        "With hardDelete=true (admin only) removes them permanently."
    ),
)
async def delete_subcategory(
    subcategory_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
    hard_delete: HardDelete = False,
) -> ApiResponse[DeletionSchema]:
    """Deactivate or permanently delete a subcategory and its products."""
    result = await service.delete_subcategory(actor, subcategory_id, hard_delete=hard_delete)
    return cascade_to_response(result)


@router.post(
    "/{subcategory_id}/reactivate",
    response_model=ApiResponse[SubcategorySchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Reactivate subcategory",
)
async def reactivate_subcategory(
    subcategory_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[SubcategorySchema]:
    """Reactivate a subcategory. Its products keep their state."""
    subcategory = await service.reactivate_subcategory(actor, subcategory_id)
    return ApiResponse[SubcategorySchema](
        message="Subcategory reactivated",
        data=subcategory_to_response(subcategory),
    )
