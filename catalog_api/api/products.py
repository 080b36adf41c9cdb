"""Product API endpoints.

- GET /products - list products with relations populated
- GET /products/{id} - product details
- POST /products - create under a consistent category/subcategory pair
- PUT /products/{id} - partial update
- DELETE /products/{id} - deactivate, or permanently delete with ?hardDelete=true
- POST /products/{id}/reactivate - reactivate a product

Product responses leave ``created_by`` out entirely for readers whose role
may not see it, so every envelope field is set explicitly here and the
routes serialize with ``response_model_exclude_unset``.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from catalog_api.api.categories import HardDelete, IncludeInactive, cascade_to_response, get_service
from catalog_api.api.dependencies import get_actor
from catalog_api.api.schemas import (
    ApiResponse,
    CreatorSchema,
    DeletionSchema,
    EntityRefSchema,
    ErrorResponse,
    ListResponse,
    ProductCreateRequest,
    ProductSchema,
    ProductUpdateRequest,
)
from catalog_api.application.catalog_service import CatalogService, EntityRef, ProductDetail
from catalog_api.domain.entities import Actor

router = APIRouter(prefix="/products", tags=["Products"])


# ============================================================================
# Converters
# ============================================================================


def _ref(ref: EntityRef | None) -> EntityRefSchema | None:
    if ref is None:
        return None
    return EntityRefSchema(id=ref.id, name=ref.name, description=ref.description)


def product_to_response(detail: ProductDetail) -> ProductSchema:
    """Convert a ProductDetail to ProductSchema.

    ``created_by`` is only assigned when the reader may see it.
    """
    product = detail.product
    fields = dict(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        stock=product.stock,
        images=list(product.images),
        category_id=product.category,
        subcategory_id=product.subcategory,
        category=_ref(detail.category),
        subcategory=_ref(detail.subcategory),
        active=product.active,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )
    if not detail.creator_redacted:
        creator = detail.creator
        fields["created_by"] = (
            CreatorSchema(id=creator.id, username=creator.username, email=creator.email)
            if creator is not None
            else None
        )
    return ProductSchema(**fields)


def _single(detail: ProductDetail, message: str | None = None) -> ApiResponse[ProductSchema]:
    return ApiResponse[ProductSchema](
        success=True,
        message=message,
        data=product_to_response(detail),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ListResponse[ProductSchema],
    response_model_exclude_unset=True,
    responses={401: {"model": ErrorResponse}},
    summary="List products",
)
async def list_products(
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
    include_inactive: IncludeInactive = False,
) -> ListResponse[ProductSchema]:
    """List products, newest first, with category, subcategory and creator populated."""
    details = await service.list_products(actor, include_inactive=include_inactive)
    return ListResponse[ProductSchema](
        success=True,
        count=len(details),
        data=[product_to_response(d) for d in details],
    )


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_unset=True,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Get product",
)
async def get_product(
    product_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[ProductSchema]:
    """Get a product by ID."""
    detail = await service.get_product(actor, product_id)
    return _single(detail)


@router.post(
    "",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Create product",
    description="The subcategory must exist and belong to the given category.",
)
async def create_product(
    request: ProductCreateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[ProductSchema]:
    """Create a product.

    Args:
        request: Product data.
        actor: Authenticated user, recorded as the creator.
        service: Catalog service.

    Returns:
        The created product.
    """
    detail = await service.create_product(
        actor,
        name=request.name,
        description=request.description,
        price=request.price,
        stock=request.stock,
        category=request.category,
        subcategory=request.subcategory,
        images=request.images,
    )
    return _single(detail, "Product created")


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_unset=True,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update product",
)
async def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[ProductSchema]:
    """Update the supplied fields of a product."""
    detail = await service.update_product(
        actor, product_id, request.model_dump(exclude_unset=True)
    )
    return _single(detail, "Product updated")


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[DeletionSchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Delete product",
)
async def delete_product(
    product_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
    hard_delete: HardDelete = False,
) -> ApiResponse[DeletionSchema]:
    """Deactivate or permanently delete a product."""
    result = await service.delete_product(actor, product_id, hard_delete=hard_delete)
    return cascade_to_response(result)


@router.post(
    "/{product_id}/reactivate",
    response_model=ApiResponse[ProductSchema],
    response_model_exclude_unset=True,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Reactivate product",
)
async def reactivate_product(
    product_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[ProductSchema]:
    """Reactivate a product."""
    detail = await service.reactivate_product(actor, product_id)
    return _single(detail, "Product reactivated")
