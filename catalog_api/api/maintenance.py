"""Maintenance endpoints.

- POST /maintenance/reconcile - repair orphans left by interrupted cascades
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from catalog_api.api.categories import get_service
from catalog_api.api.dependencies import get_actor
from catalog_api.api.schemas import ApiResponse, ErrorResponse, ReconcileSchema
from catalog_api.application.catalog_service import CatalogService
from catalog_api.domain.entities import Actor

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.post(
    "/reconcile",
    response_model=ApiResponse[ReconcileSchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Reconcile catalog",
    description=(
        "Deletes subcategories and products whose parents no longer exist and "
        "deactivates children of inactive categories. Admin only."
    ),
)
async def reconcile(
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> ApiResponse[ReconcileSchema]:
    """Run a reconciliation pass."""
    result = await service.reconcile(actor)
    return ApiResponse[ReconcileSchema](
        message="Catalog reconciled",
        data=ReconcileSchema(
            subcategories_deleted=result.subcategories_deleted,
            products_deleted=result.products_deleted,
            subcategories_deactivated=result.subcategories_deactivated,
            products_deactivated=result.products_deactivated,
            steps=list(result.steps),
        ),
    )
