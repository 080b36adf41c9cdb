"""User API endpoints.

- GET /users - list visible users
- GET /users/{id} - user details
- POST /users - create a user (admin or coordinator)
- PUT /users/{id} - partial update
- DELETE /users/{id} - deactivate, or permanently delete with ?hardDelete=true
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from catalog_api.api.auth import user_to_response
from catalog_api.api.categories import HardDelete, IncludeInactive
from catalog_api.api.dependencies import get_actor, get_request_id
from catalog_api.api.schemas import (
    ApiResponse,
    ErrorResponse,
    ListResponse,
    UserCreateRequest,
    UserSchema,
    UserUpdateRequest,
)
from catalog_api.application.user_service import UserService, get_user_service
from catalog_api.domain.entities import Actor

router = APIRouter(prefix="/users", tags=["Users"])


def get_service(request_id: Annotated[str | None, Depends(get_request_id)]) -> UserService:
    """Get user service with request ID."""
    return get_user_service(request_id=request_id)


@router.get(
    "",
    response_model=ListResponse[UserSchema],
    responses={401: {"model": ErrorResponse}},
    summary="List users",
    description="Auxiliar users only see themselves; coordinators do not see admins.",
)
async def list_users(
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[UserService, Depends(get_service)],
    include_inactive: IncludeInactive = False,
) -> ListResponse[UserSchema]:
    """List the users visible to the caller."""
    users = await service.list_users(actor, include_inactive=include_inactive)
    return ListResponse[UserSchema](
        count=len(users),
        data=[user_to_response(u) for u in users],
    )


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserSchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Get user",
)
async def get_user(
    user_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[UserService, Depends(get_service)],
) -> ApiResponse[UserSchema]:
    """Get a user by ID."""
    user = await service.get_user(actor, user_id)
    return ApiResponse[UserSchema](data=user_to_response(user))


@router.post(
    "",
    response_model=ApiResponse[UserSchema],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Create user",
)
async def create_user(
    request: UserCreateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[UserService, Depends(get_service)],
) -> ApiResponse[UserSchema]:
    """Create a user on behalf of an admin or coordinator."""
    user = await service.create_user(
        actor,
        username=request.username,
        email=request.email,
        password=request.password,
        role=request.role.value if request.role else None,
    )
    return ApiResponse[UserSchema](message="User created", data=user_to_response(user))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserSchema],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update user",
)
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[UserService, Depends(get_service)],
) -> ApiResponse[UserSchema]:
    """Update the supplied fields of a user."""
    changes = request.model_dump(exclude_unset=True)
    if "role" in changes and changes["role"] is not None:
        changes["role"] = changes["role"].value
    user = await service.update_user(actor, user_id, changes)
    return ApiResponse[UserSchema](message="User updated", data=user_to_response(user))


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[UserSchema],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Delete user",
    description="Deactivates the user. hardDelete=true (admin only) removes the account.",
)
async def delete_user(
    user_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[UserService, Depends(get_service)],
    hard_delete: HardDelete = False,
) -> ApiResponse[UserSchema]:
    """Deactivate or permanently delete a user."""
    user = await service.delete_user(actor, user_id, hard_delete=hard_delete)
    message = "User deleted permanently" if hard_delete else "User deactivated"
    return ApiResponse[UserSchema](message=message, data=user_to_response(user))
