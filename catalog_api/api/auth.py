"""Authentication endpoints.

- POST /auth/signup - register and receive a token
- POST /auth/signin - sign in by email or username
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from catalog_api.api.dependencies import get_request_id
from catalog_api.api.schemas import (
    ApiResponse,
    AuthData,
    ErrorResponse,
    SigninRequest,
    SignupRequest,
    UserSchema,
)
from catalog_api.application.auth_service import AuthResult, AuthService, get_auth_service
from catalog_api.domain.entities import User

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_service(request_id: Annotated[str | None, Depends(get_request_id)]) -> AuthService:
    """Get auth service with request ID."""
    return get_auth_service(request_id=request_id)


def user_to_response(user: User) -> UserSchema:
    """Convert a User to UserSchema. The password digest is dropped."""
    return UserSchema(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        active=user.active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def auth_to_response(result: AuthResult, message: str) -> ApiResponse[AuthData]:
    return ApiResponse[AuthData](
        message=message,
        data=AuthData(token=result.token, user=user_to_response(result.user)),
    )


@router.post(
    "/signup",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Sign up",
    description="Register a user. The role defaults to auxiliar.",
)
async def signup(
    request: SignupRequest,
    service: Annotated[AuthService, Depends(get_service)],
) -> ApiResponse[AuthData]:
    """Register a user and return a token.

    Args:
        request: Signup data.
        service: Auth service.

    Returns:
        Token and the created user.
    """
    result = await service.signup(
        username=request.username,
        email=request.email,
        password=request.password,
        role=request.role.value if request.role else None,
    )
    return auth_to_response(result, "User registered")


@router.post(
    "/signin",
    response_model=ApiResponse[AuthData],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Sign in",
    description="Authenticate with email or username and password.",
)
async def signin(
    request: SigninRequest,
    service: Annotated[AuthService, Depends(get_service)],
) -> ApiResponse[AuthData]:
    """Sign in and return a token."""
    result = await service.signin(request.identifier, request.password)
    return auth_to_response(result, "Signed in")
