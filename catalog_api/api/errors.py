"""Mapping from domain errors to HTTP error responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from catalog_api.api.schemas import ErrorResponse
from catalog_api.domain.exceptions import (
    ConflictError,
    DomainError,
    DuplicateNameError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)

# Most specific first
ERROR_STATUS: list[tuple[type[DomainError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateNameError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: DomainError) -> int:
    """Get the HTTP status code for a domain error."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict | None = None,
    error: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the ``success=false`` envelope."""
    body = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details or {},
        error=error,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


def domain_error_response(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error as an error envelope."""
    status_code = status_for(exc)
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return error_response(
        request,
        status_code=status_code,
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        error=getattr(exc, "error", None),
        headers=headers,
    )
