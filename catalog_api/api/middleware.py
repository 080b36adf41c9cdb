"""API middleware for the catalog API.

Provides:
- Request ID correlation
- Bearer token authentication
- Error handling
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_api.api.errors import domain_error_response, error_response
from catalog_api.domain.entities import Actor
from catalog_api.domain.exceptions import UnauthorizedError
from catalog_api.infrastructure.security import get_token_service

logger = structlog.get_logger()


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for correlation.

    Generates or extracts a request ID and adds it to:
    - Request state for access in handlers
    - Response headers for client correlation
    - Log context for tracing
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with correlation ID.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response with request ID header.
        """
        # Get or generate request ID
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())

        # Store in request state for handlers
        request.state.request_id = request_id

        # Add to log context
        structlog.contextvars.bind_contextvars(request_id=request_id)

        # Time the request
        start_time = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        finally:
            # Calculate duration
            duration_ms = (time.perf_counter() - start_time) * 1000

            # Log request completion
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round(duration_ms, 2),
            )

            # Clear log context
            structlog.contextvars.unbind_contextvars("request_id")

        # Add request ID to response headers
        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# Token Authentication Middleware
# ============================================================================


# Paths that don't require authentication
PUBLIC_PATHS = {
    "/health",
    "/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/auth/signup",
    "/auth/signin",
}


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """Middleware for bearer token authentication.

    Verifies ``Authorization: Bearer <token>`` and stores the resulting
    ``Actor`` on ``request.state.actor``.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Validate the token for protected endpoints.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response or 401 error.
        """
        # Skip auth for public paths
        path = request.url.path.rstrip("/")
        if path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc"):
            return await call_next(request)

        # Get Authorization header
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            logger.warning("Missing authorization header", path=path, method=request.method)
            return error_response(
                request,
                status_code=status.HTTP_401_UNAUTHORIZED,
                error_code="UNAUTHORIZED",
                message="Missing Authorization header",
                headers={"WWW-Authenticate": "Bearer"},
            )

        # Validate Bearer token format
        parts = auth_header.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != "bearer":
            logger.warning("Invalid authorization format", path=path, method=request.method)
            return error_response(
                request,
                status_code=status.HTTP_401_UNAUTHORIZED,
                error_code="UNAUTHORIZED",
                message="Invalid Authorization header format. Use 'Bearer <token>'",
                headers={"WWW-Authenticate": "Bearer"},
            )

        # Verify token and resolve the actor
        try:
            claims = get_token_service().verify(parts[1])
            actor = Actor.from_claims(claims)
        except UnauthorizedError as e:
            logger.warning("Invalid token", path=path, method=request.method, reason=e.message)
            return domain_error_response(request, e)
        except (KeyError, ValueError):
            logger.warning("Token carries malformed claims", path=path, method=request.method)
            return domain_error_response(request, UnauthorizedError("Invalid token claims"))

        # Store authenticated actor
        request.state.actor = actor
        structlog.contextvars.bind_contextvars(actor_id=actor.id)
        try:
            return await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("actor_id")


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches unhandled exceptions and returns standardized error responses.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Handle errors uniformly.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response or error response.
        """
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )
            return error_response(
                request,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code="INTERNAL_ERROR",
                message="An internal error occurred",
                error=str(e),
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    # Token authentication (innermost, runs right before routing)
    app.add_middleware(TokenAuthMiddleware)

    # Request ID correlation
    app.add_middleware(RequestIdMiddleware)

    # Error handling (outermost - catches all errors)
    app.add_middleware(ErrorHandlerMiddleware)
