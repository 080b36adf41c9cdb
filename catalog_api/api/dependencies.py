"""Shared FastAPI dependencies."""

from fastapi import Request

from catalog_api.domain.entities import Actor
from catalog_api.domain.exceptions import UnauthorizedError


def get_request_id(request: Request) -> str | None:
    """Get the correlation ID set by the request ID middleware."""
    return getattr(request.state, "request_id", None)


def get_actor(request: Request) -> Actor:
    """Get the authenticated actor.

    Raises:
        UnauthorizedError: The token middleware did not authenticate the request.
    """
    actor = getattr(request.state, "actor", None)
    if actor is None:
        raise UnauthorizedError("Authentication required")
    return actor
