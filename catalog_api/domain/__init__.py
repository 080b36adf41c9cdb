"""Domain layer - entities, roles, access policy and domain errors.

Example usage:
    from catalog_api.domain import Action, Actor, Role, authorize

    actor = Actor(id="u-1", role=Role.AUXILIAR)
    decision = authorize(actor, Action.PRODUCT_READ)
    decision.hides("created_by")  # True
"""

from catalog_api.domain.entities import (
    Actor,
    Category,
    Product,
    Role,
    Subcategory,
    User,
    new_id,
)
from catalog_api.domain.exceptions import (
    BadRequestError,
    ConflictError,
    DomainError,
    DuplicateNameError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from catalog_api.domain.policy import (
    Action,
    Decision,
    Effect,
    authorize,
    enforce,
    user_list_scope,
)

__all__ = [
    # Entities
    "Actor",
    "Category",
    "Product",
    "Role",
    "Subcategory",
    "User",
    "new_id",
    # Exceptions
    "BadRequestError",
    "ConflictError",
    "DomainError",
    "DuplicateNameError",
    "ForbiddenError",
    "NotFoundError",
    "StorageError",
    "UnauthorizedError",
    "ValidationError",
    # Policy
    "Action",
    "Decision",
    "Effect",
    "authorize",
    "enforce",
    "user_list_scope",
]
