"""Domain exceptions.

All domain-level errors raised by the catalog services. Each error carries
a stable ``error_code`` so the API layer can render a consistent
``success=false`` envelope without inspecting exception types.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the API layer.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Request Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when a required field is missing or malformed."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str) -> None:
        """Initialize validation error.

        Args:
            field: Name of the offending field.
            reason: Explanation of why the value is invalid.
        """
        super().__init__(
            f"Invalid value for '{field}': {reason}",
            details={"field": field, "reason": reason},
        )


class BadRequestError(ValidationError):
    """Raised when a request is missing the fields an operation needs."""

    error_code = "BAD_REQUEST"


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(DomainError):
    """Raised when a target, parent or referenced entity does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str | None = None) -> None:
        """Initialize not found error.

        Args:
            entity_type: Kind of entity (e.g., "category", "user").
            entity_id: Identifier that failed to resolve.
        """
        if entity_id:
            message = f"{entity_type.capitalize()} not found: {entity_id}"
        else:
            message = f"{entity_type.capitalize()} not found"
        super().__init__(
            message,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


# ============================================================================
# Uniqueness Errors
# ============================================================================


class DuplicateNameError(DomainError):
    """Raised when a catalog name collides with an existing entity."""

    error_code = "DUPLICATE_NAME"

    def __init__(self, entity_type: str, name: str) -> None:
        """Initialize duplicate name error.

        Args:
            entity_type: Kind of catalog entity.
            name: The colliding name.
        """
        super().__init__(
            f"A {entity_type} named '{name}' already exists",
            details={"entity_type": entity_type, "name": name},
        )


class ConflictError(DomainError):
    """Raised when a user identity (username or email) is already taken."""

    error_code = "CONFLICT"

    def __init__(self, field: str, value: str) -> None:
        """Initialize conflict error.

        Args:
            field: The unique field that collided.
            value: The colliding value.
        """
        super().__init__(
            f"A user with {field} '{value}' already exists",
            details={"field": field, "value": value},
        )


# ============================================================================
# Access Errors
# ============================================================================


class ForbiddenError(DomainError):
    """Raised when the actor's role does not permit the action."""

    error_code = "FORBIDDEN"

    def __init__(self, action: str, reason: str) -> None:
        """Initialize forbidden error.

        Args:
            action: The attempted action.
            reason: Why the policy denied it.
        """
        super().__init__(reason, details={"action": action})


class UnauthorizedError(DomainError):
    """Raised when credentials or tokens do not check out."""

    error_code = "UNAUTHORIZED"


# ============================================================================
# Storage Errors
# ============================================================================


class StorageError(DomainError):
    """Raised when the underlying store fails during an operation.

    Steps that completed before the failure stay applied.
    """

    error_code = "STORAGE_ERROR"

    def __init__(
        self,
        operation: str,
        error: str,
        completed_steps: list[str] | None = None,
    ) -> None:
        """Initialize storage error.

        Args:
            operation: Operation or cascade step that failed.
            error: Underlying store error text.
            completed_steps: Cascade steps already applied.
        """
        super().__init__(
            f"Storage failure during {operation}",
            details={
                "operation": operation,
                "completed_steps": completed_steps or [],
            },
        )
        self.error = error
