"""Role-based access policy.

Every authorization decision in the service layer goes through
``authorize``. A decision is one of:

- ``allow``: the action proceeds and the result is returned as is;
- ``deny``: the action fails with ``ForbiddenError``;
- ``redact(fields)``: the action proceeds but the listed fields are
  stripped from the returned data.

The password digest is redacted from every user read regardless of role.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from catalog_api.domain.entities import Actor, Role
from catalog_api.domain.exceptions import ForbiddenError

PASSWORD_FIELD = "password_hash"
CREATOR_FIELD = "created_by"


class Action(str, Enum):
    """Actions subject to authorization."""

    USER_LIST = "user.list"
    USER_READ = "user.read"
    USER_UPDATE = "user.update"
    USER_MANAGE = "user.manage"
    USER_HARD_DELETE = "user.hard_delete"
    CATALOG_READ = "catalog.read"
    PRODUCT_READ = "product.read"
    CATALOG_WRITE = "catalog.write"
    CATALOG_HARD_DELETE = "catalog.hard_delete"
    MAINTENANCE = "maintenance"


class Effect(str, Enum):
    """Outcome of a policy decision."""

    ALLOW = "allow"
    DENY = "deny"
    REDACT = "redact"


@dataclass(frozen=True)
class Decision:
    """Tagged policy decision.

    Attributes:
        effect: allow, deny or redact.
        redacted_fields: Fields to strip when effect is redact.
        reason: Human-readable denial reason.
    """

    effect: Effect
    redacted_fields: frozenset[str] = field(default_factory=frozenset)
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(Effect.ALLOW)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(Effect.DENY, reason=reason)

    @classmethod
    def redact(cls, *fields: str) -> "Decision":
        return cls(Effect.REDACT, redacted_fields=frozenset(fields))

    @property
    def allowed(self) -> bool:
        return self.effect != Effect.DENY

    def hides(self, field_name: str) -> bool:
        """Check whether a field must be left out of the response."""
        return self.effect == Effect.REDACT and field_name in self.redacted_fields


# ============================================================================
# Rules
# ============================================================================

_CATALOG_WRITERS = frozenset({Role.ADMIN, Role.COORDINADOR})


def _user_read(actor: Actor, target_role: Role | None, target_id: str | None) -> Decision:
    if actor.role == Role.ADMIN:
        return Decision.redact(PASSWORD_FIELD)
    if actor.role == Role.COORDINADOR:
        if target_role is not None and target_role.outranks(actor.role):
            return Decision.deny("Coordinators cannot view admin users")
        return Decision.redact(PASSWORD_FIELD)
    if target_id is not None and target_id == actor.id:
        return Decision.redact(PASSWORD_FIELD)
    return Decision.deny("Auxiliary users can only view their own profile")


def _user_update(actor: Actor, target_role: Role | None, target_id: str | None) -> Decision:
    if actor.role == Role.ADMIN:
        return Decision.allow()
    if actor.role == Role.COORDINADOR:
        if target_role is not None and target_role.outranks(actor.role):
            return Decision.deny("Coordinators cannot modify admin users")
        return Decision.allow()
    if target_id is not None and target_id == actor.id:
        return Decision.allow()
    return Decision.deny("Auxiliary users can only update their own profile")


def _user_manage(actor: Actor, target_role: Role | None, target_id: str | None) -> Decision:
    if actor.role == Role.ADMIN:
        return Decision.allow()
    if actor.role == Role.COORDINADOR:
        if target_role is not None and target_role.outranks(actor.role):
            return Decision.deny("Only admins can manage admin accounts")
        return Decision.allow()
    return Decision.deny("Auxiliary users cannot manage user accounts")


def authorize(
    actor: Actor,
    action: Action,
    target_role: Role | None = None,
    target_id: str | None = None,
) -> Decision:
    """Decide whether an actor may perform an action.

    Args:
        actor: Authenticated caller.
        action: Action being attempted.
        target_role: Role of the target user, for user actions.
        target_id: Id of the target user, for self-access checks.

    Returns:
        The policy decision.
    """
    if action == Action.USER_LIST:
        return Decision.redact(PASSWORD_FIELD)
    if action == Action.USER_READ:
        return _user_read(actor, target_role, target_id)
    if action == Action.USER_UPDATE:
        return _user_update(actor, target_role, target_id)
    if action == Action.USER_MANAGE:
        return _user_manage(actor, target_role, target_id)
    if action == Action.USER_HARD_DELETE:
        if actor.role == Role.ADMIN:
            return Decision.allow()
        return Decision.deny("Only admins can permanently delete users")

    if action == Action.CATALOG_READ:
        return Decision.allow()
    if action == Action.PRODUCT_READ:
        if actor.role == Role.AUXILIAR:
            return Decision.redact(CREATOR_FIELD)
        return Decision.allow()
    if action == Action.CATALOG_WRITE:
        if actor.role in _CATALOG_WRITERS:
            return Decision.allow()
        return Decision.deny("Only admins and coordinators can modify the catalog")
    if action == Action.CATALOG_HARD_DELETE:
        if actor.role == Role.ADMIN:
            return Decision.allow()
        return Decision.deny("Only admins can permanently delete catalog entries")
    if action == Action.MAINTENANCE:
        if actor.role == Role.ADMIN:
            return Decision.allow()
        return Decision.deny("Only admins can run catalog maintenance")

    return Decision.deny(f"Unknown action: {action}")


def enforce(
    actor: Actor,
    action: Action,
    target_role: Role | None = None,
    target_id: str | None = None,
) -> Decision:
    """Authorize and raise on denial.

    Raises:
        ForbiddenError: If the policy denies the action.
    """
    decision = authorize(actor, action, target_role=target_role, target_id=target_id)
    if not decision.allowed:
        raise ForbiddenError(action.value, decision.reason or "Forbidden")
    return decision


def user_list_scope(actor: Actor) -> dict[str, Any]:
    """Store filter restricting a user listing to what the actor may see."""
    if actor.role == Role.AUXILIAR:
        return {"id": actor.id}
    if actor.role == Role.COORDINADOR:
        return {"role": {"$ne": Role.ADMIN.value}}
    return {}
