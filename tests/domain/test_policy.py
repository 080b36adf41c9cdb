"""Tests for the role-based access policy."""

import pytest

from catalog_api.domain.entities import Actor, Role
from catalog_api.domain.exceptions import ForbiddenError
from catalog_api.domain.policy import (
    CREATOR_FIELD,
    PASSWORD_FIELD,
    Action,
    Decision,
    Effect,
    authorize,
    enforce,
    user_list_scope,
)


class TestDecision:
    """Tests for policy decisions."""

    def test_allow_is_allowed(self) -> None:
        """ALLOW permits the action and hides nothing."""
        decision = Decision.allow()
        assert decision.allowed
        assert not decision.hides(CREATOR_FIELD)

    def test_deny_is_not_allowed(self) -> None:
        """DENY blocks the action and keeps its reason."""
        decision = Decision.deny("nope")
        assert not decision.allowed
        assert decision.reason == "nope"

    def test_redact_hides_listed_fields_only(self) -> None:
        """REDACT permits the action but hides the listed fields."""
        decision = Decision.redact(CREATOR_FIELD)
        assert decision.allowed
        assert decision.effect == Effect.REDACT
        assert decision.hides(CREATOR_FIELD)
        assert not decision.hides("price")


class TestCatalogRules:
    """Tests for catalog actions."""

    @pytest.mark.parametrize("role", list(Role))
    def test_everyone_can_read_catalog(self, role: Role) -> None:
        """Every role may read categories and subcategories."""
        assert authorize(Actor(id="u", role=role), Action.CATALOG_READ).allowed

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.COORDINADOR])
    def test_writers_see_product_creator(self, role: Role) -> None:
        """Admins and coordinators read products unredacted."""
        decision = authorize(Actor(id="u", role=role), Action.PRODUCT_READ)
        assert decision.effect == Effect.ALLOW

    def test_auxiliary_product_read_redacts_creator(self, auxiliary: Actor) -> None:
        """Auxiliary users read products with created_by redacted."""
        decision = authorize(auxiliary, Action.PRODUCT_READ)
        assert decision.allowed
        assert decision.hides(CREATOR_FIELD)

    def test_auxiliary_cannot_write(self, auxiliary: Actor) -> None:
        """Auxiliary users cannot create, update or soft delete."""
        assert not authorize(auxiliary, Action.CATALOG_WRITE).allowed

    def test_coordinator_can_write(self, coordinator: Actor) -> None:
        """Coordinators can modify the catalog."""
        assert authorize(coordinator, Action.CATALOG_WRITE).allowed

    def test_only_admin_can_hard_delete(self, admin: Actor, coordinator: Actor, auxiliary: Actor) -> None:
        """Hard delete is admin only."""
        assert authorize(admin, Action.CATALOG_HARD_DELETE).allowed
        assert not authorize(coordinator, Action.CATALOG_HARD_DELETE).allowed
        assert not authorize(auxiliary, Action.CATALOG_HARD_DELETE).allowed

    def test_maintenance_denial_has_its_own_reason(self, coordinator: Actor) -> None:
        """Maintenance denial explains maintenance, not deletion."""
        decision = authorize(coordinator, Action.MAINTENANCE)
        assert not decision.allowed
        assert "maintenance" in decision.reason


class TestUserRules:
    """Tests for user actions."""

    def test_user_reads_always_redact_password(self, admin: Actor) -> None:
        """Even admins never see the password digest."""
        decision = authorize(admin, Action.USER_READ, target_role=Role.AUXILIAR, target_id="x")
        assert decision.hides(PASSWORD_FIELD)

    def test_coordinator_cannot_read_admin(self, coordinator: Actor) -> None:
        """Coordinators are denied on admin targets."""
        decision = authorize(coordinator, Action.USER_READ, target_role=Role.ADMIN, target_id="a")
        assert not decision.allowed

    def test_coordinator_reads_non_admin(self, coordinator: Actor) -> None:
        """Coordinators can view coordinators and auxiliaries."""
        decision = authorize(coordinator, Action.USER_READ, target_role=Role.AUXILIAR, target_id="x")
        assert decision.allowed

    def test_auxiliary_reads_only_self(self, auxiliary: Actor) -> None:
        """Auxiliary users can view themselves and nobody else."""
        own = authorize(auxiliary, Action.USER_READ, target_role=Role.AUXILIAR, target_id=auxiliary.id)
        other = authorize(auxiliary, Action.USER_READ, target_role=Role.AUXILIAR, target_id="other")
        assert own.allowed
        assert not other.allowed

    def test_auxiliary_updates_only_self(self, auxiliary: Actor) -> None:
        """Auxiliary users can update only their own profile."""
        assert authorize(
            auxiliary, Action.USER_UPDATE, target_role=Role.AUXILIAR, target_id=auxiliary.id
        ).allowed
        assert not authorize(
            auxiliary, Action.USER_UPDATE, target_role=Role.AUXILIAR, target_id="other"
        ).allowed

    def test_auxiliary_cannot_manage_even_self(self, auxiliary: Actor) -> None:
        """Managing roles and activation is out of reach for auxiliary users."""
        decision = authorize(
            auxiliary, Action.USER_MANAGE, target_role=Role.AUXILIAR, target_id=auxiliary.id
        )
        assert not decision.allowed

    def test_coordinator_cannot_manage_admins(self, coordinator: Actor) -> None:
        """Coordinators cannot create or modify admin accounts."""
        assert not authorize(coordinator, Action.USER_MANAGE, target_role=Role.ADMIN).allowed
        assert authorize(coordinator, Action.USER_MANAGE, target_role=Role.COORDINADOR).allowed

    def test_only_admin_hard_deletes_users(self, admin: Actor, coordinator: Actor) -> None:
        """Permanent user deletion is admin only."""
        assert authorize(admin, Action.USER_HARD_DELETE).allowed
        assert not authorize(coordinator, Action.USER_HARD_DELETE).allowed


class TestEnforce:
    """Tests for enforce()."""

    def test_raises_forbidden_on_deny(self, auxiliary: Actor) -> None:
        """Denied actions raise ForbiddenError with the reason as message."""
        with pytest.raises(ForbiddenError) as exc_info:
            enforce(auxiliary, Action.CATALOG_WRITE)
        assert exc_info.value.error_code == "FORBIDDEN"
        assert exc_info.value.details["action"] == Action.CATALOG_WRITE.value

    def test_returns_decision_on_redact(self, auxiliary: Actor) -> None:
        """Redacting decisions are returned, not raised."""
        decision = enforce(auxiliary, Action.PRODUCT_READ)
        assert decision.hides(CREATOR_FIELD)


class TestUserListScope:
    """Tests for user listing filters."""

    def test_admin_sees_everyone(self, admin: Actor) -> None:
        assert user_list_scope(admin) == {}

    def test_coordinator_excludes_admins(self, coordinator: Actor) -> None:
        assert user_list_scope(coordinator) == {"role": {"$ne": "admin"}}

    def test_auxiliary_sees_self(self, auxiliary: Actor) -> None:
        assert user_list_scope(auxiliary) == {"id": auxiliary.id}
