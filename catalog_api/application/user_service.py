"""User application service.

User management with role-scoped visibility:

- auxiliar users see and edit only themselves;
- coordinators see and manage every non-admin user;
- admins are unrestricted and the only role that can hard-delete.

Password digests never leave this layer.
"""

import re
from typing import Any

import structlog

from catalog_api.domain.entities import Actor, Role, User
from catalog_api.domain.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from catalog_api.domain.policy import Action, enforce, user_list_scope
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.security import PasswordHasher, get_password_hasher
from catalog_api.infrastructure.store import (
    USERS,
    DocumentStore,
    DuplicateKeyError,
    StoreError,
    get_document_store,
)

logger = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


# ============================================================================
# Field Validation
# ============================================================================


def clean_username(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("username", "is required")
    return value.strip()


def clean_email(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("email", "is required")
    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email", "is not a valid email address")
    return email


def clean_password(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError("password", "is required")
    if len(value) < settings.password_min_length:
        raise ValidationError(
            "password",
            f"must be at least {settings.password_min_length} characters",
        )
    return value


def clean_role(value: Any) -> Role:
    if value is None:
        return Role(settings.default_role)
    try:
        return Role(value)
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise ValidationError("role", f"must be one of: {allowed}")


# ============================================================================
# User Service
# ============================================================================


class UserService:
    """Application service for user accounts."""

    def __init__(
        self,
        store: DocumentStore | None = None,
        hasher: PasswordHasher | None = None,
        request_id: str | None = None,
    ) -> None:
        self.store = store or get_document_store()
        self.hasher = hasher or get_password_hasher()
        self.request_id = request_id

    async def _load(self, user_id: str) -> User:
        try:
            doc = await self.store.find_by_id(USERS, user_id)
        except StoreError as e:
            raise StorageError("load user", str(e))
        if doc is None:
            raise NotFoundError("user", user_id)
        return User.from_document(doc)

    async def _ensure_available(self, username: str | None, email: str | None, exclude_id: str | None = None) -> None:
        for field, value in (("username", username), ("email", email)):
            if value is None:
                continue
            query: dict[str, Any] = {field: value}
            if exclude_id is not None:
                query["id"] = {"$ne": exclude_id}
            try:
                existing = await self.store.find_one(USERS, query)
            except StoreError as e:
                raise StorageError(f"check {field}", str(e))
            if existing is not None:
                raise ConflictError(field, value)

    async def register(
        self,
        username: Any,
        email: Any,
        password: Any,
        role: Any = None,
    ) -> User:
        """Validate, hash and store a new user. No authorization check.

        Raises:
            ValidationError: A field is missing or malformed.
            ConflictError: Username or email already registered.
        """
        user = User(
            username=clean_username(username),
            email=clean_email(email),
            password_hash="",
            role=clean_role(role),
        )
        plaintext = clean_password(password)
        await self._ensure_available(user.username, user.email)
        user.password_hash = self.hasher.hash(plaintext)

        try:
            doc = await self.store.insert_one(USERS, user.to_document())
        except DuplicateKeyError as e:
            raise ConflictError(e.field, str(e.value))
        except StoreError as e:
            raise StorageError("insert user", str(e))

        logger.info(
            "User registered",
            user_id=user.id,
            username=user.username,
            role=user.role.value,
            request_id=self.request_id,
        )
        return User.from_document(doc)

    async def list_users(self, actor: Actor, include_inactive: bool = False) -> list[User]:
        """List the users the actor is allowed to see."""
        enforce(actor, Action.USER_LIST)
        query = user_list_scope(actor)
        if not include_inactive:
            query["active"] = {"$ne": False}
        try:
            docs = await self.store.find(USERS, query, sort=("created_at", True))
        except StoreError as e:
            raise StorageError("list users", str(e))
        return [User.from_document(doc) for doc in docs]

    async def get_user(self, actor: Actor, user_id: str) -> User:
        """Get a user the actor is allowed to see.

        Raises:
            NotFoundError: No such user.
            ForbiddenError: The actor's role may not view this user.
        """
        user = await self._load(user_id)
        enforce(actor, Action.USER_READ, target_role=user.role, target_id=user.id)
        return user

    async def create_user(
        self,
        actor: Actor,
        username: Any,
        email: Any,
        password: Any,
        role: Any = None,
    ) -> User:
        """Create a user on behalf of an admin or coordinator."""
        target_role = clean_role(role)
        enforce(actor, Action.USER_MANAGE, target_role=target_role)
        return await self.register(username, email, password, target_role.value)

    async def update_user(self, actor: Actor, user_id: str, changes: dict[str, Any]) -> User:
        """Partially update a user.

        Profile fields follow the update rule (self or a permitted role).
        ``role`` and ``active`` additionally need management rights over
        both the current and the requested role.
        """
        user = await self._load(user_id)
        enforce(actor, Action.USER_UPDATE, target_role=user.role, target_id=user.id)

        update: dict[str, Any] = {}
        if "username" in changes:
            update["username"] = clean_username(changes["username"])
        if "email" in changes:
            update["email"] = clean_email(changes["email"])
        if "password" in changes:
            update["password_hash"] = self.hasher.hash(clean_password(changes["password"]))
        if "role" in changes or "active" in changes:
            enforce(actor, Action.USER_MANAGE, target_role=user.role, target_id=user.id)
        if "role" in changes:
            new_role = clean_role(changes["role"])
            enforce(actor, Action.USER_MANAGE, target_role=new_role, target_id=user.id)
            update["role"] = new_role.value
        if "active" in changes:
            if not isinstance(changes["active"], bool):
                raise ValidationError("active", "must be true or false")
            update["active"] = changes["active"]

        if not update:
            return user
        await self._ensure_available(update.get("username"), update.get("email"), exclude_id=user_id)

        try:
            doc = await self.store.update_by_id(USERS, user_id, update)
        except DuplicateKeyError as e:
            raise ConflictError(e.field, str(e.value))
        except StoreError as e:
            raise StorageError("update user", str(e))
        if doc is None:
            raise NotFoundError("user", user_id)

        logger.info(
            "User updated",
            user_id=user_id,
            fields=sorted(k for k in update if k != "password_hash"),
            password_changed="password_hash" in update,
            actor_id=actor.id,
            request_id=self.request_id,
        )
        return User.from_document(doc)

    async def delete_user(self, actor: Actor, user_id: str, hard_delete: bool = False) -> User:
        """Deactivate (default) or permanently delete a user.

        Products keep their ``created_by`` reference either way.
        """
        user = await self._load(user_id)
        if hard_delete:
            enforce(actor, Action.USER_HARD_DELETE, target_role=user.role, target_id=user.id)
            try:
                await self.store.delete_by_id(USERS, user_id)
            except StoreError as e:
                raise StorageError("delete user", str(e))
            logger.info("User deleted permanently", user_id=user_id, actor_id=actor.id)
            return user

        enforce(actor, Action.USER_MANAGE, target_role=user.role, target_id=user.id)
        try:
            doc = await self.store.update_by_id(USERS, user_id, {"active": False})
        except StoreError as e:
            raise StorageError("deactivate user", str(e))
        if doc is None:
            raise NotFoundError("user", user_id)
        logger.info("User deactivated", user_id=user_id, actor_id=actor.id)
        return User.from_document(doc)


def get_user_service(request_id: str | None = None) -> UserService:
    """Get user service bound to the global store."""
    return UserService(request_id=request_id)
