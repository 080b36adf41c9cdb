"""Authentication service.

Signup and signin. Both return a bearer token whose claims are the user's
id (``sub``), role and email.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from catalog_api.application.user_service import UserService
from catalog_api.domain.entities import User
from catalog_api.domain.exceptions import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
)
from catalog_api.infrastructure.security import (
    PasswordHasher,
    TokenService,
    get_password_hasher,
    get_token_service,
)
from catalog_api.infrastructure.store import USERS, DocumentStore, StoreError, get_document_store

logger = structlog.get_logger()


@dataclass
class AuthResult:
    """Token plus the authenticated user."""

    token: str
    user: User


class AuthService:
    """Issues tokens for new and returning users."""

    def __init__(
        self,
        store: DocumentStore | None = None,
        hasher: PasswordHasher | None = None,
        tokens: TokenService | None = None,
        request_id: str | None = None,
    ) -> None:
        self.store = store or get_document_store()
        self.hasher = hasher or get_password_hasher()
        self.tokens = tokens or get_token_service()
        self.users = UserService(self.store, self.hasher, request_id=request_id)
        self.request_id = request_id

    def _issue(self, user: User) -> str:
        return self.tokens.issue(
            {"sub": user.id, "role": user.role.value, "email": user.email}
        )

    async def signup(
        self,
        username: Any,
        email: Any,
        password: Any,
        role: Any = None,
    ) -> AuthResult:
        """Register a user and sign them in.

        Raises:
            ValidationError: A field is missing or malformed.
            ConflictError: Username or email already registered.
        """
        user = await self.users.register(username, email, password, role)
        return AuthResult(token=self._issue(user), user=user)

    async def signin(self, identifier: Any, password: Any) -> AuthResult:
        """Authenticate by email or username.

        Raises:
            BadRequestError: Identifier or password missing.
            NotFoundError: No user with that email or username.
            UnauthorizedError: Password does not match.
            ForbiddenError: The account is deactivated.
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise BadRequestError("email_or_username", "is required")
        if not isinstance(password, str) or not password:
            raise BadRequestError("password", "is required")

        identifier = identifier.strip()
        try:
            doc = await self.store.find_one(USERS, {"email": identifier.lower()})
            if doc is None:
                doc = await self.store.find_one(USERS, {"username": identifier})
        except StoreError as e:
            raise StorageError("signin lookup", str(e))
        if doc is None:
            raise NotFoundError("user", identifier)

        user = User.from_document(doc)
        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Signin failed: password mismatch", user_id=user.id)
            raise UnauthorizedError("Invalid credentials")
        if not user.active:
            raise ForbiddenError("signin", "User account is deactivated")

        logger.info("User signed in", user_id=user.id, request_id=self.request_id)
        return AuthResult(token=self._issue(user), user=user)


def get_auth_service(request_id: str | None = None) -> AuthService:
    """Get auth service bound to the global store."""
    return AuthService(request_id=request_id)
