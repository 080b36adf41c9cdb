"""Password hashing and access tokens.

Both are opaque services to the rest of the application:

- ``PasswordHasher.hash(plaintext) -> digest`` / ``verify(plaintext, digest) -> bool``
- ``TokenService.issue(claims) -> token`` / ``verify(token) -> claims``
"""

from typing import Any

import structlog
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from catalog_api.domain.exceptions import UnauthorizedError
from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()


class PasswordHasher:
    """Hashes and verifies passwords with a passlib crypt context."""

    def __init__(self, schemes: list[str] | None = None) -> None:
        self._context = CryptContext(
            schemes=schemes or settings.password_schemes,
            deprecated="auto",
        )

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            # Unrecognized or malformed digest
            return False


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens.

    Expiry is fixed at ``max_age_seconds`` from issuance and is checked on
    verification.
    """

    def __init__(
        self,
        secret: str | None = None,
        salt: str | None = None,
        max_age_seconds: int | None = None,
    ) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret or settings.token_secret,
            salt=salt or settings.token_salt,
        )
        self.max_age_seconds = max_age_seconds or settings.token_max_age_seconds

    def issue(self, claims: dict[str, Any]) -> str:
        """Sign claims into a token.

        Args:
            claims: Token claims (``sub``, ``role``, ``email``).

        Returns:
            URL-safe token string.
        """
        return self._serializer.dumps(claims)

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a token and return its claims.

        Raises:
            UnauthorizedError: If the token is expired, tampered or malformed.
        """
        try:
            claims = self._serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            raise UnauthorizedError("Token has expired")
        except BadSignature:
            raise UnauthorizedError("Invalid token")

        if not isinstance(claims, dict) or "sub" not in claims or "role" not in claims:
            logger.warning("Token carries malformed claims")
            raise UnauthorizedError("Invalid token claims")
        return claims


_password_hasher: PasswordHasher | None = None
_token_service: TokenService | None = None


def get_password_hasher() -> PasswordHasher:
    """Get password hasher singleton."""
    global _password_hasher
    if _password_hasher is None:
        _password_hasher = PasswordHasher()
    return _password_hasher


def get_token_service() -> TokenService:
    """Get token service singleton."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service
