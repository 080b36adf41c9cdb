"""Catalog and user entities.

Entities are plain dataclasses keyed by an opaque string id. Relations
between levels of the hierarchy are stored as id references and resolved
by lookup, never by embedding.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a new opaque entity identifier."""
    return str(uuid4())


# ============================================================================
# Roles
# ============================================================================


class Role(str, Enum):
    """User roles.

    Ordered admin > coordinador > auxiliar for visibility purposes.
    """

    ADMIN = "admin"
    COORDINADOR = "coordinador"
    AUXILIAR = "auxiliar"

    @property
    def rank(self) -> int:
        """Position of the role in the visibility order."""
        return _ROLE_RANK[self]

    def outranks(self, other: "Role") -> bool:
        """Check if this role sits strictly above another."""
        return self.rank > other.rank


_ROLE_RANK = {
    Role.AUXILIAR: 0,
    Role.COORDINADOR: 1,
    Role.ADMIN: 2,
}


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation.

    Built from verified token claims.

    Attributes:
        id: User id (token subject).
        role: User role.
        email: User email.
    """

    id: str
    role: Role
    email: str | None = None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Actor":
        """Build an actor from token claims."""
        return cls(
            id=str(claims["sub"]),
            role=Role(claims["role"]),
            email=claims.get("email"),
        )


# ============================================================================
# Entities
# ============================================================================


@dataclass
class User:
    """Application user.

    The password digest lives on the entity but is never serialized
    outward; see ``catalog_api.api.schemas.UserSchema``.
    """

    username: str
    email: str
    password_hash: str
    role: Role = Role.AUXILIAR
    active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "active": self.active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "User":
        return cls(
            id=doc["id"],
            username=doc["username"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            role=Role(doc["role"]),
            active=doc.get("active", True),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )


@dataclass
class Category:
    """Top level of the catalog hierarchy."""

    name: str
    description: str = ""
    active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Category":
        return cls(
            id=doc["id"],
            name=doc["name"],
            description=doc.get("description", ""),
            active=doc.get("active", True),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )


@dataclass
class Subcategory:
    """Second level of the hierarchy, owned by exactly one Category."""

    name: str
    category: str
    description: str = ""
    active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "active": self.active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Subcategory":
        return cls(
            id=doc["id"],
            name=doc["name"],
            description=doc.get("description", ""),
            category=doc["category"],
            active=doc.get("active", True),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )


@dataclass
class Product:
    """Leaf of the hierarchy.

    Attributes:
        category: Category id; must equal the subcategory's category.
        subcategory: Subcategory id.
        created_by: Weak reference to the creating user, informational only.
        images: Image URLs.
    """

    name: str
    category: str
    subcategory: str
    price: float
    stock: int
    description: str = ""
    created_by: str | None = None
    images: list[str] = field(default_factory=list)
    active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "category": self.category,
            "subcategory": self.subcategory,
            "created_by": self.created_by,
            "images": list(self.images),
            "active": self.active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Product":
        return cls(
            id=doc["id"],
            name=doc["name"],
            description=doc.get("description", ""),
            price=doc["price"],
            stock=doc["stock"],
            category=doc["category"],
            subcategory=doc["subcategory"],
            created_by=doc.get("created_by"),
            images=list(doc.get("images") or []),
            active=doc.get("active", True),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )
