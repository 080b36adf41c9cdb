"""Tests for domain entities."""

import pytest

from catalog_api.domain.entities import Actor, Category, Product, Role, Subcategory, User


class TestRole:
    """Tests for Role ordering."""

    def test_admin_outranks_coordinator(self) -> None:
        """Admin sits above coordinador."""
        assert Role.ADMIN.outranks(Role.COORDINADOR)
        assert not Role.COORDINADOR.outranks(Role.ADMIN)

    def test_role_does_not_outrank_itself(self) -> None:
        assert not Role.AUXILIAR.outranks(Role.AUXILIAR)

    def test_role_from_value(self) -> None:
        assert Role("coordinador") is Role.COORDINADOR


class TestActor:
    """Tests for Actor construction from token claims."""

    def test_from_claims(self) -> None:
        """sub, role and email map onto the actor."""
        actor = Actor.from_claims({"sub": "u1", "role": "admin", "email": "a@b.co"})
        assert actor == Actor(id="u1", role=Role.ADMIN, email="a@b.co")

    def test_from_claims_rejects_unknown_role(self) -> None:
        """Unknown roles are a ValueError."""
        with pytest.raises(ValueError):
            Actor.from_claims({"sub": "u1", "role": "superuser"})


class TestDocuments:
    """Tests for entity document round trips."""

    def test_new_entities_are_active_with_ids(self) -> None:
        """Entities start active with distinct generated ids."""
        first = Category(name="Electronics")
        second = Category(name="Books")
        assert first.active and second.active
        assert first.id != second.id

    def test_user_document_stores_role_value(self) -> None:
        """Roles are stored by value."""
        user = User(username="ana", email="ana@example.com", password_hash="x", role=Role.COORDINADOR)
        doc = user.to_document()
        assert doc["role"] == "coordinador"
        assert User.from_document(doc).role == Role.COORDINADOR

    def test_subcategory_references_category_by_id(self) -> None:
        """The parent is a plain id reference."""
        sub = Subcategory(name="Phones", category="cat-1", description="Mobile")
        assert sub.to_document()["category"] == "cat-1"

    def test_product_document_keeps_relations_and_creator(self) -> None:
        """Products carry both parent ids and the creator id."""
        product = Product(
            name="Pixel",
            category="cat-1",
            subcategory="sub-1",
            price=499.0,
            stock=3,
            created_by="user-1",
            images=["https://img.example.com/pixel.png"],
        )
        restored = Product.from_document(product.to_document())
        assert restored.category == "cat-1"
        assert restored.subcategory == "sub-1"
        assert restored.created_by == "user-1"
        assert restored.images == ["https://img.example.com/pixel.png"]
