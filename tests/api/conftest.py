"""Shared fixtures for API tests."""

from typing import Callable

import pytest
from fastapi.testclient import TestClient

from catalog_api.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def signup(client: TestClient) -> Callable[..., dict]:
    """Register a user through the API and return the response data."""

    def _signup(username: str, role: str | None = None, password: str = "secret1") -> dict:
        body = {"username": username, "email": f"{username}@example.com", "password": password}
        if role is not None:
            body["role"] = role
        response = client.post("/auth/signup", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _signup


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a token."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(signup) -> dict[str, str]:
    """Get authentication headers for an admin."""
    return bearer(signup("admin", "admin")["token"])


@pytest.fixture
def coordinator_headers(signup) -> dict[str, str]:
    """Get authentication headers for a coordinator."""
    return bearer(signup("coordinator", "coordinador")["token"])


@pytest.fixture
def auxiliary_headers(signup) -> dict[str, str]:
    """Get authentication headers for an auxiliary user."""
    return bearer(signup("auxiliary")["token"])


@pytest.fixture
def seeded(client: TestClient, admin_headers: dict[str, str]) -> dict[str, str]:
    """Create Electronics -> Phones -> Pixel and return their ids."""
    category = client.post(
        "/categories",
        json={"name": "Electronics", "description": "Gadgets"},
        headers=admin_headers,
    ).json()["data"]
    subcategory = client.post(
        "/subcategories",
        json={"name": "Phones", "description": "Mobile phones", "category": category["id"]},
        headers=admin_headers,
    ).json()["data"]
    product = client.post(
        "/products",
        json={
            "name": "Pixel",
            "description": "Google phone",
            "price": 499.0,
            "stock": 10,
            "category": category["id"],
            "subcategory": subcategory["id"],
        },
        headers=admin_headers,
    ).json()["data"]
    return {
        "category": category["id"],
        "subcategory": subcategory["id"],
        "product": product["id"],
    }
