"""Shared fixtures for all test suites."""

import pytest

from catalog_api.domain.entities import Actor, Role
from catalog_api.infrastructure.store import DocumentStore, get_document_store, reset_document_store


@pytest.fixture(autouse=True)
def reset_store():
    """Reset the document store before each test."""
    reset_document_store()
    yield
    reset_document_store()


@pytest.fixture
def store() -> DocumentStore:
    """The global document store, freshly reset."""
    return get_document_store()


@pytest.fixture
def admin() -> Actor:
    """Admin actor."""
    return Actor(id="user-admin", role=Role.ADMIN, email="admin@example.com")


@pytest.fixture
def coordinator() -> Actor:
    """Coordinator actor."""
    return Actor(id="user-coord", role=Role.COORDINADOR, email="coord@example.com")


@pytest.fixture
def auxiliary() -> Actor:
    """Auxiliary actor."""
    return Actor(id="user-aux", role=Role.AUXILIAR, email="aux@example.com")
