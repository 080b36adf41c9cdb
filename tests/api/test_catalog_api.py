"""Tests for category, subcategory and maintenance endpoints."""

from fastapi.testclient import TestClient


class TestCategories:
    """Tests for /categories."""

    def test_create_category(self, client: TestClient, coordinator_headers) -> None:
        response = client.post(
            "/categories",
            json={"name": "Garden", "description": "Outdoor"},
            headers=coordinator_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["name"] == "Garden"
        assert data["data"]["active"] is True

    def test_auxiliary_cannot_create(self, client: TestClient, auxiliary_headers) -> None:
        response = client.post("/categories", json={"name": "Garden"}, headers=auxiliary_headers)
        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    def test_duplicate_name(self, client: TestClient, admin_headers) -> None:
        client.post("/categories", json={"name": "Garden"}, headers=admin_headers)
        response = client.post("/categories", json={"name": "Garden"}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_NAME"

    def test_get_missing(self, client: TestClient, auxiliary_headers) -> None:
        response = client.get("/categories/missing", headers=auxiliary_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_partial_update(self, client: TestClient, admin_headers, seeded) -> None:
        """Only the supplied field changes."""
        response = client.put(
            f"/categories/{seeded['category']}",
            json={"description": "Everything electric"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Electronics"
        assert data["description"] == "Everything electric"

    def test_soft_delete_hides_from_default_list(self, client: TestClient, coordinator_headers, seeded) -> None:
        response = client.delete(f"/categories/{seeded['category']}", headers=coordinator_headers)
        assert response.status_code == 200
        deletion = response.json()["data"]
        assert deletion["hard_delete"] is False
        assert deletion["subcategories_affected"] == 1
        assert deletion["products_affected"] == 1

        default = client.get("/categories", headers=coordinator_headers).json()
        everything = client.get("/categories?includeInactive=true", headers=coordinator_headers).json()
        assert default["count"] == 0
        assert everything["count"] == 1
        assert everything["data"][0]["active"] is False

    def test_coordinator_cannot_hard_delete(self, client: TestClient, coordinator_headers, seeded) -> None:
        response = client.delete(
            f"/categories/{seeded['category']}?hardDelete=true", headers=coordinator_headers
        )
        assert response.status_code == 403

    def test_hard_delete(self, client: TestClient, admin_headers, seeded) -> None:
        response = client.delete(f"/categories/{seeded['category']}?hardDelete=true", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["hard_delete"] is True

        for path in (
            f"/categories/{seeded['category']}",
            f"/subcategories/{seeded['subcategory']}",
            f"/products/{seeded['product']}",
        ):
            assert client.get(path, headers=admin_headers).status_code == 404

    def test_reactivate_does_not_cascade(self, client: TestClient, admin_headers, seeded) -> None:
        client.delete(f"/categories/{seeded['category']}", headers=admin_headers)

        response = client.post(f"/categories/{seeded['category']}/reactivate", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["active"] is True
        sub = client.get(f"/subcategories/{seeded['subcategory']}", headers=admin_headers).json()["data"]
        assert sub["active"] is False


class TestSubcategories:
    """Tests for /subcategories."""

    def test_create_requires_existing_category(self, client: TestClient, admin_headers) -> None:
        response = client.post(
            "/subcategories",
            json={"name": "Phones", "description": "Mobile", "category": "missing"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_get_populates_category(self, client: TestClient, auxiliary_headers, seeded) -> None:
        response = client.get(f"/subcategories/{seeded['subcategory']}", headers=auxiliary_headers)
        data = response.json()["data"]
        assert data["category_id"] == seeded["category"]
        assert data["category"]["name"] == "Electronics"

    def test_soft_delete_cascades_to_products(self, client: TestClient, admin_headers, seeded) -> None:
        response = client.delete(f"/subcategories/{seeded['subcategory']}", headers=admin_headers)
        assert response.json()["data"]["products_affected"] == 1

        product = client.get(f"/products/{seeded['product']}", headers=admin_headers).json()["data"]
        assert product["active"] is False


class TestMaintenance:
    """Tests for /maintenance/reconcile."""

    def test_admin_only(self, client: TestClient, coordinator_headers) -> None:
        response = client.post("/maintenance/reconcile", headers=coordinator_headers)
        assert response.status_code == 403

    def test_clean_catalog(self, client: TestClient, admin_headers, seeded) -> None:
        response = client.post("/maintenance/reconcile", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["subcategories_deleted"] == 0
        assert data["products_deleted"] == 0
