"""
API Endpoint Tests - Basic endpoint availability and authentication tests
"""
import pytest


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Test root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "AgriDrone Backend"


@pytest.mark.asyncio
async def test_openapi_schema(client):
    """Test OpenAPI schema is available."""
    response = await client.get("/api/v1/openapi.json")
    assert response.status_code == 200
    data = response.json()
    assert "/api/v1/jobs" in data["paths"]
    assert "/api/v1/quotes/estimate" in data["paths"]


# === Endpoints that require authentication ===

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/api/v1/auth/me"),
        ("GET", "/api/v1/fields"),
        ("POST", "/api/v1/fields"),
        ("GET", "/api/v1/rate-cards"),
        ("POST", "/api/v1/rate-cards"),
        ("POST", "/api/v1/jobs"),
        ("GET", "/api/v1/jobs/open"),
        ("GET", "/api/v1/offers/mine"),
        ("GET", "/api/v1/ecommerce/cart"),
        ("POST", "/api/v1/ecommerce/checkout"),
        ("GET", "/api/v1/orders"),
        ("POST", "/api/v1/catalog/products"),
    ],
)
async def test_requires_auth(client, method, path):
    response = await client.request(method, path, json={})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    response = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


# === Public endpoints ===

@pytest.mark.asyncio
async def test_area_is_public(client, field_polygon):
    response = await client.post("/api/v1/fields/area", json={"polygon": field_polygon})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_catalog_is_public(client):
    response = await client.get("/api/v1/catalog/products")
    assert response.status_code == 200
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_validation_errors_are_400(client):
    response = await client.post("/api/v1/auth/login", json={"email": "not-an-email"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["validation_errors"]
