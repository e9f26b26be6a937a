import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest.mark.asyncio
async def test_health_endpoint():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "agridrone-backend"}


@pytest.mark.asyncio
async def test_request_id_is_echoed():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_metrics_endpoint():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        await client.get("/health")
        response = await client.get("/metrics")
    assert response.status_code == 200
    assert "agridrone_http_requests_total" in response.text


@pytest.mark.asyncio
async def test_unmatched_paths_share_one_metrics_label():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        missing = await client.get("/no-such-page-4711")
        response = await client.get("/metrics")
    assert missing.status_code == 404
    assert 'endpoint="unmatched"' in response.text
    assert "no-such-page-4711" not in response.text
