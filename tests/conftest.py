"""
Pytest Configuration and Fixtures.

Every test gets a fresh in-memory SQLite database; the app's get_db
dependency is overridden to use it.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["SENTRY_DSN"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.database import get_db
from src.core.models import Base
from src.main import app
from src.modules import auth, ecommerce, fields, marketplace, pricing  # noqa: F401


@pytest.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def register_org(client):
    """Register a user + organization; returns auth headers and the organization id."""

    async def _register(
        email: str,
        org_type: str = "BUYER",
        organization_name: str | None = None,
        base_location: dict | None = None,
    ) -> dict:
        payload = {
            "email": email,
            "password": "secret-password",
            "organization_name": organization_name or f"{email.split('@')[0]} farm",
            "org_type": org_type,
        }
        if base_location:
            payload["base_location"] = base_location

        response = await client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text
        token = response.json()
        return {
            "headers": {"Authorization": f"Bearer {token['access_token']}"},
            "organization_id": token["organization_id"],
        }

    return _register


@pytest.fixture
async def buyer(register_org):
    return await register_org("buyer@example.com", "BUYER", "Cantina Rossi")


@pytest.fixture
async def operator(register_org):
    return await register_org(
        "pilot@example.com",
        "OPERATOR",
        "SkySpray",
        base_location={"lat": 45.45, "lng": 10.95},
    )


@pytest.fixture
async def vendor(register_org):
    return await register_org("shop@example.com", "VENDOR", "DroneParts")


@pytest.fixture
def field_polygon() -> list[dict]:
    """Roughly one hectare near Verona."""
    return [
        {"lat": 45.4000, "lng": 10.9000},
        {"lat": 45.4000, "lng": 10.90128},
        {"lat": 45.4009, "lng": 10.90128},
        {"lat": 45.4009, "lng": 10.9000},
    ]


@pytest.fixture
def spray_rate_card() -> dict:
    return {
        "service_type": "SPRAY",
        "base_rate_per_ha_cents": 8000,
        "min_charge_cents": 15000,
        "travel_fixed_cents": 2000,
        "travel_rate_per_km_cents": 100,
        "hilly_terrain_multiplier": 1.2,
        "hilly_terrain_surcharge_cents": 500,
        "seasonal_multipliers": {"summer": 1.1, "7": 1.25},
        "risk_multipliers": {"high": 1.5},
        "custom_multipliers": {"obstacles": 1.3},
        "custom_surcharges": [{"id": "cleanup", "name": "Tank cleanup", "amount_cents": 1000}],
    }
