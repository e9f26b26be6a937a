"""
Rate card CRUD, quote estimate and operator matching tests.
"""
import pytest


async def _create_card(client, org, payload):
    response = await client.post("/api/v1/rate-cards", headers=org["headers"], json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# === Rate cards ===

@pytest.mark.asyncio
async def test_rate_card_crud(client, operator, spray_rate_card):
    card = await _create_card(client, operator, spray_rate_card)
    assert card["organization_id"] == operator["organization_id"]
    assert card["currency"] == "EUR"
    assert card["custom_surcharges"][0]["amount_cents"] == 1000

    listed = await client.get("/api/v1/rate-cards", headers=operator["headers"])
    assert [c["id"] for c in listed.json()] == [card["id"]]

    patched = await client.patch(
        f"/api/v1/rate-cards/{card['id']}",
        headers=operator["headers"],
        json={"base_rate_per_ha_cents": 9000, "is_active": False},
    )
    assert patched.status_code == 200
    assert patched.json()["base_rate_per_ha_cents"] == 9000
    assert patched.json()["min_charge_cents"] == 15000

    active = await client.get("/api/v1/rate-cards?active_only=true", headers=operator["headers"])
    assert active.json() == []

    deleted = await client.delete(f"/api/v1/rate-cards/{card['id']}", headers=operator["headers"])
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/rate-cards/{card['id']}", headers=operator["headers"])
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_one_rate_card_per_service_type(client, operator, spray_rate_card):
    await _create_card(client, operator, spray_rate_card)
    response = await client.post("/api/v1/rate-cards", headers=operator["headers"], json=spray_rate_card)
    assert response.status_code == 409

    await _create_card(client, operator, {"service_type": "MAPPING", "base_rate_per_ha_cents": 2000})


@pytest.mark.asyncio
async def test_rate_card_rejects_non_positive_multiplier(client, operator, spray_rate_card):
    spray_rate_card["risk_multipliers"] = {"high": 0}
    response = await client.post("/api/v1/rate-cards", headers=operator["headers"], json=spray_rate_card)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_rate_card_update_rejects_null_for_required_fields(client, operator, spray_rate_card):
    card = await _create_card(client, operator, spray_rate_card)
    url = f"/api/v1/rate-cards/{card['id']}"

    response = await client.patch(url, headers=operator["headers"], json={"base_rate_per_ha_cents": None})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    cleared = await client.patch(url, headers=operator["headers"], json={"hourly_operator_rate_cents": None})
    assert cleared.status_code == 200
    assert cleared.json()["base_rate_per_ha_cents"] == 8000


@pytest.mark.asyncio
async def test_rate_cards_of_other_organizations_are_hidden(client, operator, vendor, spray_rate_card):
    card = await _create_card(client, operator, spray_rate_card)
    response = await client.get(f"/api/v1/rate-cards/{card['id']}", headers=vendor["headers"])
    assert response.status_code == 404


# === Quote estimate ===

@pytest.mark.asyncio
async def test_estimate_with_explicit_area_and_distance(client, operator, spray_rate_card):
    await _create_card(client, operator, spray_rate_card)

    response = await client.post(
        "/api/v1/quotes/estimate",
        json={
            "seller_org_id": operator["organization_id"],
            "service_type": "SPRAY",
            "area_ha": 10,
            "distance_km": 20,
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_estimated_cents"] == 85000
    assert data["total_display"] == "850,00"
    assert data["currency"] == "EUR"
    assert data["breakdown"]["base_cents"] == 80000
    assert data["breakdown"]["travel_cents"] == 4000

    snapshot = data["pricing_snapshot"]
    assert snapshot["version"] == "pricing_v2_rate_cards"
    assert snapshot["seller_org_id"] == operator["organization_id"]
    assert snapshot["inputs"]["area_ha"] == 10
    assert snapshot["breakdown"] == data["breakdown"]


@pytest.mark.asyncio
async def test_estimate_from_polygon_uses_seller_base(client, operator, spray_rate_card, field_polygon):
    await _create_card(client, operator, spray_rate_card)

    response = await client.post(
        "/api/v1/quotes/estimate",
        json={
            "seller_org_id": operator["organization_id"],
            "service_type": "SPRAY",
            "field_polygon": field_polygon,
        },
    )
    assert response.status_code == 200
    breakdown = response.json()["breakdown"]
    assert breakdown["area_ha"] == pytest.approx(1.0, abs=0.05)
    assert 0 < breakdown["distance_km"] < 20
    assert breakdown["travel_cents"] == 2000 + round(breakdown["distance_km"] * 100)
    assert breakdown["min_charge_applied"] is True
    assert response.json()["total_estimated_cents"] == 15000


@pytest.mark.asyncio
async def test_estimate_without_location_uses_default_distance(client, vendor):
    await _create_card(
        client,
        vendor,
        {"service_type": "SPREAD", "base_rate_per_ha_cents": 5000, "travel_rate_per_km_cents": 50},
    )

    response = await client.post(
        "/api/v1/quotes/estimate",
        json={"seller_org_id": vendor["organization_id"], "service_type": "SPREAD", "area_ha": 2},
    )
    breakdown = response.json()["breakdown"]
    assert breakdown["distance_km"] == 20
    assert response.json()["total_estimated_cents"] == 10000 + 1000


@pytest.mark.asyncio
async def test_estimate_applies_seasonal_and_risk(client, operator, spray_rate_card):
    await _create_card(client, operator, spray_rate_card)

    response = await client.post(
        "/api/v1/quotes/estimate",
        json={
            "seller_org_id": operator["organization_id"],
            "service_type": "SPRAY",
            "area_ha": 10,
            "distance_km": 12.5,
            "month": 7,
            "risk_key": "high",
            "terrain": "HILLY",
            "has_obstacles": True,
        },
    )
    assert response.json()["total_estimated_cents"] == 238750


@pytest.mark.asyncio
async def test_estimate_without_active_card(client, operator, spray_rate_card):
    card = await _create_card(client, operator, spray_rate_card)
    await client.patch(
        f"/api/v1/rate-cards/{card['id']}",
        headers=operator["headers"],
        json={"is_active": False},
    )

    response = await client.post(
        "/api/v1/quotes/estimate",
        json={"seller_org_id": operator["organization_id"], "service_type": "SPRAY", "area_ha": 1},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_estimate_requires_area_or_polygon(client, operator):
    response = await client.post(
        "/api/v1/quotes/estimate",
        json={"seller_org_id": operator["organization_id"], "service_type": "SPRAY"},
    )
    assert response.status_code == 400


# === Operator matching ===

@pytest.mark.asyncio
async def test_match_operators_ranks_by_total(client, buyer, operator, vendor, spray_rate_card):
    await _create_card(client, operator, spray_rate_card)
    await _create_card(client, vendor, {"service_type": "SPRAY", "base_rate_per_ha_cents": 7000})
    # Buyers are not service providers
    await _create_card(client, buyer, {"service_type": "SPRAY", "base_rate_per_ha_cents": 1000})

    response = await client.post(
        "/api/v1/quotes/operators",
        json={"service_type": "SPRAY", "area_ha": 10, "location": {"lat": 45.45, "lng": 10.95}},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [o["organization_id"] for o in data["operators"]] == [
        vendor["organization_id"],
        operator["organization_id"],
    ]
    assert data["operators"][0]["total_cents"] == 70000
    assert data["operators"][0]["distance_km"] == 20
    assert data["operators"][1]["total_cents"] == 83000
    assert data["operators"][1]["distance_km"] == 0


@pytest.mark.asyncio
async def test_match_operators_respects_limit_and_service_type(client, operator, vendor, spray_rate_card):
    await _create_card(client, operator, spray_rate_card)
    await _create_card(client, vendor, {"service_type": "SPRAY", "base_rate_per_ha_cents": 7000})

    limited = await client.post(
        "/api/v1/quotes/operators",
        json={"service_type": "SPRAY", "area_ha": 10, "limit": 1},
    )
    assert len(limited.json()["operators"]) == 1
    assert limited.json()["total"] == 2

    mapping = await client.post(
        "/api/v1/quotes/operators",
        json={"service_type": "MAPPING", "area_ha": 10},
    )
    assert mapping.json()["operators"] == []
