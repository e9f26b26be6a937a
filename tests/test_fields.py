"""
Field area and saved field tests.
"""
import pytest


@pytest.mark.asyncio
async def test_compute_area(client, field_polygon):
    response = await client.post("/api/v1/fields/area", json={"polygon": field_polygon})

    assert response.status_code == 200
    data = response.json()
    assert data["area_ha"] == pytest.approx(1.0, abs=0.05)
    assert data["area_m2"] == pytest.approx(10_000, rel=0.05)
    assert data["centroid"]["lat"] == pytest.approx(45.40045)


@pytest.mark.asyncio
async def test_compute_area_accepts_coordinate_pairs(client, field_polygon):
    pairs = [[p["lat"], p["lng"]] for p in field_polygon]
    by_pairs = await client.post("/api/v1/fields/area", json={"polygon": pairs})
    by_objects = await client.post("/api/v1/fields/area", json={"polygon": field_polygon})

    assert by_pairs.status_code == 200
    assert by_pairs.json()["area_ha"] == by_objects.json()["area_ha"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "polygon",
    [
        [{"lat": 45.0, "lng": 10.0}, {"lat": 45.1, "lng": 10.0}],
        [{"lat": 45.0, "lng": 10.0}, {"lat": 45.1, "lng": 10.0}, {"lat": 45.0, "lng": 10.0}],
        [{"lat": 95.0, "lng": 10.0}, {"lat": 45.1, "lng": 10.0}, {"lat": 45.1, "lng": 10.1}],
        [{"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 0.001}, {"lat": 0.0, "lng": 0.002}],
    ],
)
async def test_compute_area_rejects_bad_polygons(client, polygon):
    response = await client.post("/api/v1/fields/area", json={"polygon": polygon})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_saved_field_lifecycle(client, buyer, field_polygon):
    created = await client.post(
        "/api/v1/fields",
        headers=buyer["headers"],
        json={"name": "Vigna Nord", "polygon": field_polygon, "notes": "Steep rows"},
    )
    assert created.status_code == 201
    field = created.json()
    assert field["organization_id"] == buyer["organization_id"]
    assert field["area_ha"] == pytest.approx(1.0, abs=0.05)
    assert "centroid" in field["location_json"]

    listed = await client.get("/api/v1/fields", headers=buyer["headers"])
    assert [f["id"] for f in listed.json()] == [field["id"]]

    fetched = await client.get(f"/api/v1/fields/{field['id']}", headers=buyer["headers"])
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Vigna Nord"

    deleted = await client.delete(f"/api/v1/fields/{field['id']}", headers=buyer["headers"])
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/fields/{field['id']}", headers=buyer["headers"])
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_saved_fields_are_private(client, buyer, operator, field_polygon):
    created = await client.post(
        "/api/v1/fields",
        headers=buyer["headers"],
        json={"name": "Uliveto", "polygon": field_polygon},
    )
    field_id = created.json()["id"]

    response = await client.get(f"/api/v1/fields/{field_id}", headers=operator["headers"])
    assert response.status_code == 404

    listed = await client.get("/api/v1/fields", headers=operator["headers"])
    assert listed.json() == []
