"""
Registration, login, /me and organization profile tests.
"""
import pytest


@pytest.mark.asyncio
async def test_register_returns_token_for_new_organization(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "Anna@Example.com",
            "password": "secret-password",
            "organization_name": "Azienda Agricola Bianchi",
            "org_type": "BUYER",
            "country": "it",
        },
    )
    assert response.status_code == 201
    token = response.json()
    assert token["token_type"] == "bearer"
    assert token["organization_id"]

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {token['access_token']}"},
    )
    assert me.status_code == 200
    data = me.json()
    assert data["email"] == "anna@example.com"
    assert data["active_organization_id"] == token["organization_id"]
    assert len(data["memberships"]) == 1
    membership = data["memberships"][0]
    assert membership["role"] == "ADMIN"
    assert membership["is_default"] is True
    assert membership["organization"]["slug"] == "azienda-agricola-bianchi"
    assert membership["organization"]["country"] == "IT"


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client, register_org):
    await register_org("dup@example.com")
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "email": "dup@example.com",
            "password": "secret-password",
            "organization_name": "Another farm",
        },
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_register_short_password_is_rejected(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "x@example.com", "password": "short", "organization_name": "Farm"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_same_organization_name_gets_unique_slug(client, register_org):
    first = await register_org("one@example.com", organization_name="Green Acres")
    second = await register_org("two@example.com", organization_name="Green Acres")

    a = await client.get(f"/api/v1/organizations/{first['organization_id']}", headers=first["headers"])
    b = await client.get(f"/api/v1/organizations/{second['organization_id']}", headers=second["headers"])

    assert a.json()["slug"] == "green-acres"
    assert b.json()["slug"].startswith("green-acres-")


@pytest.mark.asyncio
async def test_login(client, register_org):
    org = await register_org("login@example.com")

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "LOGIN@example.com", "password": "secret-password"},
    )
    assert response.status_code == 200
    assert response.json()["organization_id"] == org["organization_id"]


@pytest.mark.asyncio
async def test_login_wrong_password(client, register_org):
    await register_org("login@example.com")

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "login@example.com", "password": "wrong-password"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@example.com", "password": "whatever-password"},
    )
    assert response.status_code == 401


# === Organizations ===

@pytest.mark.asyncio
async def test_update_organization_base_location(client, operator):
    response = await client.patch(
        f"/api/v1/organizations/{operator['organization_id']}",
        headers=operator["headers"],
        json={"phone": "+39 045 000000", "base_location": {"lat": 45.1, "lng": 11.2}},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "+39 045 000000"
    assert data["base_location_lat"] == 45.1
    assert data["base_location_lng"] == 11.2
    assert data["org_type"] == "OPERATOR"


@pytest.mark.asyncio
async def test_update_organization_rejects_null_name(client, operator):
    url = f"/api/v1/organizations/{operator['organization_id']}"
    response = await client.patch(url, headers=operator["headers"], json={"legal_name": None})
    assert response.status_code == 400

    cleared = await client.patch(url, headers=operator["headers"], json={"phone": None})
    assert cleared.status_code == 200
    assert cleared.json()["legal_name"] == "SkySpray"


@pytest.mark.asyncio
async def test_other_organization_is_forbidden(client, buyer, operator):
    get = await client.get(
        f"/api/v1/organizations/{operator['organization_id']}",
        headers=buyer["headers"],
    )
    patch = await client.patch(
        f"/api/v1/organizations/{operator['organization_id']}",
        headers=buyer["headers"],
        json={"legal_name": "Hijacked"},
    )
    assert get.status_code == 403
    assert patch.status_code == 403


@pytest.mark.asyncio
async def test_organization_header_must_be_a_membership(client, buyer, operator):
    response = await client.get(
        "/api/v1/auth/me",
        headers={**buyer["headers"], "X-Organization-Id": operator["organization_id"]},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_malformed_organization_header(client, buyer):
    response = await client.get(
        "/api/v1/auth/me",
        headers={**buyer["headers"], "X-Organization-Id": "not-a-uuid"},
    )
    assert response.status_code == 400
