"""
Catalog, cart, checkout and order status tests.
"""
import pytest


async def _product(client, vendor, sku, price, **extra):
    response = await client.post(
        "/api/v1/catalog/products",
        headers=vendor["headers"],
        json={"sku_code": sku, "name": f"Product {sku}", "price_cents": price, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _add(client, org, product_id, quantity=1):
    return await client.post(
        "/api/v1/ecommerce/cart/items",
        headers=org["headers"],
        json={"product_id": product_id, "quantity": quantity},
    )


# === Catalog ===

@pytest.mark.asyncio
async def test_create_product_parses_euro_price(client, vendor):
    product = await _product(client, vendor, "DJI-T40", "4.869,57", brand="DJI", category="drones")
    assert product["price_cents"] == 486957
    assert product["organization_id"] == vendor["organization_id"]

    fetched = await client.get(f"/api/v1/catalog/products/{product['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["sku_code"] == "DJI-T40"


@pytest.mark.asyncio
async def test_only_vendors_list_products(client, buyer, operator):
    for org in (buyer, operator):
        response = await client.post(
            "/api/v1/catalog/products",
            headers=org["headers"],
            json={"sku_code": "X-1", "name": "X", "price_cents": 100},
        )
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_sku(client, vendor):
    await _product(client, vendor, "NOZZLE-01", 1500)
    response = await client.post(
        "/api/v1/catalog/products",
        headers=vendor["headers"],
        json={"sku_code": "NOZZLE-01", "name": "Again", "price_cents": 1500},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_catalog_filters(client, vendor, register_org):
    other = await register_org("other-shop@example.com", "VENDOR")
    await _product(client, vendor, "DJI-T40", 2_000_000, brand="DJI", category="drones")
    await _product(client, vendor, "BATT-40", 150_000, brand="DJI", category="batteries")
    await _product(client, other, "XAG-P100", 1_800_000, brand="XAG", category="drones")
    hidden = await _product(client, vendor, "OLD-1", 100, is_active=False)

    everything = await client.get("/api/v1/catalog/products")
    drones = await client.get("/api/v1/catalog/products?category=drones")
    dji = await client.get("/api/v1/catalog/products?q=dji")
    by_vendor = await client.get(f"/api/v1/catalog/products?vendor_id={other['organization_id']}")
    inactive = await client.get(f"/api/v1/catalog/products/{hidden['id']}")

    assert everything.json()["total"] == 3
    assert drones.json()["total"] == 2
    assert dji.json()["total"] == 2
    assert [p["sku_code"] for p in by_vendor.json()["products"]] == ["XAG-P100"]
    assert inactive.status_code == 404


# === Cart ===

@pytest.mark.asyncio
async def test_empty_cart_is_created_on_first_access(client, buyer):
    response = await client.get("/api/v1/ecommerce/cart", headers=buyer["headers"])
    assert response.status_code == 200
    cart = response.json()
    assert cart["organization_id"] == buyer["organization_id"]
    assert cart["items"] == []
    assert cart["subtotal_cents"] == 0


@pytest.mark.asyncio
async def test_adding_same_product_merges_quantity(client, buyer, vendor):
    product = await _product(client, vendor, "NOZZLE-01", 1500)

    first = await _add(client, buyer, product["id"], 2)
    assert first.status_code == 201
    second = await _add(client, buyer, product["id"], 1)

    cart = second.json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["items"][0]["unit_price_snapshot_cents"] == 1500
    assert cart["items"][0]["line_total_cents"] == 4500
    assert cart["items"][0]["product"]["sku_code"] == "NOZZLE-01"
    assert cart["item_count"] == 3
    assert cart["subtotal_cents"] == 4500


@pytest.mark.asyncio
async def test_cart_rejects_own_and_missing_products(client, vendor):
    product = await _product(client, vendor, "NOZZLE-01", 1500)

    own = await _add(client, vendor, product["id"])
    missing = await _add(client, vendor, "00000000-0000-0000-0000-000000000000")
    zero = await _add(client, vendor, product["id"], 0)

    assert own.status_code == 400
    assert missing.status_code == 404
    assert zero.status_code == 400


@pytest.mark.asyncio
async def test_update_and_remove_cart_items(client, buyer, vendor):
    nozzle = await _product(client, vendor, "NOZZLE-01", 1500)
    pump = await _product(client, vendor, "PUMP-02", 9900)
    await _add(client, buyer, nozzle["id"])
    cart = (await _add(client, buyer, pump["id"])).json()
    nozzle_item, pump_item = cart["items"]

    updated = await client.put(
        f"/api/v1/ecommerce/cart/items/{nozzle_item['id']}",
        headers=buyer["headers"],
        json={"quantity": 4},
    )
    assert updated.json()["subtotal_cents"] == 4 * 1500 + 9900

    zeroed = await client.put(
        f"/api/v1/ecommerce/cart/items/{nozzle_item['id']}",
        headers=buyer["headers"],
        json={"quantity": 0},
    )
    assert [i["id"] for i in zeroed.json()["items"]] == [pump_item["id"]]

    removed = await client.delete(
        f"/api/v1/ecommerce/cart/items/{pump_item['id']}", headers=buyer["headers"]
    )
    assert removed.json()["items"] == []

    gone = await client.delete(
        f"/api/v1/ecommerce/cart/items/{pump_item['id']}", headers=buyer["headers"]
    )
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_cart_of_another_organization(client, buyer, vendor):
    response = await client.get(
        f"/api/v1/ecommerce/cart?orgId={vendor['organization_id']}",
        headers=buyer["headers"],
    )
    assert response.status_code == 403

    own = await client.get(
        f"/api/v1/ecommerce/cart?orgId={buyer['organization_id']}",
        headers=buyer["headers"],
    )
    assert own.status_code == 200


# === Checkout and orders ===

@pytest.fixture
async def two_vendor_checkout(client, buyer, vendor, register_org):
    other = await register_org("other-shop@example.com", "VENDOR")
    drone = await _product(client, vendor, "DJI-T40", 2_000_000)
    battery = await _product(client, vendor, "BATT-40", 150_000)
    xag = await _product(client, other, "XAG-P100", 1_800_000)
    await _add(client, buyer, drone["id"])
    await _add(client, buyer, battery["id"], 2)
    await _add(client, buyer, xag["id"])

    response = await client.post(
        "/api/v1/ecommerce/checkout",
        headers=buyer["headers"],
        json={"shipping_address": {"city": "Verona"}, "notes": "Call before delivery"},
    )
    assert response.status_code == 201, response.text
    return {"other": other, "checkout": response.json()}


@pytest.mark.asyncio
async def test_checkout_splits_orders_by_seller(client, buyer, vendor, two_vendor_checkout):
    checkout = two_vendor_checkout["checkout"]
    other = two_vendor_checkout["other"]

    assert len(checkout["orders"]) == 2
    assert checkout["total_cents"] == 2_000_000 + 2 * 150_000 + 1_800_000

    by_seller = {o["seller_org_id"]: o for o in checkout["orders"]}
    mine = by_seller[vendor["organization_id"]]
    assert mine["status"] == "PENDING"
    assert mine["buyer_org_id"] == buyer["organization_id"]
    assert mine["total_cents"] == 2_300_000
    assert sorted(line["sku_code"] for line in mine["lines"]) == ["BATT-40", "DJI-T40"]
    assert mine["shipping_address"] == {"city": "Verona"}
    assert by_seller[other["organization_id"]]["total_cents"] == 1_800_000
    assert mine["order_number"] != by_seller[other["organization_id"]]["order_number"]

    cart = await client.get("/api/v1/ecommerce/cart", headers=buyer["headers"])
    assert cart.json()["items"] == []


@pytest.mark.asyncio
async def test_checkout_empty_cart(client, buyer):
    response = await client.post("/api/v1/ecommerce/checkout", headers=buyer["headers"])
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_order_lists(client, buyer, vendor, two_vendor_checkout):
    placed = await client.get("/api/v1/orders", headers=buyer["headers"])
    received = await client.get("/api/v1/orders?role=seller", headers=vendor["headers"])
    vendor_purchases = await client.get("/api/v1/orders?role=buyer", headers=vendor["headers"])
    pending = await client.get("/api/v1/orders?status=PENDING", headers=buyer["headers"])
    paid = await client.get("/api/v1/orders?status=PAID", headers=buyer["headers"])

    assert len(placed.json()) == 2
    assert len(received.json()) == 1
    assert vendor_purchases.json() == []
    assert len(pending.json()) == 2
    assert paid.json() == []


@pytest.mark.asyncio
async def test_order_status_flow(client, buyer, vendor, two_vendor_checkout):
    order = next(
        o for o in two_vendor_checkout["checkout"]["orders"]
        if o["seller_org_id"] == vendor["organization_id"]
    )
    url = f"/api/v1/orders/{order['id']}/status"

    buyer_pays = await client.patch(url, headers=buyer["headers"], json={"status": "PAID"})
    assert buyer_pays.status_code == 403

    paid = await client.patch(url, headers=vendor["headers"], json={"status": "PAID"})
    assert paid.json()["status"] == "PAID"

    skipped = await client.patch(url, headers=vendor["headers"], json={"status": "FULFILLED"})
    assert skipped.status_code == 400
    assert skipped.json()["error"]["code"] == "INVALID_STATE"

    buyer_cancel = await client.patch(url, headers=buyer["headers"], json={"status": "CANCELLED"})
    assert buyer_cancel.status_code == 403

    for next_status in ("SHIPPED", "FULFILLED"):
        response = await client.patch(url, headers=vendor["headers"], json={"status": next_status})
        assert response.json()["status"] == next_status

    final = await client.patch(url, headers=vendor["headers"], json={"status": "CANCELLED"})
    assert final.status_code == 400


@pytest.mark.asyncio
async def test_buyer_cancels_pending_order(client, buyer, two_vendor_checkout):
    order = two_vendor_checkout["checkout"]["orders"][0]

    response = await client.patch(
        f"/api/v1/orders/{order['id']}/status",
        headers=buyer["headers"],
        json={"status": "CANCELLED"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_orders_of_other_organizations_are_hidden(client, two_vendor_checkout, register_org):
    stranger = await register_org("stranger@example.com")
    order = two_vendor_checkout["checkout"]["orders"][0]

    response = await client.get(f"/api/v1/orders/{order['id']}", headers=stranger["headers"])
    assert response.status_code == 404


# === Order messages ===

@pytest.mark.asyncio
async def test_order_messages(client, buyer, vendor, two_vendor_checkout, register_org):
    order = next(
        o for o in two_vendor_checkout["checkout"]["orders"]
        if o["seller_org_id"] == vendor["organization_id"]
    )
    url = f"/api/v1/orders/{order['id']}/messages"

    first = await client.post(url, headers=buyer["headers"], json={"body": "When will it ship?"})
    assert first.status_code == 201
    assert first.json()["sender_org_id"] == buyer["organization_id"]
    assert first.json()["is_read"] is False
    await client.post(url, headers=vendor["headers"], json={"body": "Tomorrow morning"})

    thread = await client.get(url, headers=vendor["headers"])
    assert [m["body"] for m in thread.json()] == ["When will it ship?", "Tomorrow morning"]

    marked = await client.put(f"{url}/read", headers=vendor["headers"])
    assert marked.json() == {"marked_read": 1}
    thread = await client.get(url, headers=buyer["headers"])
    assert [m["is_read"] for m in thread.json()] == [True, False]

    empty = await client.post(url, headers=buyer["headers"], json={"body": ""})
    assert empty.status_code == 400

    other_seller = await client.get(url, headers=two_vendor_checkout["other"]["headers"])
    stranger = await register_org("stranger@example.com")
    stranger_post = await client.post(url, headers=stranger["headers"], json={"body": "Hi"})
    stranger_read = await client.put(f"{url}/read", headers=stranger["headers"])
    assert other_seller.status_code == 404
    assert stranger_post.status_code == 404
    assert stranger_read.status_code == 404


# === Wishlist ===

@pytest.mark.asyncio
async def test_wishlist(client, buyer, vendor, operator):
    drone = await _product(client, vendor, "DJI-T40", 2_000_000)
    url = "/api/v1/ecommerce/wishlist"

    added = await client.post(url, headers=buyer["headers"], json={"product_id": drone["id"], "note": "Next season"})
    assert added.status_code == 201
    assert added.json()["product"]["sku_code"] == "DJI-T40"

    duplicate = await client.post(url, headers=buyer["headers"], json={"product_id": drone["id"]})
    assert duplicate.status_code == 409

    listed = await client.get(url, headers=buyer["headers"])
    assert [i["note"] for i in listed.json()] == ["Next season"]

    others = await client.get(url, headers=operator["headers"])
    assert others.json() == []
    foreign_delete = await client.delete(f"{url}/{added.json()['id']}", headers=operator["headers"])
    assert foreign_delete.status_code == 404

    removed = await client.delete(f"{url}/{added.json()['id']}", headers=buyer["headers"])
    assert removed.status_code == 204
    assert (await client.get(url, headers=buyer["headers"])).json() == []


@pytest.mark.asyncio
async def test_wishlist_rejects_missing_product(client, buyer):
    response = await client.post(
        "/api/v1/ecommerce/wishlist",
        headers=buyer["headers"],
        json={"product_id": "00000000-0000-0000-0000-000000000000"},
    )
    assert response.status_code == 404


# === Addresses ===

def _address(**overrides):
    return {
        "type": "SHIPPING",
        "name": "Mario Rossi",
        "address_line": "Via Roma 1",
        "city": "Verona",
        "province": "VR",
        "postal_code": "37100",
        **overrides,
    }


@pytest.mark.asyncio
async def test_addresses_keep_one_default_per_type(client, buyer):
    url = "/api/v1/ecommerce/addresses"
    home = await client.post(url, headers=buyer["headers"], json=_address(is_default=True))
    assert home.status_code == 201
    assert home.json()["country"] == "IT"

    farm = await client.post(
        url, headers=buyer["headers"], json=_address(name="Cascina", is_default=True)
    )
    billing = await client.post(
        url, headers=buyer["headers"], json=_address(type="BILLING", is_default=True)
    )
    assert billing.status_code == 201

    shipping = await client.get(f"{url}?type=SHIPPING", headers=buyer["headers"])
    assert [(a["name"], a["is_default"]) for a in shipping.json()] == [
        ("Cascina", True),
        ("Mario Rossi", False),
    ]

    restored = await client.patch(
        f"{url}/{home.json()['id']}", headers=buyer["headers"], json={"is_default": True}
    )
    assert restored.json()["is_default"] is True
    shipping = await client.get(f"{url}?type=SHIPPING", headers=buyer["headers"])
    assert [a["name"] for a in shipping.json() if a["is_default"]] == ["Mario Rossi"]

    everything = await client.get(url, headers=buyer["headers"])
    assert len(everything.json()) == 3
    assert farm.json()["id"] in {a["id"] for a in everything.json()}


@pytest.mark.asyncio
async def test_address_update_and_delete(client, buyer, vendor):
    url = "/api/v1/ecommerce/addresses"
    address = (await client.post(url, headers=buyer["headers"], json=_address(phone="+39 045 1"))).json()

    null_city = await client.patch(f"{url}/{address['id']}", headers=buyer["headers"], json={"city": None})
    assert null_city.status_code == 400

    cleared = await client.patch(
        f"{url}/{address['id']}", headers=buyer["headers"], json={"phone": None, "city": "Bardolino"}
    )
    assert cleared.status_code == 200
    assert cleared.json()["phone"] is None
    assert cleared.json()["city"] == "Bardolino"

    foreign = await client.patch(f"{url}/{address['id']}", headers=vendor["headers"], json={"city": "X"})
    assert foreign.status_code == 404

    deleted = await client.delete(f"{url}/{address['id']}", headers=buyer["headers"])
    assert deleted.status_code == 204
    assert (await client.get(url, headers=buyer["headers"])).json() == []


@pytest.mark.asyncio
async def test_checkout_with_saved_address(client, buyer, vendor):
    drone = await _product(client, vendor, "DJI-T40", 2_000_000)
    await _add(client, buyer, drone["id"])
    billing = (
        await client.post("/api/v1/ecommerce/addresses", headers=buyer["headers"], json=_address(type="BILLING"))
    ).json()
    shipping = (
        await client.post("/api/v1/ecommerce/addresses", headers=buyer["headers"], json=_address())
    ).json()

    wrong_type = await client.post(
        "/api/v1/ecommerce/checkout",
        headers=buyer["headers"],
        json={"shipping_address_id": billing["id"]},
    )
    assert wrong_type.status_code == 400

    response = await client.post(
        "/api/v1/ecommerce/checkout",
        headers=buyer["headers"],
        json={"shipping_address_id": shipping["id"], "shipping_address": {"city": "ignored"}},
    )
    assert response.status_code == 201
    snapshot = response.json()["orders"][0]["shipping_address"]
    assert snapshot["city"] == "Verona"
    assert snapshot["address_line"] == "Via Roma 1"
