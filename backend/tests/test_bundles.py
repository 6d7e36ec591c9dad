from geardesk.models.enums import IntakeStatus

from factories import make_equipment


async def _kit(db):
    body = await make_equipment(db, cost_price_cents=1800000)
    lens = await make_equipment(db, name="Canon RF 24-105mm f/4L", model="RF 24-105mm", cost_price_cents=900000)
    flash = await make_equipment(db, name="Canon Speedlite 430EX", model="430EX", cost_price_cents=150000)
    return body, lens, flash


def _create(ids, **overrides):
    return {
        "title": "R6 starter kit",
        "description": "Ready to shoot",
        "selling_price_cents": 3900000,
        "equipment_ids": [str(i) for i in ids],
        **overrides,
    }


async def test_create_bundle(client, db):
    body, lens, _ = await _kit(db)

    response = await client.post("/v1/bundles", json=_create([body.id, lens.id]))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "ACTIVE"
    assert data["cost_price_cents"] == 2700000
    assert len(data["items"]) == 2


async def test_create_bundle_validation(client, db):
    body, lens, _ = await _kit(db)
    pending = await make_equipment(db, intake_status=IntakeStatus.PENDING_INTAKE)

    one_item = await client.post("/v1/bundles", json=_create([body.id, body.id]))
    free = await client.post("/v1/bundles", json=_create([body.id, lens.id], selling_price_cents=0))
    not_ready = await client.post("/v1/bundles", json=_create([body.id, pending.id]))

    assert one_item.json()["detail"] == "A bundle needs at least 2 items"
    assert free.json()["detail"] == "Selling price must be greater than zero"
    assert not_ready.json()["detail"].startswith("Equipment has not completed intake")


async def test_equipment_cannot_be_in_two_active_bundles(client, db):
    body, lens, flash = await _kit(db)
    await client.post("/v1/bundles", json=_create([body.id, lens.id]))

    response = await client.post("/v1/bundles", json=_create([body.id, flash.id]))

    assert response.status_code == 400
    assert response.json()["detail"] == f"Equipment already in an active bundle: {body.sku}"


async def test_only_admins_create_bundles(client, db, staff_user, act_as):
    body, lens, _ = await _kit(db)
    act_as(staff_user)

    response = await client.post("/v1/bundles", json=_create([body.id, lens.id]))

    assert response.status_code == 403


async def test_dissolve_releases_units(client, db):
    body, lens, flash = await _kit(db)
    bundle = (await client.post("/v1/bundles", json=_create([body.id, lens.id]))).json()

    dissolved = await client.delete(f"/v1/bundles/{bundle['id']}")
    again = await client.delete(f"/v1/bundles/{bundle['id']}")
    reused = await client.post("/v1/bundles", json=_create([body.id, flash.id]))

    assert dissolved.status_code == 200
    assert again.status_code == 400
    assert again.json()["detail"] == "Bundle is already dissolved"
    assert reused.status_code == 201


async def test_removing_down_to_one_unit_dissolves(client, db):
    body, lens, flash = await _kit(db)
    bundle = (await client.post("/v1/bundles", json=_create([body.id, lens.id, flash.id]))).json()
    url = f"/v1/bundles/{bundle['id']}/remove-item"

    first = await client.post(url, json={"equipment_id": str(flash.id)})
    second = await client.post(url, json={"equipment_id": str(lens.id)})

    assert first.json()["status"] == "ACTIVE"
    assert first.json()["cost_price_cents"] == 2700000
    assert second.json()["status"] == "DISSOLVED"
    assert second.json()["items"] == []


async def test_sync_bundle_to_store(client, db, woo_requests):
    body, lens, _ = await _kit(db)
    bundle = (await client.post("/v1/bundles", json=_create([body.id, lens.id]))).json()

    response = await client.post(f"/v1/bundles/{bundle['id']}/sync")

    assert response.status_code == 200
    assert response.json()["woocommerce_id"] == 501
    assert response.json()["synced_to_woo"] is True
    method, path, payload = woo_requests[0]
    assert (method, path) == ("POST", "/wp-json/wc/v3/products")
    assert payload["regular_price"] == "39000.00"


async def test_sync_without_store_settings_is_bad_gateway(client, db):
    body, lens, _ = await _kit(db)
    bundle = (await client.post("/v1/bundles", json=_create([body.id, lens.id]))).json()

    response = await client.post(f"/v1/bundles/{bundle['id']}/sync")

    assert response.status_code == 502
    assert response.json()["detail"] == "WooCommerce settings not configured"


async def test_dissolved_bundle_cannot_sync(client, db, woo_requests):
    body, lens, _ = await _kit(db)
    bundle = (await client.post("/v1/bundles", json=_create([body.id, lens.id]))).json()
    await client.delete(f"/v1/bundles/{bundle['id']}")

    response = await client.post(f"/v1/bundles/{bundle['id']}/sync")

    assert response.status_code == 400
    assert woo_requests == []
