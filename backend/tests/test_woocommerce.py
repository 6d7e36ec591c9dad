import json

import httpx
import pytest

from geardesk.models.bundle import Bundle, BundleItem
from geardesk.models.enums import BundleStatus, EquipmentStatus
from geardesk.services.woocommerce import (
    WooCommerceClient,
    WooCommerceError,
    build_bundle_product,
    build_equipment_product,
    get_woo_client,
    rand_string,
    sync_equipment,
)

from factories import build_equipment, make_equipment


def _client(handler) -> WooCommerceClient:
    return WooCommerceClient(
        "https://shop.geardesk.test/", "ck_test", "cs_test", transport=httpx.MockTransport(handler)
    )


@pytest.mark.parametrize("cents, expected", [(1250000, "12500.00"), (99, "0.99"), (0, "0.00"), (None, "0.00")])
def test_rand_string(cents, expected):
    assert rand_string(cents) == expected


def test_equipment_payload():
    equipment = build_equipment(sku="CA-6789", description="Low shutter count")

    payload = build_equipment_product(equipment)

    assert payload["regular_price"] == "24000.00"
    assert payload["sku"] == "CA-6789"
    assert payload["in_stock"] is True
    assert payload["categories"] == [{"name": "CAMERA_BODY"}]
    assert payload["images"] == [{"src": "https://img.geardesk.test/r6-front.jpg"}]
    assert {"key": "_condition", "value": "EXCELLENT"} in payload["meta_data"]


def test_sold_equipment_is_out_of_stock():
    payload = build_equipment_product(build_equipment(status=EquipmentStatus.SOLD))
    assert payload["in_stock"] is False


def test_bundle_payload_combines_units():
    body = build_equipment(description="Low shutter count")
    lens = build_equipment(name="Canon RF 24-105mm f/4L", images=["https://img.geardesk.test/rf.jpg"])
    bundle = Bundle(title="R6 starter kit", description="Ready to shoot", selling_price_cents=3900000, status=BundleStatus.ACTIVE)
    bundle.items = [BundleItem(equipment=body), BundleItem(equipment=lens)]

    payload = build_bundle_product(bundle)

    assert payload["name"] == "R6 starter kit"
    assert payload["regular_price"] == "39000.00"
    assert "**Bundle includes:**" in payload["description"]
    assert "Canon EOS R6 (EXCELLENT): Low shutter count" in payload["description"]
    assert len(payload["images"]) == 2
    assert {"key": "_item_count", "value": "2"} in payload["meta_data"]


async def test_client_uses_basic_auth_and_v3_paths():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 42, **json.loads(request.content)})

    product = await _client(handler).update_price(42, 1999900)

    assert product["regular_price"] == "19999.00"
    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/wp-json/wc/v3/products/42"
    assert seen[0].headers["authorization"].startswith("Basic ")


async def test_client_raises_on_error_status():
    client = _client(lambda request: httpx.Response(401, json={"code": "woocommerce_rest_cannot_view"}))

    with pytest.raises(WooCommerceError) as exc_info:
        await client.list_products()

    assert exc_info.value.status_code == 401


async def test_client_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(WooCommerceError, match="unreachable"):
        await _client(handler).get_product(1)


async def test_missing_settings_raise(db):
    with pytest.raises(WooCommerceError, match="not configured"):
        await get_woo_client(db)


async def test_sync_creates_then_updates(db):
    equipment = await make_equipment(db)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        return httpx.Response(201, json={"id": 777})

    client = _client(handler)
    await sync_equipment(db, equipment, client)
    await sync_equipment(db, equipment, client)

    assert calls == [
        ("POST", "/wp-json/wc/v3/products"),
        ("PUT", "/wp-json/wc/v3/products/777"),
    ]
    assert equipment.woocommerce_id == 777
    assert equipment.synced_to_woo
    assert equipment.last_synced_at is not None
