import pytest

from factories import make_equipment
from geardesk.services import sku as sku_service
from geardesk.services.sku import generate_sku, validate_sku


async def test_serial_tail_is_used_when_free(db):
    assert await generate_sku(db, "Canon", "ab123456xyz9") == "CA-XYZ9"


async def test_short_serial_gets_random_suffix(db, monkeypatch):
    monkeypatch.setattr(sku_service, "_random_suffix", lambda: "4242")
    assert await generate_sku(db, "Nikon", "12") == "NI-4242"


async def test_collision_retries_with_random_suffix(db, monkeypatch):
    await make_equipment(db, sku="SO-6789")
    monkeypatch.setattr(sku_service, "_random_suffix", lambda: "1111")
    assert await generate_sku(db, "Sony", "00006789") == "SO-1111"


async def test_exhausted_retries_fall_back_to_timestamp(db, monkeypatch):
    await make_equipment(db, sku="GE-5555")
    monkeypatch.setattr(sku_service, "_random_suffix", lambda: "5555")
    monkeypatch.setattr(sku_service.time, "time", lambda: 1700000123.0)

    assert await generate_sku(db, "Unknown Brand", None) == "GE-3000"


async def test_validate_sku_allows_own_equipment(db):
    equipment = await make_equipment(db, sku="CA-0001")

    assert await validate_sku(db, "CA-0002")
    assert not await validate_sku(db, "CA-0001")
    assert await validate_sku(db, "CA-0001", exclude_equipment_id=equipment.id)


@pytest.mark.parametrize("brand", ["", None])
async def test_missing_brand_uses_generic_prefix(db, brand, monkeypatch):
    monkeypatch.setattr(sku_service, "_random_suffix", lambda: "7777")
    assert await generate_sku(db, brand) == "GE-7777"
