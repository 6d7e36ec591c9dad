from decimal import Decimal
from types import SimpleNamespace

import pytest

from geardesk.models.enums import VerifiedCondition
from geardesk.services.pricing import (
    AccessoryCheck,
    calculate_accessory_penalty,
    calculate_pricing,
    format_price,
    get_condition_multiplier,
    get_final_display_price,
    round_to_rand,
    to_cents,
)
from geardesk.services.sku import brand_prefix


@pytest.mark.parametrize(
    "condition, expected",
    [
        (VerifiedCondition.LIKE_NEW, Decimal("1.00")),
        (VerifiedCondition.EXCELLENT, Decimal("0.95")),
        (VerifiedCondition.VERY_GOOD, Decimal("0.90")),
        (VerifiedCondition.GOOD, Decimal("0.82")),
        (VerifiedCondition.WORN, Decimal("0.70")),
    ],
)
def test_condition_multipliers(condition, expected):
    assert get_condition_multiplier(condition) == expected


def test_condition_multiplier_accepts_plain_string():
    assert get_condition_multiplier("GOOD") == Decimal("0.82")


def test_offer_uses_top_of_band_scaled_by_condition():
    result = calculate_pricing(800000, 1000000, 900000, 1234550, VerifiedCondition.GOOD)

    assert result.computed_buy_price_cents == 820000
    assert result.computed_consign_price_cents == 1012300
    assert result.final_buy_price_cents == 820000
    assert result.accessory_penalty_cents == 0


def test_accessory_penalty_is_subtracted_from_both_offers():
    result = calculate_pricing(800000, 1000000, 900000, 1200000, VerifiedCondition.GOOD, 5000)

    assert result.final_buy_price_cents == 815000
    assert result.final_consign_price_cents == 984000 - 5000


def test_penalty_never_drives_offer_below_zero():
    result = calculate_pricing(0, 10000, 0, 20000, VerifiedCondition.WORN, 50000)

    assert result.final_buy_price_cents == 0
    assert result.final_consign_price_cents == 0


def test_only_missing_accessories_are_penalised():
    accessories = [
        AccessoryCheck("Battery", is_present=True, penalty_amount_cents=30000),
        AccessoryCheck("Charger", is_present=False, penalty_amount_cents=20000),
        AccessoryCheck("Strap", is_present=False, penalty_amount_cents=0),
    ]
    assert calculate_accessory_penalty(accessories) == 20000


def test_round_to_rand_rounds_half_up():
    assert round_to_rand(Decimal(150)) == 200
    assert round_to_rand(Decimal(149)) == 100
    assert round_to_rand(Decimal("820000.4")) == 820000


def test_format_price():
    assert format_price(1250000) == "R12 500"
    assert format_price(99) == "R1"
    assert format_price(None) == "-"


def test_to_cents():
    assert to_cents("12.345") == 1235
    assert to_cents(1500) == 150000
    assert to_cents(None) is None


def test_override_wins_over_snapshot():
    snapshot = SimpleNamespace(final_buy_price_cents=820000, final_consign_price_cents=984000)
    override = SimpleNamespace(override_buy_price_cents=900000, override_consign_price_cents=None)

    price = get_final_display_price(snapshot, override)

    assert price.buy_price_cents == 900000
    assert price.is_buy_overridden
    assert price.consign_price_cents == 984000
    assert not price.is_consign_overridden


def test_display_price_without_snapshot():
    price = get_final_display_price(None, None)
    assert price.buy_price_cents is None
    assert not price.is_buy_overridden


@pytest.mark.parametrize(
    "brand, prefix",
    [("Canon", "CA"), ("FUJIFILM", "FU"), ("Sony Alpha", "SO"), ("Unknown Co", "GE"), (None, "GE")],
)
def test_brand_prefix(brand, prefix):
    assert brand_prefix(brand) == prefix
