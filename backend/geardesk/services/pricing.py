"""Inspection pricing: condition multipliers, accessory penalties and overrides.

All amounts are integer cents. Offers are rounded to whole rand, half up.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Protocol

from geardesk.models.enums import VerifiedCondition

CONDITION_MULTIPLIERS: dict[VerifiedCondition, Decimal] = {
    VerifiedCondition.LIKE_NEW: Decimal("1.00"),
    VerifiedCondition.EXCELLENT: Decimal("0.95"),
    VerifiedCondition.VERY_GOOD: Decimal("0.90"),
    VerifiedCondition.GOOD: Decimal("0.82"),
    VerifiedCondition.WORN: Decimal("0.70"),
}


class AccessoryLike(Protocol):
    is_present: bool
    penalty_amount_cents: int


@dataclass
class AccessoryCheck:
    """An accessory with its template penalty, as used for pricing."""

    accessory_name: str
    is_present: bool
    penalty_amount_cents: int = 0


@dataclass
class PricingResult:
    condition_multiplier: Decimal
    computed_buy_price_cents: int
    computed_consign_price_cents: int
    accessory_penalty_cents: int
    final_buy_price_cents: int
    final_consign_price_cents: int


@dataclass
class DisplayPrice:
    buy_price_cents: Optional[int]
    consign_price_cents: Optional[int]
    is_buy_overridden: bool
    is_consign_overridden: bool


def get_condition_multiplier(condition: VerifiedCondition) -> Decimal:
    return CONDITION_MULTIPLIERS[VerifiedCondition(condition)]


def round_to_rand(cents: Decimal) -> int:
    """Round a cent amount to the nearest whole rand (half up)."""
    rand = (cents / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(rand) * 100


def calculate_accessory_penalty(accessories: Iterable[AccessoryLike]) -> int:
    """Sum the penalties of accessories that did not come in the box."""
    return sum(a.penalty_amount_cents or 0 for a in accessories if not a.is_present)


def calculate_pricing(
    base_buy_min_cents: int,
    base_buy_max_cents: int,
    base_consign_min_cents: int,
    base_consign_max_cents: int,
    condition: VerifiedCondition,
    accessory_penalty_cents: int = 0,
) -> PricingResult:
    """Compute the offer for a verified item.

    The offer starts from the top of each band, scaled by the condition multiplier,
    then reduced by missing-accessory penalties (never below zero). The band minimums
    are kept on the snapshot for reference only.
    """
    multiplier = get_condition_multiplier(condition)

    computed_buy = round_to_rand(Decimal(base_buy_max_cents) * multiplier)
    computed_consign = round_to_rand(Decimal(base_consign_max_cents) * multiplier)

    return PricingResult(
        condition_multiplier=multiplier,
        computed_buy_price_cents=computed_buy,
        computed_consign_price_cents=computed_consign,
        accessory_penalty_cents=accessory_penalty_cents,
        final_buy_price_cents=max(0, computed_buy - accessory_penalty_cents),
        final_consign_price_cents=max(0, computed_consign - accessory_penalty_cents),
    )


def get_final_display_price(snapshot, override) -> DisplayPrice:
    """Resolve the price shown to staff and clients: an override wins when set."""
    buy = snapshot.final_buy_price_cents if snapshot else None
    consign = snapshot.final_consign_price_cents if snapshot else None

    buy_overridden = override is not None and override.override_buy_price_cents is not None
    consign_overridden = override is not None and override.override_consign_price_cents is not None

    return DisplayPrice(
        buy_price_cents=override.override_buy_price_cents if buy_overridden else buy,
        consign_price_cents=override.override_consign_price_cents if consign_overridden else consign,
        is_buy_overridden=buy_overridden,
        is_consign_overridden=consign_overridden,
    )


def format_price(cents: Optional[int]) -> str:
    """Format cents as rand with space-separated thousands, e.g. "R12 500"."""
    if cents is None:
        return "-"
    rand = int((Decimal(cents) / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return "R" + f"{rand:,}".replace(",", " ")


def to_cents(amount) -> Optional[int]:
    """Convert a rand amount (int, float, str or Decimal) to integer cents."""
    if amount is None:
        return None
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)
