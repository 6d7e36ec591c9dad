"""Selling price recommendation from past sales."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from statistics import median
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.enums import EquipmentStatus
from geardesk.models.equipment import Equipment
from geardesk.models.inspection import VerifiedGearItem

MIN_PRODUCT_SAMPLES = 3


@dataclass
class PriceRecommendation:
    recommended_price_cents: int = 0
    average_price_cents: int = 0
    median_price_cents: int = 0
    min_price_cents: int = 0
    max_price_cents: int = 0
    sample_size: int = 0
    confidence: str = "low"
    prices_by_condition: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def _round(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def confidence_for(sample_size: int) -> str:
    if sample_size >= 5:
        return "high"
    if sample_size >= 2:
        return "medium"
    return "low"


def summarize_prices(
    samples: Iterable[tuple[str, int]], condition: Optional[str] = None
) -> PriceRecommendation:
    """Build a recommendation from (condition, selling_price_cents) pairs.

    Zero prices are ignored. The recommended price is the average for the requested
    condition when there is one, otherwise the overall average.
    """
    samples = [(cond, price) for cond, price in samples if price and price > 0]
    if not samples:
        return PriceRecommendation()

    prices = sorted(price for _, price in samples)
    by_condition: dict[str, list[int]] = {}
    for cond, price in samples:
        by_condition.setdefault(cond, []).append(price)

    prices_by_condition = {
        cond: _round(Decimal(sum(values)) / len(values)) for cond, values in by_condition.items()
    }
    average = _round(Decimal(sum(prices)) / len(prices))

    return PriceRecommendation(
        recommended_price_cents=prices_by_condition.get(condition or "", average) or average,
        average_price_cents=average,
        median_price_cents=_round(median(prices)),
        min_price_cents=prices[0],
        max_price_cents=prices[-1],
        sample_size=len(prices),
        confidence=confidence_for(len(prices)),
        prices_by_condition=prices_by_condition,
    )


async def get_price_recommendation(
    db: AsyncSession,
    product_id: Optional[UUID],
    brand: str,
    model: str,
    condition: Optional[str] = None,
) -> PriceRecommendation:
    """Sold units of the same product, topped up by brand/model matches when scarce."""
    sold: dict[UUID, Equipment] = {}

    if product_id:
        result = await db.execute(
            select(Equipment)
            .join(VerifiedGearItem, Equipment.source_verified_item_id == VerifiedGearItem.id)
            .where(Equipment.status == EquipmentStatus.SOLD, VerifiedGearItem.product_id == product_id)
        )
        sold.update((e.id, e) for e in result.scalars().all())

    if len(sold) < MIN_PRODUCT_SAMPLES:
        result = await db.execute(
            select(Equipment).where(
                Equipment.status == EquipmentStatus.SOLD,
                Equipment.brand.ilike(f"%{brand}%"),
                Equipment.model.ilike(f"%{model}%"),
            )
        )
        sold.update((e.id, e) for e in result.scalars().all())

    return summarize_prices(
        ((e.condition.value, e.selling_price_cents) for e in sold.values()), condition
    )
