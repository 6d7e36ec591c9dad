"""SKU generation for equipment: brand prefix plus serial tail."""

import logging
import random
import time
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.equipment import Equipment

logger = logging.getLogger(__name__)

BRAND_PREFIXES = {
    "Canon": "CA",
    "Nikon": "NI",
    "Sony": "SO",
    "Fuji": "FU",
    "Fujifilm": "FU",
    "Leica": "LE",
    "Sigma": "SI",
    "Tamron": "TA",
    "Panasonic": "PA",
    "Olympus": "OL",
    "Hasselblad": "HA",
    "Pentax": "PE",
    "DJI": "DJ",
    "GoPro": "GP",
    "Zeiss": "ZE",
    "Godox": "GO",
}
GENERIC_PREFIX = "GE"
MAX_ATTEMPTS = 10


def brand_prefix(brand: Optional[str]) -> str:
    """Two-letter prefix for a brand name (GE when unknown)."""
    lowered = (brand or "").lower()
    for key, prefix in BRAND_PREFIXES.items():
        if key.lower() in lowered:
            return prefix
    return GENERIC_PREFIX


def _random_suffix() -> str:
    return str(random.randint(1000, 9999))


async def _sku_exists(db: AsyncSession, sku: str) -> bool:
    result = await db.execute(select(Equipment.id).where(Equipment.sku == sku))
    return result.first() is not None


async def generate_sku(db: AsyncSession, brand: Optional[str], serial_number: Optional[str] = None) -> str:
    """Generate an unused SKU like ``CA-1234``.

    Uses the last four characters of the serial when there are enough, otherwise a
    random number. Collisions are retried with random suffixes, then a timestamp tail.
    """
    prefix = brand_prefix(brand)

    if serial_number and len(serial_number) >= 4:
        suffix = serial_number[-4:].upper()
    else:
        suffix = _random_suffix()

    sku = f"{prefix}-{suffix}"
    for _ in range(MAX_ATTEMPTS):
        if not await _sku_exists(db, sku):
            return sku
        sku = f"{prefix}-{_random_suffix()}"

    logger.warning(f"[SKU] {MAX_ATTEMPTS} collisions for prefix {prefix}, using timestamp suffix")
    return f"{prefix}-{str(int(time.time() * 1000))[-4:]}"


async def validate_sku(db: AsyncSession, sku: str, exclude_equipment_id: Optional[UUID] = None) -> bool:
    """True when the SKU is free (or already belongs to ``exclude_equipment_id``)."""
    result = await db.execute(select(Equipment.id).where(Equipment.sku == sku))
    existing_id = result.scalar_one_or_none()
    if existing_id is None:
        return True
    return exclude_equipment_id is not None and existing_id == exclude_equipment_id
