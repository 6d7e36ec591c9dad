"""Turn approved inspection items into stock."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from geardesk.models.enums import (
    AcquisitionType, ClientSelection, EquipmentCondition, EquipmentStatus, IntakeStatus,
    RepairStatus, VerifiedCondition,
)
from geardesk.models.equipment import Equipment, RepairLog
from geardesk.models.inspection import IncomingGearItem, InspectionSession, VerifiedGearItem
from geardesk.models.purchase import PendingPurchase
from geardesk.services.activity import ActivityService
from geardesk.services.sku import generate_sku

logger = logging.getLogger(__name__)

CONSIGNMENT_MARKUP = Decimal("1.5")
BUY_MARKUP = Decimal("1.3")
DEFAULT_CONSIGNMENT_RATE = 70

CONDITION_MAP = {
    VerifiedCondition.LIKE_NEW: EquipmentCondition.MINT,
    VerifiedCondition.EXCELLENT: EquipmentCondition.EXCELLENT,
    VerifiedCondition.VERY_GOOD: EquipmentCondition.GOOD,
    VerifiedCondition.GOOD: EquipmentCondition.GOOD,
    VerifiedCondition.WORN: EquipmentCondition.FAIR,
}


class EquipmentConversionError(Exception):
    """A verified item could not be converted."""


@dataclass
class ConversionSummary:
    created: list[Equipment] = field(default_factory=list)
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def items_requiring_repair(self) -> int:
        return sum(1 for e in self.created if e.in_repair)


def _markup(cents: int, factor: Decimal) -> int:
    return int((Decimal(cents) * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _acquisition_price(item: VerifiedGearItem, consignment: bool) -> int:
    override = item.price_override
    snapshot = item.pricing_snapshot
    if consignment:
        if override and override.override_consign_price_cents:
            return override.override_consign_price_cents
        return snapshot.final_consign_price_cents if snapshot else 0
    if override and override.override_buy_price_cents:
        return override.override_buy_price_cents
    return snapshot.final_buy_price_cents if snapshot else 0


async def create_equipment_from_verified_item(
    db: AsyncSession,
    verified_item_id: UUID,
    user_id: Optional[UUID],
    client_id: Optional[UUID] = None,
) -> Optional[Equipment]:
    """Create one Equipment row. Returns None for items the client keeps."""
    result = await db.execute(
        select(VerifiedGearItem)
        .where(VerifiedGearItem.id == verified_item_id)
        .options(
            selectinload(VerifiedGearItem.incoming_item)
            .selectinload(IncomingGearItem.session)
            .selectinload(InspectionSession.purchase)
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise EquipmentConversionError(f"Verified item {verified_item_id} not found")

    if item.not_interested:
        logger.info(f"[CONVERT] Skipping {verified_item_id}: marked not interested")
        return None

    product = item.product
    if product is None:
        raise EquipmentConversionError("Verified item has no identified product")
    incoming = item.incoming_item
    session = incoming.session
    consignment = incoming.client_selection == ClientSelection.CONSIGNMENT

    purchase_price = _acquisition_price(item, consignment)
    selling_price = _markup(purchase_price, CONSIGNMENT_MARKUP if consignment else BUY_MARKUP)
    acquisition_type = (
        AcquisitionType.CONSIGNMENT if consignment else AcquisitionType.PURCHASED_OUTRIGHT
    )

    vendor_id = session.vendor_id
    if session.purchase is not None:
        vendor_id = session.purchase.vendor_id or vendor_id
        client_id = client_id or session.purchase.client_id

    sku = await generate_sku(db, product.brand, item.serial_number)

    equipment = Equipment(
        sku=sku,
        name=product.name,
        brand=product.brand,
        model=product.model,
        category=product.product_type,
        condition=CONDITION_MAP.get(item.verified_condition, EquipmentCondition.GOOD),
        description=item.general_notes,
        serial_number=item.serial_number,
        acquisition_type=acquisition_type,
        vendor_id=vendor_id,
        client_id=client_id,
        purchase_price_cents=purchase_price,
        selling_price_cents=selling_price,
        cost_price_cents=purchase_price,
        consignment_rate=DEFAULT_CONSIGNMENT_RATE if consignment else None,
        status=EquipmentStatus.IN_REPAIR if item.requires_repair else EquipmentStatus.PENDING_INSPECTION,
        intake_status=IntakeStatus.PENDING_INTAKE,
        in_repair=item.requires_repair,
        images=list(incoming.client_images or []),
        source_verified_item_id=item.id,
        created_by_id=user_id,
    )
    db.add(equipment)
    await db.flush()

    if item.requires_repair and item.repair_notes:
        db.add(
            RepairLog(
                equipment_id=equipment.id,
                technician_name="Unassigned",
                issue=item.repair_notes,
                status=RepairStatus.SENT_TO_TECH,
                created_by_id=user_id,
            )
        )

    await ActivityService(db).log_equipment_from_inspection(
        equipment_id=equipment.id,
        user_id=user_id,
        verified_item_id=item.id,
        sku=sku,
        acquisition_type=acquisition_type.value,
    )

    logger.info(f"[CONVERT] Created equipment {sku} from verified item {verified_item_id}")
    return equipment


async def create_equipment_from_inspection(
    db: AsyncSession, purchase_id: UUID, user_id: Optional[UUID]
) -> ConversionSummary:
    """Convert every verified item of a purchase's session.

    Items already converted are skipped. Each item runs in its own savepoint, so a
    failing item (missing product, database error) is rolled back, collected in
    ``errors`` and the rest continue.
    """
    purchase = await db.get(PendingPurchase, purchase_id)
    if purchase is None:
        raise EquipmentConversionError("Purchase not found")
    session = purchase.inspection_session
    if session is None:
        raise EquipmentConversionError("No inspection session found for this purchase")

    converted = await db.execute(
        select(Equipment.source_verified_item_id).where(
            Equipment.source_verified_item_id.is_not(None)
        )
    )
    already = set(converted.scalars().all())

    summary = ConversionSummary()
    for incoming in session.items:
        verified = incoming.verified_item
        if verified is None or verified.id in already:
            summary.skipped += 1
            continue
        item_id, item_name = verified.id, incoming.client_name
        try:
            async with db.begin_nested():
                equipment = await create_equipment_from_verified_item(
                    db, item_id, user_id, purchase.client_id
                )
        except Exception as e:
            logger.exception(f"[CONVERT] Failed to convert verified item {item_id}")
            summary.errors.append(f"{item_name}: {e}")
            continue
        if equipment is None:
            summary.skipped += 1
        else:
            summary.created.append(equipment)

    return summary
