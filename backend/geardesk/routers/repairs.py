"""Repairs router."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.enums import ActivityAction, EquipmentStatus, PurchaseStatus, RepairStatus
from geardesk.models.equipment import Equipment, RepairLog
from geardesk.models.inspection import IncomingGearItem, InspectionSession, VerifiedGearItem
from geardesk.models.purchase import PendingPurchase
from geardesk.schemas.equipment import (
    PendingRepairItem,
    RepairCreate,
    RepairListResponse,
    RepairResponse,
    RepairUpdate,
)
from geardesk.services.activity import ActivityService

router = APIRouter(prefix="/repairs", tags=["repairs"])


def _repair_response(repair: RepairLog) -> RepairResponse:
    return RepairResponse.model_validate(repair).model_copy(
        update={
            "equipment_sku": repair.equipment.sku if repair.equipment else None,
            "equipment_name": repair.equipment.name if repair.equipment else None,
        }
    )


@router.get("", response_model=RepairListResponse)
async def list_repairs(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Repair log plus paid inspection items flagged for repair but not yet in stock."""
    repairs = await db.execute(select(RepairLog).order_by(RepairLog.sent_at.desc()))

    converted = select(Equipment.source_verified_item_id).where(
        Equipment.source_verified_item_id.is_not(None)
    )
    pending = await db.execute(
        select(VerifiedGearItem, PendingPurchase)
        .join(IncomingGearItem, VerifiedGearItem.incoming_item_id == IncomingGearItem.id)
        .join(InspectionSession, IncomingGearItem.session_id == InspectionSession.id)
        .join(PendingPurchase, InspectionSession.purchase_id == PendingPurchase.id)
        .where(
            VerifiedGearItem.requires_repair.is_(True),
            PendingPurchase.status == PurchaseStatus.PAYMENT_RECEIVED,
            VerifiedGearItem.id.not_in(converted),
        )
    )

    return RepairListResponse(
        repairs=[_repair_response(r) for r in repairs.scalars().all()],
        pending_from_inspections=[
            PendingRepairItem(
                verified_item_id=verified.id,
                purchase_id=purchase.id,
                customer_name=purchase.customer_name,
                product_name=verified.product.name,
                repair_notes=verified.repair_notes,
            )
            for verified, purchase in pending.all()
        ],
    )


@router.post("", response_model=RepairResponse, status_code=status.HTTP_201_CREATED)
async def create_repair(
    data: RepairCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Send a unit to a technician."""
    equipment = await db.get(Equipment, data.equipment_id)
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")

    repair = RepairLog(
        **data.model_dump(),
        status=RepairStatus.SENT_TO_TECH,
        created_by_id=current_user.db_user_id,
    )
    db.add(repair)
    equipment.status = EquipmentStatus.IN_REPAIR
    equipment.in_repair = True
    await db.flush()

    await ActivityService(db).log_sent_to_repair(
        equipment.id, current_user.db_user_id, repair.id, data.technician_name, data.issue
    )
    await db.commit()
    await db.refresh(repair)

    return _repair_response(repair)


@router.patch("/{repair_id}", response_model=RepairResponse)
async def update_repair(
    repair_id: UUID,
    data: RepairUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Update a repair. Completing it puts the unit back into inspection."""
    repair = await db.get(RepairLog, repair_id)
    if not repair:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Repair not found")

    was_completed = repair.status == RepairStatus.REPAIR_COMPLETED
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(repair, field, value)

    if repair.status == RepairStatus.REPAIR_COMPLETED and not was_completed:
        repair.completed_at = datetime.utcnow()
        equipment = repair.equipment
        equipment.in_repair = False
        equipment.status = EquipmentStatus.INSPECTED
        await ActivityService(db).log(
            action=ActivityAction.REPAIR_COMPLETED,
            entity_type="equipment",
            entity_id=equipment.id,
            user_id=current_user.db_user_id,
            details={"repair_id": str(repair.id), "cost_cents": repair.cost_cents},
        )

    await db.commit()
    await db.refresh(repair)

    return _repair_response(repair)
