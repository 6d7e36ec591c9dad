"""Equipment router: stock units, pricing, intake and WooCommerce sync."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.enums import (
    AcquisitionType, ActivityAction, EquipmentStatus, IntakeStatus,
)
from geardesk.models.equipment import Equipment, PriceHistory
from geardesk.models.inspection import VerifiedGearItem
from geardesk.schemas.equipment import (
    EquipmentCreate,
    EquipmentResponse,
    EquipmentUpdate,
    PriceHistoryResponse,
    PriceUpdate,
    PriceUpdateResponse,
)
from geardesk.services.activity import ActivityService
from geardesk.services.price_recommendation import get_price_recommendation
from geardesk.services.sku import generate_sku, validate_sku
from geardesk.services.woocommerce import WooCommerceError, get_woo_client, get_woo_transport, sync_equipment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/equipment", tags=["equipment"])


async def _get_equipment(db: AsyncSession, equipment_id: UUID) -> Equipment:
    equipment = await db.get(Equipment, equipment_id)
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return equipment


async def _check_sku(db: AsyncSession, sku: str, exclude_id: Optional[UUID] = None) -> None:
    if not await validate_sku(db, sku, exclude_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"SKU {sku} is already in use",
        )


@router.get("", response_model=List[EquipmentResponse])
async def list_equipment(
    status_filter: Optional[EquipmentStatus] = Query(None, alias="status"),
    acquisition_type: Optional[AcquisitionType] = None,
    intake_status: Optional[IntakeStatus] = None,
    q: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """List stock, newest first."""
    query = select(Equipment)
    if status_filter:
        query = query.where(Equipment.status == status_filter)
    if acquisition_type:
        query = query.where(Equipment.acquisition_type == acquisition_type)
    if intake_status:
        query = query.where(Equipment.intake_status == intake_status)
    if q:
        pattern = f"%{q}%"
        query = query.where(
            or_(
                Equipment.name.ilike(pattern),
                Equipment.brand.ilike(pattern),
                Equipment.model.ilike(pattern),
                Equipment.sku.ilike(pattern),
                Equipment.serial_number.ilike(pattern),
            )
        )

    result = await db.execute(
        query.order_by(Equipment.created_at.desc()).offset(skip).limit(limit)
    )
    return [EquipmentResponse.model_validate(e) for e in result.scalars().all()]


@router.post("", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    data: EquipmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Add a unit by hand."""
    fields = data.model_dump(exclude={"sku"})
    if data.sku:
        await _check_sku(db, data.sku)
        sku = data.sku
    else:
        sku = await generate_sku(db, data.brand, data.serial_number)

    equipment = Equipment(
        sku=sku,
        cost_price_cents=data.purchase_price_cents,
        created_by_id=current_user.db_user_id,
        **fields,
    )
    db.add(equipment)
    await db.flush()

    await ActivityService(db).log(
        action=ActivityAction.CREATED_EQUIPMENT,
        entity_type="equipment",
        entity_id=equipment.id,
        user_id=current_user.db_user_id,
        details={"sku": sku, "name": equipment.name},
    )
    await db.commit()
    await db.refresh(equipment)

    return EquipmentResponse.model_validate(equipment)


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get a unit by ID."""
    return EquipmentResponse.model_validate(await _get_equipment(db, equipment_id))


@router.patch("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: UUID,
    data: EquipmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Update a unit."""
    equipment = await _get_equipment(db, equipment_id)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("sku") and update_data["sku"] != equipment.sku:
        await _check_sku(db, update_data["sku"], equipment.id)
    if update_data.get("status") == EquipmentStatus.SOLD and equipment.sold_at is None:
        equipment.sold_at = datetime.utcnow()

    for field, value in update_data.items():
        setattr(equipment, field, value)

    await db.commit()
    await db.refresh(equipment)

    return EquipmentResponse.model_validate(equipment)


@router.put("/{equipment_id}/price", response_model=PriceUpdateResponse)
async def update_price(
    equipment_id: UUID,
    data: PriceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_woo_transport),
):
    """Change the selling price, keeping history and the web store in step."""
    equipment = await _get_equipment(db, equipment_id)
    old_price = equipment.selling_price_cents
    reason = data.reason or "Manual price update"

    db.add(
        PriceHistory(
            equipment_id=equipment.id,
            old_price_cents=old_price,
            new_price_cents=data.selling_price_cents,
            reason=reason,
            changed_by_id=current_user.db_user_id,
        )
    )
    equipment.selling_price_cents = data.selling_price_cents
    await ActivityService(db).log_price_updated(
        equipment.id, current_user.db_user_id, old_price, data.selling_price_cents, reason
    )
    await db.commit()

    woo_synced = False
    woo_error = None
    if equipment.synced_to_woo and equipment.woocommerce_id:
        try:
            await sync_equipment(db, equipment, await get_woo_client(db, transport))
            await db.commit()
            woo_synced = True
        except WooCommerceError as e:
            woo_error = str(e)
            logger.error(f"[WOO] Price re-sync failed for {equipment.sku}: {e}")

    await db.refresh(equipment)
    return PriceUpdateResponse(
        equipment=EquipmentResponse.model_validate(equipment),
        old_price_cents=old_price,
        new_price_cents=data.selling_price_cents,
        woo_synced=woo_synced,
        woo_error=woo_error,
    )


@router.get("/{equipment_id}/price-history", response_model=List[PriceHistoryResponse])
async def get_price_history(
    equipment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Selling price changes, newest first."""
    await _get_equipment(db, equipment_id)
    result = await db.execute(
        select(PriceHistory)
        .where(PriceHistory.equipment_id == equipment_id)
        .order_by(PriceHistory.created_at.desc())
    )
    return [PriceHistoryResponse.model_validate(h) for h in result.scalars().all()]


@router.post("/{equipment_id}/complete-intake", response_model=EquipmentResponse)
async def complete_intake(
    equipment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Mark a unit shelved and priced, ready for sale."""
    equipment = await _get_equipment(db, equipment_id)

    missing = []
    if not equipment.sku:
        missing.append("SKU")
    if not equipment.shelf_location:
        missing.append("shelf location")
    if not equipment.selling_price_cents or equipment.selling_price_cents <= 0:
        missing.append("selling price")
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot complete intake, missing: {', '.join(missing)}",
        )

    equipment.intake_status = IntakeStatus.INTAKE_COMPLETE
    equipment.status = EquipmentStatus.READY_FOR_SALE
    await ActivityService(db).log(
        action=ActivityAction.INTAKE_COMPLETED,
        entity_type="equipment",
        entity_id=equipment.id,
        user_id=current_user.db_user_id,
        details={"sku": equipment.sku, "shelf_location": equipment.shelf_location},
    )
    await db.commit()
    await db.refresh(equipment)

    return EquipmentResponse.model_validate(equipment)


@router.post("/{equipment_id}/sync", response_model=EquipmentResponse)
async def sync_to_woocommerce(
    equipment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_woo_transport),
):
    """Create or update the web store product for a unit."""
    equipment = await _get_equipment(db, equipment_id)
    try:
        await sync_equipment(db, equipment, await get_woo_client(db, transport))
    except WooCommerceError as e:
        logger.error(f"[WOO] Sync failed for {equipment.sku}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await ActivityService(db).log(
        action=ActivityAction.SYNCED_TO_WOO,
        entity_type="equipment",
        entity_id=equipment.id,
        user_id=current_user.db_user_id,
        details={"woocommerce_id": equipment.woocommerce_id},
    )
    await db.commit()
    await db.refresh(equipment)

    return EquipmentResponse.model_validate(equipment)


@router.post("/{equipment_id}/mark-sold", response_model=EquipmentResponse)
async def mark_sold(
    equipment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Mark a unit as sold."""
    equipment = await _get_equipment(db, equipment_id)
    if equipment.status == EquipmentStatus.SOLD:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Equipment already sold")

    equipment.status = EquipmentStatus.SOLD
    equipment.sold_at = datetime.utcnow()
    await ActivityService(db).log(
        action=ActivityAction.SOLD,
        entity_type="equipment",
        entity_id=equipment.id,
        user_id=current_user.db_user_id,
        details={"sku": equipment.sku, "selling_price_cents": equipment.selling_price_cents},
    )
    await db.commit()
    await db.refresh(equipment)

    return EquipmentResponse.model_validate(equipment)


@router.get("/{equipment_id}/price-recommendation")
async def price_recommendation(
    equipment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Suggested selling price from comparable sold units."""
    equipment = await _get_equipment(db, equipment_id)

    product_id = None
    if equipment.source_verified_item_id:
        verified = await db.get(VerifiedGearItem, equipment.source_verified_item_id)
        product_id = verified.product_id if verified else None

    recommendation = await get_price_recommendation(
        db, product_id, equipment.brand, equipment.model, equipment.condition.value
    )
    return recommendation.to_dict()
