"""Bundles router: several units sold as one web store product."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_admin, require_staff, AuthenticatedUser
from geardesk.models.bundle import Bundle, BundleItem
from geardesk.models.enums import ActivityAction, BundleStatus, IntakeStatus
from geardesk.models.equipment import Equipment
from geardesk.schemas.base import MessageResponse
from geardesk.schemas.bundle import BundleCreate, BundleResponse
from geardesk.services.activity import ActivityService
from geardesk.services.woocommerce import WooCommerceError, get_woo_client, get_woo_transport, sync_bundle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bundles", tags=["bundles"])


class RemoveItemRequest(BaseModel):
    equipment_id: UUID


async def _get_bundle(db: AsyncSession, bundle_id: UUID) -> Bundle:
    bundle = await db.get(Bundle, bundle_id)
    if not bundle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bundle not found")
    return bundle


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


async def _dissolve(db: AsyncSession, bundle: Bundle, user_id: Optional[UUID]) -> None:
    item_count = len(bundle.items)
    bundle.items = []
    bundle.status = BundleStatus.DISSOLVED
    bundle.dissolved_at = datetime.utcnow()
    await ActivityService(db).log(
        action=ActivityAction.BUNDLE_DISSOLVED,
        entity_type="bundle",
        entity_id=bundle.id,
        user_id=user_id,
        details={"title": bundle.title, "item_count": item_count},
    )
    logger.info(f"Bundle dissolved: {bundle.title}")


@router.post("", response_model=BundleResponse, status_code=status.HTTP_201_CREATED)
async def create_bundle(
    data: BundleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Create a bundle from two or more intake-complete units (admin approval)."""
    if not data.title.strip():
        raise _bad_request("Bundle title is required")
    if data.selling_price_cents <= 0:
        raise _bad_request("Selling price must be greater than zero")
    equipment_ids = list(dict.fromkeys(data.equipment_ids))
    if len(equipment_ids) < 2:
        raise _bad_request("A bundle needs at least 2 items")

    result = await db.execute(select(Equipment).where(Equipment.id.in_(equipment_ids)))
    equipment = {e.id: e for e in result.scalars().all()}
    missing = [str(i) for i in equipment_ids if i not in equipment]
    if missing:
        raise _bad_request(f"Equipment not found: {', '.join(missing)}")

    not_ready = [e.sku for e in equipment.values() if e.intake_status != IntakeStatus.INTAKE_COMPLETE]
    if not_ready:
        raise _bad_request(f"Equipment has not completed intake: {', '.join(not_ready)}")

    taken = await db.execute(
        select(Equipment.sku)
        .join(BundleItem, BundleItem.equipment_id == Equipment.id)
        .join(Bundle, BundleItem.bundle_id == Bundle.id)
        .where(Bundle.status == BundleStatus.ACTIVE, Equipment.id.in_(equipment_ids))
    )
    taken_skus = list(taken.scalars().all())
    if taken_skus:
        raise _bad_request(f"Equipment already in an active bundle: {', '.join(taken_skus)}")

    bundle = Bundle(
        title=data.title.strip(),
        description=data.description,
        selling_price_cents=data.selling_price_cents,
        cost_price_cents=sum(e.cost_price_cents or 0 for e in equipment.values()),
        status=BundleStatus.ACTIVE,
        approved_by_id=current_user.db_user_id,
    )
    bundle.items = [BundleItem(equipment_id=i, equipment=equipment[i]) for i in equipment_ids]
    db.add(bundle)
    await db.flush()

    await ActivityService(db).log(
        action=ActivityAction.BUNDLE_CREATED,
        entity_type="bundle",
        entity_id=bundle.id,
        user_id=current_user.db_user_id,
        details={
            "title": bundle.title,
            "item_count": len(equipment_ids),
            "selling_price_cents": bundle.selling_price_cents,
        },
    )
    await db.commit()
    await db.refresh(bundle)

    logger.info(f"Bundle created: {bundle.title} ({len(equipment_ids)} items)")
    return BundleResponse.model_validate(bundle)


@router.get("", response_model=List[BundleResponse])
async def list_bundles(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """List active bundles with their items."""
    result = await db.execute(
        select(Bundle).where(Bundle.status == BundleStatus.ACTIVE).order_by(Bundle.created_at.desc())
    )
    return [BundleResponse.model_validate(b) for b in result.scalars().all()]


@router.get("/{bundle_id}", response_model=BundleResponse)
async def get_bundle(
    bundle_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get a bundle by ID."""
    return BundleResponse.model_validate(await _get_bundle(db, bundle_id))


@router.delete("/{bundle_id}", response_model=MessageResponse)
async def dissolve_bundle(
    bundle_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Dissolve a bundle, releasing its units."""
    bundle = await _get_bundle(db, bundle_id)
    if bundle.status == BundleStatus.DISSOLVED:
        raise _bad_request("Bundle is already dissolved")

    await _dissolve(db, bundle, current_user.db_user_id)
    await db.commit()

    return MessageResponse(message="Bundle dissolved")


@router.post("/{bundle_id}/remove-item", response_model=BundleResponse)
async def remove_bundle_item(
    bundle_id: UUID,
    data: RemoveItemRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Take one unit out. A bundle left with a single unit is dissolved."""
    bundle = await _get_bundle(db, bundle_id)
    if bundle.status != BundleStatus.ACTIVE:
        raise _bad_request("Bundle is not active")

    remaining = [item for item in bundle.items if item.equipment_id != data.equipment_id]
    if len(remaining) == len(bundle.items):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not in bundle")

    bundle.items = remaining
    bundle.cost_price_cents = sum(item.equipment.cost_price_cents or 0 for item in remaining)
    if len(remaining) <= 1:
        await _dissolve(db, bundle, current_user.db_user_id)

    await db.commit()
    await db.refresh(bundle)

    return BundleResponse.model_validate(bundle)


@router.post("/{bundle_id}/sync", response_model=BundleResponse)
async def sync_bundle_to_woocommerce(
    bundle_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_woo_transport),
):
    """Create or update the web store product for a bundle."""
    bundle = await _get_bundle(db, bundle_id)
    if bundle.status != BundleStatus.ACTIVE:
        raise _bad_request("Cannot sync dissolved bundle")
    try:
        await sync_bundle(db, bundle, await get_woo_client(db, transport))
    except WooCommerceError as e:
        logger.error(f"[WOO] Bundle sync failed for {bundle.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await db.commit()
    await db.refresh(bundle)
    return BundleResponse.model_validate(bundle)
