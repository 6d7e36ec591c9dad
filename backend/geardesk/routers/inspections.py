"""Inspections router: sessions, product identification, verification and pricing."""

import logging
from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.enums import (
    ActivityAction, InspectionStatus, OverrideReason, SessionStatus, VerifiedCondition,
)
from geardesk.models.inspection import (
    IncomingGearItem,
    InspectionSession,
    PriceOverride,
    PricingSnapshot,
    VerifiedAccessory,
    VerifiedAnswer,
    VerifiedGearItem,
)
from geardesk.models.product import Product
from geardesk.schemas.inspection import (
    IdentifyRequest,
    IncomingItemDetail,
    IncomingItemResponse,
    ItemActionRequest,
    PriceOverrideRequest,
    SessionCreate,
    SessionResponse,
    SessionSummary,
    VerifiedItemResponse,
)
from geardesk.schemas.product import ProductDetailResponse
from geardesk.services.activity import ActivityService
from geardesk.services.pricing import (
    AccessoryCheck,
    calculate_accessory_penalty,
    calculate_pricing,
)
from geardesk.services.purchases import next_session_number

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inspections", tags=["inspections"])

VALID_ACTIONS = ("verify", "approve", "reopen", "reject")


def _summary(session: InspectionSession) -> dict:
    return {
        "item_count": len(session.items),
        "approved_count": sum(
            1 for i in session.items if i.inspection_status == InspectionStatus.APPROVED
        ),
    }


async def _get_item(db: AsyncSession, item_id: UUID) -> IncomingGearItem:
    item = await db.get(IncomingGearItem, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return item


async def _get_verified(db: AsyncSession, item_id: UUID) -> tuple[IncomingGearItem, VerifiedGearItem]:
    item = await _get_item(db, item_id)
    if item.verified_item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item has not been identified yet",
        )
    return item, item.verified_item


def _locked_guard(verified: VerifiedGearItem, current_user: AuthenticatedUser) -> None:
    if verified.locked and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Item is locked. Only admins can modify.",
        )


async def _item_response(db: AsyncSession, item: IncomingGearItem) -> IncomingItemResponse:
    await db.refresh(item, attribute_names=["verified_item"])
    return IncomingItemResponse.model_validate(item)


@router.get("", response_model=List[SessionSummary])
async def list_sessions(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """List inspection sessions with item counts."""
    result = await db.execute(select(InspectionSession).order_by(InspectionSession.created_at.desc()))
    return [
        SessionSummary.model_validate(s).model_copy(update=_summary(s))
        for s in result.scalars().all()
    ]


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    data: SessionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Open a manual session (vendor drop-off, no purchase)."""
    session = InspectionSession(
        session_number=await next_session_number(db),
        session_name=data.session_name,
        vendor_id=data.vendor_id,
        notes=data.notes,
        status=SessionStatus.IN_PROGRESS,
        created_by_id=current_user.db_user_id,
    )
    session.items = []
    db.add(session)
    await db.commit()
    await db.refresh(session)

    return SessionResponse.model_validate(session)


@router.get("/items/{item_id}", response_model=IncomingItemDetail)
async def get_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get an incoming item with its verification record and product templates."""
    item = await _get_item(db, item_id)
    product = item.verified_item.product if item.verified_item else None
    return IncomingItemDetail(
        item=IncomingItemResponse.model_validate(item),
        product=ProductDetailResponse.model_validate(product) if product else None,
    )


@router.post("/items/{item_id}/identify", response_model=VerifiedItemResponse)
async def identify_item(
    item_id: UUID,
    data: IdentifyRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Tie an incoming item to a catalog product.

    Re-identifying discards answers, accessories and pricing from the previous product.
    """
    item = await _get_item(db, item_id)
    product = await db.get(Product, data.product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    verified = item.verified_item
    activity = ActivityService(db)
    if verified is not None:
        _locked_guard(verified, current_user)
        old_product_id = verified.product_id
        verified.answers = []
        verified.accessories = []
        verified.pricing_snapshot = None
        verified.price_override = None
        verified.product_id = product.id
        verified.product = product
        await activity.log(
            action=ActivityAction.ITEM_IDENTIFIED,
            entity_type="verified_gear_item",
            entity_id=verified.id,
            user_id=current_user.db_user_id,
            details={
                "old_product_id": str(old_product_id),
                "new_product_id": str(product.id),
                "product_name": product.name,
            },
        )
    else:
        verified = VerifiedGearItem(
            incoming_item_id=item.id,
            product_id=product.id,
            verified_condition=VerifiedCondition.GOOD,
            serial_number=item.client_serial_number,
        )
        db.add(verified)
        item.inspection_status = InspectionStatus.IN_PROGRESS
        await db.flush()
        await activity.log(
            action=ActivityAction.ITEM_IDENTIFIED,
            entity_type="verified_gear_item",
            entity_id=verified.id,
            user_id=current_user.db_user_id,
            details={"product_id": str(product.id), "product_name": product.name},
        )

    item.client_name = product.name
    await db.commit()
    await db.refresh(verified)

    logger.info(f"[INSPECTION] Item {item.id} identified as {product.name}")
    return VerifiedItemResponse.model_validate(verified)


async def _verify(
    db: AsyncSession,
    item: IncomingGearItem,
    verified: VerifiedGearItem,
    data: ItemActionRequest,
    current_user: AuthenticatedUser,
) -> None:
    fields = data.model_dump(
        include={
            "serial_number", "verified_condition", "general_notes",
            "not_interested", "requires_repair", "repair_notes",
        },
        exclude_unset=True,
    )
    for field, value in fields.items():
        if value is not None:
            setattr(verified, field, value)
    verified.verified_at = datetime.utcnow()
    verified.verified_by_id = current_user.db_user_id

    if data.client_selection is not None:
        item.client_selection = data.client_selection

    if data.answers is not None:
        verified.answers = [
            VerifiedAnswer(question_text=a.question_text, answer=a.answer, notes=a.notes)
            for a in data.answers
        ]

    product = verified.product
    penalties = {t.accessory_name: t.penalty_amount_cents for t in product.accessory_templates}
    order = {t.accessory_name: t.accessory_order for t in product.accessory_templates}
    if data.accessories is not None:
        verified.accessories = [
            VerifiedAccessory(
                accessory_name=a.accessory_name,
                is_present=a.is_present,
                notes=a.notes,
                accessory_order=order.get(a.accessory_name, index),
            )
            for index, a in enumerate(data.accessories)
        ]

    penalty = calculate_accessory_penalty(
        AccessoryCheck(a.accessory_name, a.is_present, penalties.get(a.accessory_name, 0))
        for a in verified.accessories
    )
    pricing = calculate_pricing(
        product.buy_price_min_cents,
        product.buy_price_max_cents,
        product.consign_price_min_cents,
        product.consign_price_max_cents,
        verified.verified_condition,
        penalty,
    )

    snapshot = verified.pricing_snapshot
    if snapshot is None:
        snapshot = PricingSnapshot(verified_item_id=verified.id)
        verified.pricing_snapshot = snapshot
    snapshot.base_buy_min_cents = product.buy_price_min_cents
    snapshot.base_buy_max_cents = product.buy_price_max_cents
    snapshot.base_consign_min_cents = product.consign_price_min_cents
    snapshot.base_consign_max_cents = product.consign_price_max_cents
    snapshot.condition_multiplier = pricing.condition_multiplier
    snapshot.computed_buy_price_cents = pricing.computed_buy_price_cents
    snapshot.computed_consign_price_cents = pricing.computed_consign_price_cents
    snapshot.accessory_penalty_cents = pricing.accessory_penalty_cents
    snapshot.final_buy_price_cents = pricing.final_buy_price_cents
    snapshot.final_consign_price_cents = pricing.final_consign_price_cents
    snapshot.calculated_at = datetime.utcnow()

    item.inspection_status = InspectionStatus.VERIFIED
    await ActivityService(db).log(
        action=ActivityAction.ITEM_VERIFIED,
        entity_type="verified_gear_item",
        entity_id=verified.id,
        user_id=current_user.db_user_id,
        details={
            "condition": verified.verified_condition.value,
            "final_buy_price_cents": pricing.final_buy_price_cents,
            "final_consign_price_cents": pricing.final_consign_price_cents,
        },
    )


@router.patch("/items/{item_id}", response_model=IncomingItemResponse)
async def update_item(
    item_id: UUID,
    data: ItemActionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Apply a verification action: verify, approve, reopen (admin) or reject."""
    if data.action not in VALID_ACTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    item, verified = await _get_verified(db, item_id)
    if data.action != "reopen":
        _locked_guard(verified, current_user)

    activity = ActivityService(db)
    now = datetime.utcnow()

    if data.action == "verify":
        await _verify(db, item, verified, data, current_user)

    elif data.action == "approve":
        verified.approved_at = now
        verified.approved_by_id = current_user.db_user_id
        verified.locked = True
        item.inspection_status = InspectionStatus.APPROVED
        await activity.log(
            action=ActivityAction.ITEM_APPROVED,
            entity_type="verified_gear_item",
            entity_id=verified.id,
            user_id=current_user.db_user_id,
        )

    elif data.action == "reopen":
        if not current_user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can reopen approved items",
            )
        if not data.reopen_reason:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Reopen reason is required",
            )
        verified.locked = False
        verified.reopened_at = now
        verified.reopened_by_id = current_user.db_user_id
        verified.reopen_reason = data.reopen_reason
        item.inspection_status = InspectionStatus.REOPENED
        await activity.log(
            action=ActivityAction.ITEM_REOPENED,
            entity_type="verified_gear_item",
            entity_id=verified.id,
            user_id=current_user.db_user_id,
            details={"reason": data.reopen_reason},
        )

    else:
        item.inspection_status = InspectionStatus.REJECTED
        await activity.log(
            action=ActivityAction.ITEM_REJECTED,
            entity_type="incoming_gear_item",
            entity_id=item.id,
            user_id=current_user.db_user_id,
            details={"reason": data.general_notes},
        )

    await db.commit()
    return await _item_response(db, item)


@router.put("/items/{item_id}/price-override", response_model=VerifiedItemResponse)
async def set_price_override(
    item_id: UUID,
    data: PriceOverrideRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Override the computed buy and/or consignment price."""
    if data.override_buy_price_cents is None and data.override_consign_price_cents is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one override price is required",
        )
    try:
        reason = OverrideReason(data.override_reason)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid override reason: {data.override_reason}",
        )
    if reason == OverrideReason.OTHER and not (data.notes and data.notes.strip()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Notes are required when the reason is OTHER",
        )

    _, verified = await _get_verified(db, item_id)
    _locked_guard(verified, current_user)

    override = verified.price_override
    if override is None:
        override = PriceOverride(verified_item_id=verified.id)
        verified.price_override = override
    override.override_buy_price_cents = data.override_buy_price_cents
    override.override_consign_price_cents = data.override_consign_price_cents
    override.override_reason = reason
    override.notes = data.notes
    override.overridden_by_id = current_user.db_user_id
    override.overridden_at = datetime.utcnow()

    await ActivityService(db).log(
        action=ActivityAction.PRICE_OVERRIDDEN,
        entity_type="verified_gear_item",
        entity_id=verified.id,
        user_id=current_user.db_user_id,
        details={
            "override_buy_price_cents": data.override_buy_price_cents,
            "override_consign_price_cents": data.override_consign_price_cents,
            "reason": reason.value,
        },
    )
    await db.commit()
    await db.refresh(verified)

    return VerifiedItemResponse.model_validate(verified)


@router.delete("/items/{item_id}/price-override", response_model=VerifiedItemResponse)
async def clear_price_override(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Revert to the computed price."""
    _, verified = await _get_verified(db, item_id)
    _locked_guard(verified, current_user)

    if verified.price_override is not None:
        verified.price_override = None
        await db.commit()
        await db.refresh(verified)

    return VerifiedItemResponse.model_validate(verified)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get a session with items, verified items, snapshots and overrides."""
    session = await db.get(InspectionSession, session_id)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return SessionResponse.model_validate(session).model_copy(update=_summary(session))
