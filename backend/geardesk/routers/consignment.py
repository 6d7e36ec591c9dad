"""Consignment change requests: admin proposes, consignor confirms by link."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_admin, AuthenticatedUser
from geardesk.models.consignment import ConsignmentChangeRequest
from geardesk.models.enums import AcquisitionType, ActivityAction, ChangeRequestStatus
from geardesk.models.equipment import Equipment
from geardesk.models.vendor import Client
from geardesk.schemas.bundle import (
    ChangeRequestCreate,
    ChangeRequestResponse,
    ConsignmentConfirmRequest,
    ConsignmentReviewResponse,
)
from geardesk.services.activity import ActivityService
from geardesk.services.email import EmailService, get_email_service, send_quietly
from geardesk.services.tokens import generate_quote_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consignment", tags=["consignment"])
review_router = APIRouter(prefix="/consignment-review", tags=["consignment"])


@router.post(
    "/change-request",
    response_model=ChangeRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_change_request(
    data: ChangeRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
    email: EmailService = Depends(get_email_service),
):
    """Propose a new payout (and optionally end date) to a consignor."""
    equipment = await db.get(Equipment, data.equipment_id)
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    if equipment.acquisition_type != AcquisitionType.CONSIGNMENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Equipment is not on consignment",
        )

    client = await db.get(Client, equipment.client_id) if equipment.client_id else None
    if client is None or not client.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Client has no email address",
        )

    request = ConsignmentChangeRequest(
        equipment_id=equipment.id,
        token=generate_quote_token(),
        current_payout_cents=equipment.purchase_price_cents,
        proposed_payout_cents=data.proposed_payout_cents,
        proposed_end_date=data.proposed_end_date,
        reason=data.reason,
        status=ChangeRequestStatus.PENDING_CLIENT,
        approved_by_admin_id=current_user.db_user_id,
    )
    request.equipment = equipment
    db.add(request)
    await db.flush()

    await ActivityService(db).log(
        action=ActivityAction.CONSIGNMENT_CHANGE_REQUESTED,
        entity_type="equipment",
        entity_id=equipment.id,
        user_id=current_user.db_user_id,
        details={
            "change_request_id": str(request.id),
            "current_payout_cents": request.current_payout_cents,
            "proposed_payout_cents": request.proposed_payout_cents,
        },
    )
    await db.commit()

    await send_quietly(
        email.send_consignment_change_request(
            client.full_name,
            client.email,
            equipment.name,
            request.token,
            request.current_payout_cents,
            request.proposed_payout_cents,
            request.reason,
        ),
        f"consignment change request {request.id}",
    )
    return ChangeRequestResponse.model_validate(request)


async def _get_by_token(db: AsyncSession, token: str) -> ConsignmentChangeRequest:
    result = await db.execute(
        select(ConsignmentChangeRequest).where(ConsignmentChangeRequest.token == token)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Change request not found")
    return request


def _review(request: ConsignmentChangeRequest) -> ConsignmentReviewResponse:
    return ConsignmentReviewResponse(
        status=request.status,
        equipment_name=request.equipment.name,
        equipment_sku=request.equipment.sku,
        current_payout_cents=request.current_payout_cents,
        proposed_payout_cents=request.proposed_payout_cents,
        proposed_end_date=request.proposed_end_date,
        current_end_date=request.equipment.consignment_end_date,
        reason=request.reason,
        client_confirmed_at=request.client_confirmed_at,
    )


@review_router.get("/{token}", response_model=ConsignmentReviewResponse)
async def get_change_request(token: str, db: AsyncSession = Depends(get_db)):
    """Public view of a change request."""
    return _review(await _get_by_token(db, token))


@review_router.post("/{token}/confirm", response_model=ConsignmentReviewResponse)
async def confirm_change_request(
    token: str,
    data: ConsignmentConfirmRequest,
    db: AsyncSession = Depends(get_db),
):
    """Consignor accepts the change, optionally asking for a lower payout."""
    request = await _get_by_token(db, token)
    if request.status != ChangeRequestStatus.PENDING_CLIENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Change request has already been confirmed",
        )
    if (
        data.adjusted_payout_cents is not None
        and data.adjusted_payout_cents > request.proposed_payout_cents
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Adjusted payout cannot exceed the proposed payout",
        )

    final_payout = (
        data.adjusted_payout_cents
        if data.adjusted_payout_cents is not None
        else request.proposed_payout_cents
    )
    request.client_adjusted_payout_cents = data.adjusted_payout_cents
    request.final_payout_cents = final_payout
    request.status = ChangeRequestStatus.CONFIRMED
    request.client_confirmed_at = datetime.utcnow()

    equipment = request.equipment
    equipment.purchase_price_cents = final_payout
    equipment.cost_price_cents = final_payout
    if request.proposed_end_date:
        equipment.consignment_end_date = request.proposed_end_date

    await ActivityService(db).log(
        action=ActivityAction.CONSIGNMENT_CHANGE_CONFIRMED,
        entity_type="equipment",
        entity_id=equipment.id,
        details={
            "change_request_id": str(request.id),
            "final_payout_cents": final_payout,
        },
    )
    await db.commit()

    logger.info(f"Consignment change {request.id} confirmed for {equipment.sku}")
    return _review(request)
