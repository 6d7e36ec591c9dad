"""Public quote confirmation pages. The token in the URL is the only credential."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.models.enums import (
    ActivityAction, ClientSelection, PendingItemStatus, PurchaseStatus,
)
from geardesk.models.purchase import ClientDetails, PendingPurchase
from geardesk.schemas.purchase import (
    ClientDetailsSubmit,
    DeclineRequest,
    InspectionOfferItem,
    InspectionOfferResponse,
    OfferAccessory,
    OfferAnswer,
    ProductSelectionRequest,
    QuoteActionResponse,
    QuoteConfirmationResponse,
    QuoteLineItem,
    TrackingSubmit,
)
from geardesk.services.activity import ActivityService
from geardesk.services.clients import find_or_create_client
from geardesk.services.email import EmailService, get_email_service, send_quietly
from geardesk.services.pricing import format_price, get_final_display_price
from geardesk.services.purchases import item_price_cents
from geardesk.services.tokens import invalidate_quote_token, validate_quote_token
from geardesk.services.validators import (
    date_of_birth_from_id,
    validate_client_identity,
    validate_phone,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quote-confirmation", tags=["quote-confirmation"])


async def _get_by_token(db: AsyncSession, token: str) -> tuple[PendingPurchase, bool]:
    found = await validate_quote_token(db, token)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid or expired quote link",
        )
    return found


def _already_responded() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="This quote has already been responded to",
    )


@router.get("/{token}", response_model=QuoteConfirmationResponse)
async def get_quote(token: str, db: AsyncSession = Depends(get_db)):
    """Quote summary shown on the public confirmation page."""
    purchase, already_responded = await _get_by_token(db, token)

    items = [
        QuoteLineItem(
            id=item.id,
            name=item.name,
            brand=item.brand,
            model=item.model,
            condition=item.condition,
            image_urls=item.image_urls or [],
            price_cents=item_price_cents(item) or None,
            price_display=format_price(item_price_cents(item) or None),
        )
        for item in purchase.items
    ]

    return QuoteConfirmationResponse(
        purchase_id=purchase.id,
        customer_name=purchase.customer_name,
        status=purchase.status,
        items=items,
        total_quote_amount_cents=purchase.total_quote_amount_cents or 0,
        total_display=format_price(purchase.total_quote_amount_cents or 0),
        expires_at=purchase.quote_token_expires_at,
        already_responded=already_responded,
        accepted=purchase.client_accepted_at is not None,
        declined=purchase.client_declined_at is not None,
        details_submitted=purchase.client_details is not None,
    )


@router.post("/{token}/accept", response_model=QuoteActionResponse)
async def accept_quote(token: str, db: AsyncSession = Depends(get_db)):
    """Client accepts the quote. The token stays valid for the details form."""
    purchase, already_responded = await _get_by_token(db, token)
    if already_responded:
        raise _already_responded()

    purchase.client_accepted_at = datetime.utcnow()
    purchase.status = PurchaseStatus.CLIENT_ACCEPTED
    await ActivityService(db).log_purchase_status(ActivityAction.QUOTE_ACCEPTED, purchase.id)
    await db.commit()

    logger.info(f"[QUOTE] Purchase {purchase.id} accepted by client")
    return QuoteActionResponse(
        status=purchase.status,
        message="Quote accepted. Please submit your details to continue.",
    )


@router.post("/{token}/decline", response_model=QuoteActionResponse)
async def decline_quote(
    token: str,
    data: DeclineRequest,
    db: AsyncSession = Depends(get_db),
    email: EmailService = Depends(get_email_service),
):
    """Client declines the quote. The admin is notified."""
    purchase, already_responded = await _get_by_token(db, token)
    if already_responded:
        raise _already_responded()

    purchase.client_declined_at = datetime.utcnow()
    purchase.client_decline_reason = data.reason
    purchase.status = PurchaseStatus.CLIENT_DECLINED
    invalidate_quote_token(purchase)
    await ActivityService(db).log_purchase_status(
        ActivityAction.QUOTE_DECLINED, purchase.id, reason=data.reason
    )
    await db.commit()

    logger.info(f"[QUOTE] Purchase {purchase.id} declined by client")
    await send_quietly(
        email.send_quote_declined(
            purchase.customer_name, purchase.customer_email, purchase.id, data.reason
        ),
        f"quote declined notice for purchase {purchase.id}",
    )
    return QuoteActionResponse(status=purchase.status, message="Quote declined. Thank you.")


@router.post("/{token}/submit-details", response_model=QuoteActionResponse)
async def submit_details(
    token: str,
    data: ClientDetailsSubmit,
    db: AsyncSession = Depends(get_db),
    email: EmailService = Depends(get_email_service),
):
    """Client submits identity, address and banking details after accepting.

    The link stays live for tracking until the gear is marked received.
    """
    purchase, _ = await _get_by_token(db, token)

    if purchase.client_accepted_at is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quote must be accepted before submitting details",
        )
    if purchase.client_details is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Details have already been submitted",
        )

    error = validate_client_identity(data.id_number, data.passport_number)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)
    if not validate_phone(data.phone):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid phone number")

    details = ClientDetails(
        purchase_id=purchase.id,
        date_of_birth=date_of_birth_from_id(data.id_number) if data.id_number else None,
        **data.model_dump(),
    )
    purchase.client_details = details
    purchase.status = PurchaseStatus.AWAITING_PAYMENT

    client = await find_or_create_client(
        db, data.full_name, data.surname, data.phone, data.email
    )
    purchase.client_id = client.id

    await ActivityService(db).log_purchase_status(
        ActivityAction.CLIENT_DETAILS_SUBMITTED, purchase.id, client_id=str(client.id)
    )
    await db.commit()

    logger.info(f"[QUOTE] Details submitted for purchase {purchase.id}")
    await send_quietly(
        email.send_awaiting_payment(
            f"{data.full_name} {data.surname}",
            data.email,
            purchase.id,
            purchase.total_quote_amount_cents,
        ),
        f"awaiting payment notice for purchase {purchase.id}",
    )
    return QuoteActionResponse(
        status=purchase.status,
        message="Thank you. Your details have been received.",
        extra={"client_id": str(client.id)},
    )


def _offered_items(purchase: PendingPurchase) -> list:
    """Approved incoming items the client is still selling."""
    return [
        incoming for incoming in purchase.inspection_session.items
        if incoming.verified_item is not None
        and incoming.verified_item.approved_at is not None
        and not incoming.verified_item.not_interested
    ]


def _offer_item(incoming) -> InspectionOfferItem:
    verified = incoming.verified_item
    product = verified.product
    display = get_final_display_price(verified.pricing_snapshot, verified.price_override)
    buy = display.buy_price_cents or 0
    consign = display.consign_price_cents or 0
    return InspectionOfferItem(
        id=incoming.id,
        verified_item_id=verified.id,
        client_name=incoming.client_name,
        client_description=incoming.client_description,
        product_name=product.name if product else incoming.client_name,
        product_brand=product.brand if product else None,
        product_model=product.model if product else None,
        verified_condition=verified.verified_condition,
        serial_number=verified.serial_number,
        general_notes=verified.general_notes,
        buy_price_cents=buy,
        buy_price_display=format_price(buy),
        consign_price_cents=consign,
        consign_price_display=format_price(consign),
        client_selection=incoming.client_selection,
        images=list(incoming.client_images or []),
        answers=[
            OfferAnswer(question=a.question_text, answer=a.answer, notes=a.notes)
            for a in verified.answers
        ],
        accessories=[
            OfferAccessory(name=a.accessory_name, is_present=a.is_present, notes=a.notes)
            for a in verified.accessories
        ],
    )


@router.get("/{token}/inspection", response_model=InspectionOfferResponse)
async def get_inspection_offer(token: str, db: AsyncSession = Depends(get_db)):
    """Inspected items with buy and consign prices, for the client's choice page."""
    purchase, _ = await _get_by_token(db, token)
    session = purchase.inspection_session
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No inspection data found for this quote",
        )

    return InspectionOfferResponse(
        purchase_id=purchase.id,
        customer_name=purchase.customer_name,
        status=purchase.status,
        session_name=session.session_name,
        completed_at=session.completed_at,
        items=[_offer_item(incoming) for incoming in _offered_items(purchase)],
        expires_at=purchase.quote_token_expires_at,
    )


@router.post("/{token}/select-products", response_model=QuoteActionResponse)
async def select_products(
    token: str,
    data: ProductSelectionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Client chooses to sell or consign each inspected item.

    Every offered item needs a choice. The quoted item's final price follows it.
    """
    purchase, _ = await _get_by_token(db, token)
    if purchase.status != PurchaseStatus.FINAL_QUOTE_SENT or purchase.inspection_session is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This quote is not awaiting your selection",
        )

    offered = {incoming.id: incoming for incoming in _offered_items(purchase)}
    unknown = set(data.selections) - set(offered)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown item(s): {', '.join(sorted(str(i) for i in unknown))}",
        )
    missing = len(set(offered) - set(data.selections))
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Please select an option for {missing} more item(s)",
        )

    pending_by_id = {item.id: item for item in purchase.items}
    total = 0
    for item_id, selection in data.selections.items():
        incoming = offered[item_id]
        incoming.client_selection = selection
        verified = incoming.verified_item
        display = get_final_display_price(verified.pricing_snapshot, verified.price_override)
        price = (
            display.consign_price_cents
            if selection == ClientSelection.CONSIGNMENT
            else display.buy_price_cents
        ) or 0
        pending = pending_by_id.get(incoming.pending_item_id)
        if pending is not None and pending.status != PendingItemStatus.REJECTED:
            pending.final_price_cents = price
        total += price

    counts = {
        choice.value: sum(1 for s in data.selections.values() if s == choice)
        for choice in ClientSelection
    }
    await ActivityService(db).log_purchase_status(
        ActivityAction.CLIENT_SELECTION_SUBMITTED, purchase.id, total_cents=total, **counts
    )
    await db.commit()

    logger.info(f"[QUOTE] Selections submitted for purchase {purchase.id}: {counts}")
    return QuoteActionResponse(
        status=purchase.status,
        message="Thank you. Your choices have been saved.",
        extra={"total_cents": total, **counts},
    )


@router.post("/{token}/tracking", response_model=QuoteActionResponse)
async def submit_tracking(
    token: str,
    data: TrackingSubmit,
    db: AsyncSession = Depends(get_db),
):
    """Client reports the courier and tracking number for shipped gear."""
    purchase, _ = await _get_by_token(db, token)
    if purchase.client_accepted_at is None or purchase.client_declined_at is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quote must be accepted before submitting tracking",
        )
    if purchase.gear_received_at is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Your gear has already been received",
        )

    courier = (data.courier_company or "").strip()
    tracking = (data.tracking_number or "").strip()
    if not courier or not tracking:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Courier company and tracking number are required",
        )

    purchase.courier_company = courier
    purchase.tracking_number = tracking
    purchase.tracking_submitted_at = datetime.utcnow()
    purchase.status = PurchaseStatus.AWAITING_DELIVERY
    await ActivityService(db).log_purchase_status(
        ActivityAction.TRACKING_SUBMITTED, purchase.id,
        courier_company=courier,
        tracking_number=tracking,
        customer_name=purchase.customer_name,
    )
    await db.commit()

    logger.info(f"[QUOTE] Tracking submitted for purchase {purchase.id}: {courier} {tracking}")
    return QuoteActionResponse(
        status=purchase.status,
        message="Tracking information received. We'll let you know when your gear arrives.",
    )
