"""Incoming gear router: the purchase lifecycle from quote to paid stock."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.enums import (
    ActivityAction, ClientSelection, InspectionStatus, PendingItemStatus, PurchaseStatus,
    SessionStatus,
)
from geardesk.models.inspection import IncomingGearItem, InspectionSession
from geardesk.models.purchase import PendingItem, PendingPurchase
from geardesk.schemas.inspection import IncomingItemCreate, IncomingItemResponse
from geardesk.schemas.purchase import (
    MarkPaidResponse,
    MarkReceivedResponse,
    PendingItemResponse,
    PendingItemUpdate,
    PurchaseResponse,
    PurchaseUpdate,
    WalkInCreate,
)
from geardesk.services.activity import ActivityService
from geardesk.services.clients import find_or_create_client, split_name
from geardesk.services.email import EmailService, get_email_service, send_quietly
from geardesk.services.equipment_conversion import (
    EquipmentConversionError,
    create_equipment_from_inspection,
)
from geardesk.services.pdf_generator import get_pdf_generator
from geardesk.services.pricing import get_final_display_price
from geardesk.services.purchases import (
    UNDO_WINDOW_MINUTES,
    create_session_for_purchase,
    invoice_document_data,
    item_price_cents,
    next_invoice_number,
    payable_items,
    quote_lines,
    split_by_selection,
)
from geardesk.services.tokens import invalidate_quote_token, issue_quote_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/incoming-gear", tags=["incoming-gear"])


async def _get_purchase(db: AsyncSession, purchase_id: UUID) -> PendingPurchase:
    purchase = await db.get(PendingPurchase, purchase_id)
    if not purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
    return purchase


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.get("", response_model=List[PurchaseResponse])
async def list_incoming_gear(
    status_filter: Optional[PurchaseStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """List purchases with their items, newest first."""
    query = select(PendingPurchase)
    if status_filter:
        query = query.where(PendingPurchase.status == status_filter)

    result = await db.execute(query.order_by(PendingPurchase.created_at.desc()))
    return [PurchaseResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/walk-in", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def create_walk_in(
    data: WalkInCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Record a counter drop-off. No quote link is issued; the client is present."""
    first_name, last_name = split_name(data.customer_name)
    client = await find_or_create_client(
        db, first_name, last_name, data.customer_phone, data.customer_email
    )

    now = datetime.utcnow()
    purchase = PendingPurchase(
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        customer_email=data.customer_email,
        notes=data.notes,
        client_id=client.id,
        status=PurchaseStatus.CLIENT_ACCEPTED,
        client_accepted_at=now,
        total_quote_amount_cents=sum(i.proposed_price_cents or 0 for i in data.items),
    )
    purchase.items = [
        PendingItem(
            name=item.name,
            brand=item.brand,
            model=item.model,
            category=item.category,
            condition=item.condition,
            description=item.description,
            serial_number=item.serial_number,
            proposed_price_cents=item.proposed_price_cents,
            status=PendingItemStatus.PENDING,
        )
        for item in data.items
    ]
    db.add(purchase)
    await db.flush()

    await ActivityService(db).log_purchase_status(
        ActivityAction.PURCHASE_CREATED,
        purchase.id,
        current_user.db_user_id,
        source="walk-in",
        item_count=len(purchase.items),
    )
    await db.commit()
    await db.refresh(purchase)

    return PurchaseResponse.model_validate(purchase)


@router.patch("/pending-items/{item_id}", response_model=PendingItemResponse)
async def update_pending_item(
    item_id: UUID,
    data: PendingItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Adjust, approve or reject a quoted item."""
    item = await db.get(PendingItem, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(item, field, value)

    if "proposed_price_cents" in update_data and "status" not in update_data:
        item.status = PendingItemStatus.PRICE_ADJUSTED

    await db.commit()
    return PendingItemResponse.model_validate(item)


@router.post(
    "/sessions/{session_id}/add-item",
    response_model=IncomingItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_session_item(
    session_id: UUID,
    data: IncomingItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Add an item that arrived but was not on the quote."""
    session = await db.get(InspectionSession, session_id)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if session.status != SessionStatus.IN_PROGRESS:
        raise _bad_request("Session is not in progress")

    item = IncomingGearItem(session_id=session.id, **data.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)

    return IncomingItemResponse.model_validate(item)


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_incoming_gear(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get a purchase with items and client details."""
    return PurchaseResponse.model_validate(await _get_purchase(db, purchase_id))


@router.patch("/{purchase_id}", response_model=PurchaseResponse)
async def update_incoming_gear(
    purchase_id: UUID,
    data: PurchaseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Edit customer contact fields and notes."""
    purchase = await _get_purchase(db, purchase_id)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(purchase, field, value)

    await db.commit()
    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/send-quote", response_model=PurchaseResponse)
async def send_quote(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
    email: EmailService = Depends(get_email_service),
):
    """Email the client a link to accept or decline the reviewed quote."""
    purchase = await _get_purchase(db, purchase_id)
    if not purchase.customer_email:
        raise _bad_request("Customer email is required to send a quote")

    expired = (
        purchase.quote_token_expires_at is not None
        and purchase.quote_token_expires_at < datetime.utcnow()
    )
    if not purchase.quote_confirmation_token or expired:
        issue_quote_token(purchase)

    purchase.status = PurchaseStatus.QUOTE_SENT
    await ActivityService(db).log_purchase_status(
        ActivityAction.QUOTE_SENT, purchase.id, current_user.db_user_id,
        customer_email=purchase.customer_email,
    )
    await db.commit()

    items = [i for i in purchase.items if i.status != PendingItemStatus.REJECTED]
    await send_quietly(
        email.send_quote(
            purchase.customer_name,
            purchase.customer_email,
            purchase.quote_confirmation_token,
            quote_lines(items),
            sum(item_price_cents(i) for i in items),
        ),
        f"quote for purchase {purchase.id}",
    )

    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/mark-received", response_model=MarkReceivedResponse)
async def mark_received(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Record that the gear arrived and open an inspection session for it.

    The client is notified separately; until then the action can be undone for
    ten minutes.
    """
    purchase = await _get_purchase(db, purchase_id)
    if purchase.gear_received_at is not None:
        raise _bad_request("Gear has already been marked as received")

    now = datetime.utcnow()
    purchase.gear_received_at = now
    purchase.gear_received_by_id = current_user.db_user_id
    purchase.client_notified_at = None
    purchase.status = PurchaseStatus.INSPECTION_IN_PROGRESS
    invalidate_quote_token(purchase)

    session = purchase.inspection_session
    if session is None:
        session = await create_session_for_purchase(db, purchase, current_user.db_user_id)

    await ActivityService(db).log_purchase_status(
        ActivityAction.GEAR_RECEIVED, purchase.id, current_user.db_user_id,
        item_count=len(purchase.items),
        inspection_session_id=str(session.id),
    )
    await db.commit()

    logger.info(f"[INCOMING] Gear received for {purchase.customer_name} ({purchase.id})")
    return MarkReceivedResponse(
        purchase=PurchaseResponse.model_validate(purchase),
        session_id=session.id,
        session_number=session.session_number,
        undo_expires_at=now + timedelta(minutes=UNDO_WINDOW_MINUTES),
    )


@router.post("/{purchase_id}/undo-received", response_model=PurchaseResponse)
async def undo_received(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Revert mark-received within the undo window, deleting the inspection session."""
    purchase = await _get_purchase(db, purchase_id)
    if purchase.gear_received_at is None:
        raise _bad_request("Gear has not been marked as received")
    if purchase.client_notified_at is not None:
        raise _bad_request("Client has already been notified; cannot undo")
    if datetime.utcnow() - purchase.gear_received_at > timedelta(minutes=UNDO_WINDOW_MINUTES):
        raise _bad_request(f"Undo window of {UNDO_WINDOW_MINUTES} minutes has expired")

    session = purchase.inspection_session
    if session is not None:
        purchase.inspection_session = None
        await db.delete(session)

    purchase.gear_received_at = None
    purchase.gear_received_by_id = None
    if purchase.tracking_number:
        purchase.status = PurchaseStatus.AWAITING_DELIVERY
    elif purchase.client_details:
        purchase.status = PurchaseStatus.AWAITING_PAYMENT
    else:
        purchase.status = PurchaseStatus.CLIENT_ACCEPTED

    await ActivityService(db).log_purchase_status(
        ActivityAction.GEAR_RECEIVED_UNDONE, purchase.id, current_user.db_user_id,
    )
    await db.commit()

    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/notify-client", response_model=PurchaseResponse)
async def notify_client(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Mark the client as notified of receipt. Closes the undo window."""
    purchase = await _get_purchase(db, purchase_id)
    if purchase.gear_received_at is None:
        raise _bad_request("Gear has not been marked as received")

    purchase.client_notified_at = datetime.utcnow()
    await db.commit()

    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/start-inspection", response_model=PurchaseResponse)
async def start_inspection(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Create the inspection session for received gear when mark-received did not."""
    purchase = await _get_purchase(db, purchase_id)
    if purchase.status != PurchaseStatus.INSPECTION_IN_PROGRESS:
        raise _bad_request("Purchase is not ready for inspection")
    if purchase.gear_received_at is None:
        raise _bad_request("Gear has not been marked as received")
    if purchase.inspection_session is not None:
        raise _bad_request("Inspection session already exists")
    if not purchase.items:
        raise _bad_request("Purchase has no items to inspect")

    session = await create_session_for_purchase(db, purchase, current_user.db_user_id)
    await ActivityService(db).log_purchase_status(
        ActivityAction.INSPECTION_STARTED, purchase.id, current_user.db_user_id,
        inspection_session_id=str(session.id),
    )
    await db.commit()

    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/send-final-quote", response_model=PurchaseResponse)
async def send_final_quote(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
    email: EmailService = Depends(get_email_service),
):
    """Send the post-inspection offer once every incoming item is approved.

    Each quoted item takes its final price from the inspection (override first);
    items the client is no longer selling are rejected.
    A fresh quote link is issued so the client can choose buy or consign per item.
    """
    purchase = await _get_purchase(db, purchase_id)
    if not purchase.customer_email:
        raise _bad_request("Customer email is required to send the final quote")
    session = purchase.inspection_session
    if session is None:
        raise _bad_request("No inspection session found for this purchase")
    if purchase.status == PurchaseStatus.FINAL_QUOTE_SENT:
        raise _bad_request("Final quote has already been sent")
    if not session.items:
        raise _bad_request("Inspection session has no items")

    not_ready = [
        i for i in session.items
        if i.inspection_status != InspectionStatus.APPROVED or i.verified_item is None
    ]
    if not_ready:
        raise _bad_request(f"{len(not_ready)} item(s) have not been approved yet")

    pending_by_id = {item.id: item for item in purchase.items}
    lines = []
    total = 0
    for incoming in session.items:
        verified = incoming.verified_item
        display = get_final_display_price(verified.pricing_snapshot, verified.price_override)
        consignment = incoming.client_selection == ClientSelection.CONSIGNMENT
        price = (display.consign_price_cents if consignment else display.buy_price_cents) or 0

        pending = pending_by_id.get(incoming.pending_item_id)
        if pending is not None:
            if verified.not_interested:
                pending.status = PendingItemStatus.REJECTED
                continue
            pending.final_price_cents = price
            if pending.status == PendingItemStatus.PENDING:
                pending.status = PendingItemStatus.APPROVED
        elif verified.not_interested:
            continue

        lines.append((incoming.client_name, price))
        total += price

    expired = (
        purchase.quote_token_expires_at is not None
        and purchase.quote_token_expires_at < datetime.utcnow()
    )
    if not purchase.quote_confirmation_token or expired:
        issue_quote_token(purchase)

    now = datetime.utcnow()
    purchase.status = PurchaseStatus.FINAL_QUOTE_SENT
    purchase.final_quote_sent_at = now
    session.status = SessionStatus.COMPLETED
    session.completed_at = now

    await ActivityService(db).log_purchase_status(
        ActivityAction.FINAL_QUOTE_SENT, purchase.id, current_user.db_user_id,
        total_cents=total, item_count=len(lines),
    )
    await db.commit()

    await send_quietly(
        email.send_final_quote(
            purchase.customer_name,
            purchase.customer_email,
            lines,
            total,
            token=purchase.quote_confirmation_token,
        ),
        f"final quote for purchase {purchase.id}",
    )
    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/approve-for-payment", response_model=PurchaseResponse)
async def approve_for_payment(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
    email: EmailService = Depends(get_email_service),
):
    """Issue the supplier invoice for approved items.

    The invoice total covers items bought outright; consigned items are paid on sale.
    """
    purchase = await _get_purchase(db, purchase_id)
    payable = payable_items(purchase)
    if not payable:
        raise _bad_request("No approved items")

    items, consigned = split_by_selection(purchase, payable)
    total = sum(item_price_cents(item) for item in items)
    if not purchase.invoice_number:
        purchase.invoice_number = await next_invoice_number(db)
    purchase.invoice_total_cents = total
    purchase.status = PurchaseStatus.APPROVED
    purchase.payment_approved_at = datetime.utcnow()

    await ActivityService(db).log_purchase_status(
        ActivityAction.APPROVED_FOR_PAYMENT, purchase.id, current_user.db_user_id,
        invoice_number=purchase.invoice_number, total_cents=total,
        item_count=len(items), consignment_count=len(consigned),
    )
    await db.commit()

    if purchase.customer_email:
        pdf = None
        if purchase.client_details is not None:
            pdf = get_pdf_generator().generate_supplier_invoice(invoice_document_data(purchase))
        await send_quietly(
            email.send_supplier_invoice(
                purchase.customer_name,
                purchase.customer_email,
                purchase.invoice_number,
                quote_lines(items),
                total,
                pdf=pdf,
            ),
            f"supplier invoice {purchase.invoice_number}",
        )

    return PurchaseResponse.model_validate(purchase)


@router.post("/{purchase_id}/mark-paid", response_model=MarkPaidResponse)
async def mark_paid(
    purchase_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Record payment and convert the inspected items into stock.

    The purchase is COMPLETED when every item converted without error.
    """
    purchase = await _get_purchase(db, purchase_id)
    if purchase.status in (PurchaseStatus.PAYMENT_RECEIVED, PurchaseStatus.COMPLETED):
        raise _bad_request("Purchase has already been marked as paid")

    purchase.status = PurchaseStatus.PAYMENT_RECEIVED
    purchase.payment_received_at = datetime.utcnow()

    created, skipped, requiring_repair, errors = 0, 0, 0, []
    if purchase.inspection_session is not None:
        try:
            summary = await create_equipment_from_inspection(
                db, purchase.id, current_user.db_user_id
            )
        except EquipmentConversionError as e:
            errors.append(str(e))
        else:
            created = len(summary.created)
            skipped = summary.skipped
            requiring_repair = summary.items_requiring_repair
            errors = summary.errors
            if not errors:
                purchase.status = PurchaseStatus.COMPLETED
                for item in payable_items(purchase):
                    item.status = PendingItemStatus.ADDED_TO_INVENTORY
    else:
        errors.append("No inspection session found for this purchase")

    await ActivityService(db).log_purchase_status(
        ActivityAction.MARKED_AS_PAID, purchase.id, current_user.db_user_id,
        equipment_created=created,
        items_requiring_repair=requiring_repair,
        errors=errors,
    )
    await db.commit()

    return MarkPaidResponse(
        purchase=PurchaseResponse.model_validate(purchase),
        equipment_created=created,
        items_skipped=skipped,
        items_requiring_repair=requiring_repair,
        errors=errors,
    )
