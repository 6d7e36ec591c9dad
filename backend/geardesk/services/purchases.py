"""Purchase lifecycle helpers shared by the incoming-gear and document routes."""

import logging
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.enums import (
    ClientSelection, InspectionStatus, PendingItemStatus, SessionStatus,
)
from geardesk.models.inspection import IncomingGearItem, InspectionSession
from geardesk.models.purchase import PendingItem, PendingPurchase

logger = logging.getLogger(__name__)

UNDO_WINDOW_MINUTES = 10
PAYABLE_ITEM_STATUSES = (PendingItemStatus.APPROVED, PendingItemStatus.PRICE_ADJUSTED)


def item_price_cents(item: PendingItem) -> int:
    """Final price if set, else the proposed price."""
    return item.final_price_cents or item.proposed_price_cents or 0


def payable_items(purchase: PendingPurchase) -> list[PendingItem]:
    return [item for item in purchase.items if item.status in PAYABLE_ITEM_STATUSES]


def selections_by_pending_item(purchase: PendingPurchase) -> dict[UUID, ClientSelection]:
    """Client buy/consign choice per quoted item, from the inspection session."""
    session = purchase.inspection_session
    if session is None:
        return {}
    return {
        incoming.pending_item_id: incoming.client_selection
        for incoming in session.items
        if incoming.pending_item_id is not None and incoming.client_selection is not None
    }


def split_by_selection(
    purchase: PendingPurchase, items: list[PendingItem]
) -> tuple[list[PendingItem], list[PendingItem]]:
    """(bought, consigned). Items without a choice are bought outright."""
    selections = selections_by_pending_item(purchase)
    bought, consigned = [], []
    for item in items:
        if selections.get(item.id) == ClientSelection.CONSIGNMENT:
            consigned.append(item)
        else:
            bought.append(item)
    return bought, consigned


def quote_lines(items: list[PendingItem]) -> list[tuple[str, Optional[int]]]:
    return [(item.name, item_price_cents(item) or None) for item in items]


async def _next_number(db: AsyncSession, column, prefix: str) -> str:
    count = (await db.execute(select(func.count()).where(column.is_not(None)))).scalar_one()
    n = count + 1
    while True:
        candidate = f"{prefix}-{n:06d}"
        taken = await db.execute(select(func.count()).where(column == candidate))
        if not taken.scalar_one():
            return candidate
        n += 1


async def next_session_number(db: AsyncSession) -> str:
    """``INS-000001`` style, one past the current count (skipping numbers in use)."""
    return await _next_number(db, InspectionSession.session_number, "INS")


async def next_invoice_number(db: AsyncSession) -> str:
    return await _next_number(db, PendingPurchase.invoice_number, "INV")


async def create_session_for_purchase(
    db: AsyncSession, purchase: PendingPurchase, user_id: Optional[UUID]
) -> InspectionSession:
    """Open an inspection session with one UNVERIFIED incoming item per quoted item."""
    session = InspectionSession(
        session_number=await next_session_number(db),
        session_name=f"Quote from {purchase.customer_name} - {date.today().isoformat()}",
        purchase_id=purchase.id,
        vendor_id=purchase.vendor_id,
        status=SessionStatus.IN_PROGRESS,
        notes=(
            f"Customer Phone: {purchase.customer_phone}\n"
            f"Customer Email: {purchase.customer_email or 'Not provided'}"
        ),
        created_by_id=user_id,
    )
    session.items = [
        IncomingGearItem(
            pending_item_id=item.id,
            client_name=item.name,
            client_brand=item.brand,
            client_model=item.model,
            client_description=item.description,
            client_serial_number=item.serial_number,
            client_images=list(item.image_urls or []),
            inspection_status=InspectionStatus.UNVERIFIED,
        )
        for item in purchase.items
    ]
    db.add(session)
    await db.flush()
    purchase.inspection_session = session

    logger.info(
        f"[INSPECTION] Created session {session.session_number} with {len(session.items)} items"
    )
    return session


def _party(purchase: PendingPurchase) -> dict[str, Any]:
    details = purchase.client_details
    return {
        "name": f"{details.full_name} {details.surname}".strip(),
        "id_number": details.id_number,
        "passport_number": details.passport_number,
        "email": details.email,
        "phone": details.phone,
        "address": details.physical_address,
    }


def _pdf_items(items: list[PendingItem]) -> list[dict[str, Any]]:
    return [
        {"name": item.name, "serial_number": item.serial_number, "price_cents": item_price_cents(item)}
        for item in items
    ]


def invoice_document_data(purchase: PendingPurchase) -> dict[str, Any]:
    """Supplier invoice PDF data. Requires client details.

    Only bought items are payable now; consigned items are listed separately and
    paid on sale.
    """
    details = purchase.client_details
    items, consigned = split_by_selection(purchase, payable_items(purchase) or list(purchase.items))
    return {
        "invoice_number": purchase.invoice_number,
        "date": purchase.payment_approved_at or datetime.utcnow(),
        "supplier": _party(purchase),
        "banking": {
            "bank_name": details.bank_name,
            "account_holder": details.account_holder,
            "account_number": details.account_number,
            "branch_code": details.branch_code,
            "account_type": details.account_type,
        },
        "items": _pdf_items(items),
        "consignment_items": _pdf_items(consigned),
        "total_cents": (
            purchase.invoice_total_cents
            if purchase.invoice_total_cents is not None
            else sum(item_price_cents(i) for i in items)
        ),
    }


def agreement_document_data(
    purchase: PendingPurchase, end_date: Optional[date] = None
) -> dict[str, Any]:
    """Consignment agreement PDF data for the consigned items only. Requires client details."""
    _, items = split_by_selection(purchase, payable_items(purchase) or list(purchase.items))
    return {
        "date": datetime.utcnow(),
        "end_date": end_date,
        "consignor": _party(purchase),
        "items": _pdf_items(items),
        "total_cents": sum(item_price_cents(i) for i in items),
    }
