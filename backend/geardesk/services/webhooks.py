"""Webhook event log and processing.

Processing is shared by the inbound route and the admin replay route, so every
handler is idempotent: re-running an event never creates a second purchase.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.enums import (
    ActivityAction, PendingItemStatus, PurchaseStatus, WebhookStatus,
)
from geardesk.models.purchase import PendingItem, PendingPurchase
from geardesk.models.webhook import WebhookEventLog
from geardesk.schemas.webhook import (
    QuoteAcceptedPayloadV1, QuoteDeclinedPayloadV1, WebhookEnvelope,
)
from geardesk.services.activity import ActivityService
from geardesk.services.clients import find_or_create_client, split_name
from geardesk.services.email import EmailService, send_quietly
from geardesk.services.pricing import to_cents
from geardesk.services.tokens import issue_quote_token
from geardesk.services.webhook_security import SignatureCheck

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW = timedelta(days=7)
PURCHASE_ENTITY = "PendingPurchase"


@dataclass
class ProcessingResult:
    ok: bool
    message: str
    noop: bool = False
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None


async def log_webhook_event(
    db: AsyncSession,
    envelope: WebhookEnvelope,
    raw_payload: dict[str, Any],
    source_ip: Optional[str] = None,
    signature: Optional[SignatureCheck] = None,
) -> tuple[bool, WebhookEventLog]:
    """Insert a PENDING log row, relying on the unique event_id for idempotency.

    The caller IP and both signatures are kept for later forensics.
    Returns (True, row) for a new event, or (False, existing_row) for a duplicate.
    """
    event = WebhookEventLog(
        event_id=str(envelope.event_id),
        event_type=envelope.event_type.value,
        version=envelope.version,
        payload=raw_payload,
        status=WebhookStatus.PENDING,
        source_ip=source_ip,
    )
    if signature is not None:
        event.signature_provided = signature.provided_signature
        event.signature_computed = signature.computed_signature
        event.signature_valid = signature.valid
    db.add(event)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(
            select(WebhookEventLog).where(WebhookEventLog.event_id == str(envelope.event_id))
        )
        return False, result.scalar_one()
    return True, event


async def mark_processing(db: AsyncSession, event: WebhookEventLog) -> None:
    event.status = WebhookStatus.PROCESSING
    await db.commit()


async def mark_processed(
    db: AsyncSession,
    event: WebhookEventLog,
    related_entity_id: Optional[str] = None,
    related_entity_type: Optional[str] = None,
) -> None:
    event.status = WebhookStatus.PROCESSED
    event.processed_at = datetime.utcnow()
    event.error_message = None
    if related_entity_id:
        event.related_entity_id = related_entity_id
        event.related_entity_type = related_entity_type
    await db.commit()


async def mark_failed(db: AsyncSession, event: WebhookEventLog, error: str) -> None:
    event.status = WebhookStatus.FAILED
    event.processed_at = datetime.utcnow()
    event.error_message = error
    await db.commit()


async def process_quote_accepted(
    db: AsyncSession,
    payload: QuoteAcceptedPayloadV1,
    email: Optional[EmailService] = None,
) -> ProcessingResult:
    """Create a PENDING_REVIEW purchase from an accepted bot quote.

    A purchase for the same phone and conversation accepted within a week either
    side is treated as the same quote.
    """
    accepted_at = payload.bot_quote_accepted_at or datetime.utcnow()
    if accepted_at.tzinfo is not None:
        accepted_at = accepted_at.replace(tzinfo=None) - (accepted_at.utcoffset() or timedelta())

    stmt = select(PendingPurchase).where(
        PendingPurchase.customer_phone == payload.customer_phone,
        PendingPurchase.bot_quote_accepted_at >= accepted_at - DUPLICATE_WINDOW,
        PendingPurchase.bot_quote_accepted_at <= accepted_at + DUPLICATE_WINDOW,
    )
    if payload.whatsapp_conversation_id:
        stmt = stmt.where(
            PendingPurchase.whatsapp_conversation_id == payload.whatsapp_conversation_id
        )
    existing = (await db.execute(stmt.limit(1))).scalar_one_or_none()

    if existing:
        logger.info(f"[WEBHOOK] Purchase already exists for {payload.customer_phone}: {existing.id}")
        return ProcessingResult(
            ok=True,
            noop=True,
            related_entity_id=str(existing.id),
            related_entity_type=PURCHASE_ENTITY,
            message=f"Purchase already exists: {existing.id} (no duplicate created)",
        )

    first_name, last_name = split_name(payload.customer_name)
    client = await find_or_create_client(
        db, first_name, last_name, payload.customer_phone, payload.customer_email
    )

    purchase = PendingPurchase(
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
        customer_email=payload.customer_email,
        whatsapp_conversation_id=payload.whatsapp_conversation_id,
        total_quote_amount_cents=to_cents(payload.total_quote_amount) or 0,
        bot_quote_accepted_at=accepted_at,
        bot_conversation_data=payload.bot_conversation_data,
        status=PurchaseStatus.PENDING_REVIEW,
        client_id=client.id,
    )
    issue_quote_token(purchase)
    purchase.items = [
        PendingItem(
            name=item.name,
            brand=item.brand,
            model=item.model,
            category=item.category,
            condition=item.condition,
            description=item.description,
            serial_number=item.serial_number,
            ocr_text=item.ocr_text,
            ocr_brand=item.ocr_brand,
            ocr_model=item.ocr_model,
            bot_estimated_price_cents=to_cents(item.bot_estimated_price),
            proposed_price_cents=to_cents(
                item.proposed_price if item.proposed_price is not None else item.bot_estimated_price
            ),
            suggested_sell_price_cents=to_cents(item.suggested_sell_price),
            image_urls=item.image_urls,
            status=PendingItemStatus.PENDING,
        )
        for item in payload.items
    ]
    db.add(purchase)
    await db.flush()

    await ActivityService(db).log_purchase_status(
        ActivityAction.PURCHASE_CREATED,
        purchase.id,
        source="whatsapp_bot",
        item_count=len(payload.items),
    )
    await db.commit()

    logger.info(
        f"[WEBHOOK] Created purchase {purchase.id} for {payload.customer_name} "
        f"with {len(payload.items)} items"
    )

    if payload.customer_email and email is not None:
        await send_quietly(
            email.send_quote_approved(
                customer_name=payload.customer_name,
                customer_email=payload.customer_email,
                token=purchase.quote_confirmation_token,
                total_amount_cents=purchase.total_quote_amount_cents,
            ),
            f"quote approved email for {purchase.id}",
        )

    return ProcessingResult(
        ok=True,
        related_entity_id=str(purchase.id),
        related_entity_type=PURCHASE_ENTITY,
        message=f"Purchase created: {purchase.id} with {len(payload.items)} items",
    )


async def process_quote_declined(
    db: AsyncSession, payload: QuoteDeclinedPayloadV1
) -> ProcessingResult:
    """Mark the customer's open purchase declined."""
    stmt = select(PendingPurchase).where(
        PendingPurchase.customer_phone == payload.customer_phone,
        PendingPurchase.status.in_(
            [PurchaseStatus.PENDING_REVIEW, PurchaseStatus.QUOTE_SENT]
        ),
    )
    if payload.whatsapp_conversation_id:
        stmt = stmt.where(
            PendingPurchase.whatsapp_conversation_id == payload.whatsapp_conversation_id
        )
    purchase = (
        await db.execute(stmt.order_by(PendingPurchase.created_at.desc()).limit(1))
    ).scalar_one_or_none()

    if purchase is None:
        return ProcessingResult(ok=True, noop=True, message="No open purchase to decline")

    purchase.status = PurchaseStatus.CLIENT_DECLINED
    purchase.client_declined_at = datetime.utcnow()
    purchase.client_decline_reason = payload.reason
    await ActivityService(db).log_purchase_status(
        ActivityAction.QUOTE_DECLINED, purchase.id, source="whatsapp_bot", reason=payload.reason
    )
    await db.commit()

    return ProcessingResult(
        ok=True,
        related_entity_id=str(purchase.id),
        related_entity_type=PURCHASE_ENTITY,
        message=f"Purchase declined: {purchase.id}",
    )


async def dispatch_event(
    db: AsyncSession,
    event_type: str,
    payload: dict[str, Any],
    email: Optional[EmailService] = None,
) -> ProcessingResult:
    """Route an event to its handler. ``payload`` may be the full envelope."""
    if "payload" in payload and isinstance(payload["payload"], dict):
        payload = payload["payload"]

    try:
        if event_type == "quote_accepted":
            return await process_quote_accepted(
                db, QuoteAcceptedPayloadV1.model_validate(payload), email
            )
        if event_type == "quote_declined":
            return await process_quote_declined(db, QuoteDeclinedPayloadV1.model_validate(payload))
    except ValidationError as e:
        return ProcessingResult(ok=False, message=f"Invalid payload: {e.error_count()} errors")

    return ProcessingResult(ok=False, message=f"Unsupported event type: {event_type}")


async def can_replay(db: AsyncSession, event: WebhookEventLog) -> bool:
    """Replay is allowed when the event created nothing that still exists."""
    if not event.related_entity_id:
        return True
    if event.related_entity_type != PURCHASE_ENTITY:
        return False
    try:
        purchase_id = UUID(event.related_entity_id)
    except ValueError:
        return False
    return await db.get(PendingPurchase, purchase_id) is None
