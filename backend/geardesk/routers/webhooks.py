"""Inbound webhooks from the WhatsApp quoting bot."""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.config import get_settings
from geardesk.core.database import get_db
from geardesk.schemas.webhook import WebhookEnvelope
from geardesk.services.email import EmailService, get_email_service
from geardesk.services.webhook_security import verify_webhook_signature
from geardesk.services.webhooks import (
    dispatch_event,
    log_webhook_event,
    mark_failed,
    mark_processed,
    mark_processing,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _source_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/quote-accepted")
async def quote_accepted(
    request: Request,
    x_webhook_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    email: EmailService = Depends(get_email_service),
):
    """Receive a signed bot event and turn it into a purchase.

    Duplicate deliveries of the same event_id are acknowledged without reprocessing.
    """
    raw_body = await request.body()

    secret = get_settings().webhook_secret
    if not secret:
        logger.error("[WEBHOOK] WEBHOOK_SECRET not configured, rejecting request")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    check = verify_webhook_signature(raw_body, x_webhook_signature, secret)
    if not check.valid:
        logger.warning("[WEBHOOK] Invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        body = json.loads(raw_body)
        envelope = WebhookEnvelope.model_validate(body)
    except ValidationError as e:
        logger.warning(f"[WEBHOOK] Invalid envelope: {e.error_count()} errors")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid webhook envelope",
                "details": e.errors(include_url=False, include_context=False),
            },
        )
    except ValueError:
        logger.warning("[WEBHOOK] Body is not valid JSON")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid JSON body"},
        )

    created, event = await log_webhook_event(
        db, envelope, body, source_ip=_source_ip(request), signature=check
    )
    if not created:
        logger.info(f"[WEBHOOK] Duplicate event {envelope.event_id}, status {event.status.value}")
        return {"status": "duplicate", "event_id": event.event_id}

    event_id = event.event_id
    await mark_processing(db, event)
    try:
        result = await dispatch_event(db, event.event_type, envelope.payload, email)
    except Exception as e:
        logger.exception(f"[WEBHOOK] Event {event_id} raised during processing")
        await db.rollback()
        await mark_failed(db, event, str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "failed", "event_id": event_id, "error": str(e)},
        )

    if not result.ok:
        await mark_failed(db, event, result.message)
        logger.error(f"[WEBHOOK] Event {event_id} failed: {result.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "failed", "event_id": event_id, "error": result.message},
        )

    await mark_processed(db, event, result.related_entity_id, result.related_entity_type)
    logger.info(f"[WEBHOOK] Event {event_id} processed: {result.message}")
    return {
        "status": "processed",
        "event_id": event_id,
        "noop": result.noop,
        "message": result.message,
        "related_entity_id": result.related_entity_id,
    }
