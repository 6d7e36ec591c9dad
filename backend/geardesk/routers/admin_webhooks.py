"""Admin tools for the webhook event log: inspect, replay, ignore."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_admin, AuthenticatedUser
from geardesk.models.enums import WebhookStatus
from geardesk.models.webhook import WebhookEventLog
from geardesk.schemas.base import Page
from geardesk.schemas.webhook import (
    IgnoreEventRequest,
    WebhookEventResponse,
    WebhookEventSummary,
)
from geardesk.services.email import EmailService, get_email_service
from geardesk.services.webhooks import can_replay, dispatch_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/webhooks/events", tags=["admin-webhooks"])

REPLAYABLE_STATUSES = (WebhookStatus.FAILED, WebhookStatus.PROCESSED)


async def _get_event(db: AsyncSession, event_id: str) -> WebhookEventLog:
    """Look up by the delivered event_id, not the row id."""
    result = await db.execute(
        select(WebhookEventLog).where(WebhookEventLog.event_id == event_id)
    )
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Webhook event not found")
    return event


@router.get("", response_model=Page[WebhookEventResponse])
async def list_events(
    status_filter: Optional[WebhookStatus] = Query(None, alias="status"),
    event_type: Optional[str] = None,
    include_ignored: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """List logged events, newest first."""
    query = select(WebhookEventLog)
    if status_filter:
        query = query.where(WebhookEventLog.status == status_filter)
    if event_type:
        query = query.where(WebhookEventLog.event_type == event_type)
    if not include_ignored:
        query = query.where(WebhookEventLog.ignored_at.is_(None))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(WebhookEventLog.received_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return Page[WebhookEventResponse](
        items=[WebhookEventResponse.model_validate(e) for e in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/summary", response_model=WebhookEventSummary)
async def events_summary(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Counts by status, and failures nobody has looked at yet."""
    rows = await db.execute(
        select(WebhookEventLog.status, func.count()).group_by(WebhookEventLog.status)
    )
    by_status = {s.value: 0 for s in WebhookStatus}
    for event_status, count in rows.all():
        by_status[event_status.value] = count

    failed_not_ignored = await db.execute(
        select(func.count()).where(
            WebhookEventLog.status == WebhookStatus.FAILED,
            WebhookEventLog.ignored_at.is_(None),
        )
    )
    return WebhookEventSummary(
        by_status=by_status,
        failed_not_ignored_count=failed_not_ignored.scalar_one(),
        total=sum(by_status.values()),
    )


@router.get("/{event_id}", response_model=WebhookEventResponse)
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Get a logged event with its payload."""
    return WebhookEventResponse.model_validate(await _get_event(db, event_id))


@router.post("/{event_id}/replay", response_model=WebhookEventResponse)
async def replay_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
    email: EmailService = Depends(get_email_service),
):
    """Run a stored event through processing again."""
    event = await _get_event(db, event_id)

    if event.status not in REPLAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot replay event in status {event.status.value}",
        )
    if event.ignored_at is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot replay an ignored event",
        )
    if not await can_replay(db, event):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Event already created an entity that still exists",
        )

    result = await dispatch_event(db, event.event_type, event.payload, email)

    event.retry_count = (event.retry_count or 0) + 1
    event.last_retried_at = datetime.utcnow()
    if result.ok:
        event.status = WebhookStatus.PROCESSED
        event.processed_at = datetime.utcnow()
        if result.noop:
            event.error_message = f"Replay completed (noop): {result.message}"
        else:
            event.error_message = f"Replay successful: {result.message}"
        if result.related_entity_id:
            event.related_entity_id = result.related_entity_id
            event.related_entity_type = result.related_entity_type
    else:
        event.status = WebhookStatus.FAILED
        event.processed_at = datetime.utcnow()
        event.error_message = result.message
    await db.commit()
    await db.refresh(event)

    logger.info(f"[WEBHOOK] Replayed event {event.event_id}: {event.error_message}")
    return WebhookEventResponse.model_validate(event)


@router.post("/{event_id}/ignore", response_model=WebhookEventResponse)
async def ignore_event(
    event_id: str,
    data: IgnoreEventRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Hide an event from the failure queue, with a note saying why."""
    if not data.note or not data.note.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Ignore note is required")

    event = await _get_event(db, event_id)
    event.ignored_at = datetime.utcnow()
    event.ignored_by_id = current_user.db_user_id
    event.ignore_note = data.note.strip()
    await db.commit()
    await db.refresh(event)

    logger.info(f"[WEBHOOK] Event {event.event_id} ignored by {current_user.name}")
    return WebhookEventResponse.model_validate(event)
