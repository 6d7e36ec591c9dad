"""Scheduled jobs, triggered by an external scheduler."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.config import get_settings
from geardesk.core.database import get_db
from geardesk.services.delivery import send_tracking_reminders
from geardesk.services.email import EmailService, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


async def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Bearer CRON_SECRET when one is configured."""
    secret = get_settings().cron_secret
    if secret and authorization != f"Bearer {secret}":
        logger.warning("[CRON] Rejected request with missing or wrong secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/tracking-reminders", dependencies=[Depends(require_cron_secret)])
async def tracking_reminders(
    db: AsyncSession = Depends(get_db),
    email: EmailService = Depends(get_email_service),
):
    """Daily: remind clients to send courier tracking, flagging those who never do."""
    run = await send_tracking_reminders(db, email)
    return {
        "success": True,
        "reminders_sent": run.reminders_sent,
        "flagged": run.flagged,
        "skipped": run.skipped,
        "flagged_purchase_ids": run.flagged_purchase_ids,
    }
