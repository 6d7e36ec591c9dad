"""Courier delivery follow-up for accepted quotes.

Clients who accept a quote and ship their gear are asked for the courier tracking
number. A daily job reminds those who have not sent it, and after the last
reminder the purchase is flagged for a staff phone call instead.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.config import get_settings
from geardesk.models.enums import ActivityAction
from geardesk.models.purchase import PendingPurchase
from geardesk.services.activity import ActivityService
from geardesk.services.email import EmailService, send_quietly

logger = logging.getLogger(__name__)

FIRST_REMINDER_AFTER = timedelta(days=1)


@dataclass
class ReminderRun:
    reminders_sent: int = 0
    flagged: int = 0
    skipped: int = 0
    flagged_purchase_ids: list[str] = field(default_factory=list)


async def purchases_awaiting_tracking(db: AsyncSession, now: datetime) -> list[PendingPurchase]:
    """Accepted, not declined, not received, no tracking, accepted over a day ago."""
    limit = get_settings().tracking_reminder_limit
    result = await db.execute(
        select(PendingPurchase)
        .where(
            PendingPurchase.client_accepted_at.is_not(None),
            PendingPurchase.client_accepted_at < now - FIRST_REMINDER_AFTER,
            PendingPurchase.client_declined_at.is_(None),
            PendingPurchase.gear_received_at.is_(None),
            PendingPurchase.tracking_number.is_(None),
            PendingPurchase.tracking_reminders_sent < limit,
            PendingPurchase.flagged_for_follow_up.is_(False),
            PendingPurchase.quote_confirmation_token.is_not(None),
        )
        .order_by(PendingPurchase.client_accepted_at)
    )
    return list(result.scalars().all())


async def send_tracking_reminders(
    db: AsyncSession, email: EmailService, now: Optional[datetime] = None
) -> ReminderRun:
    """Send one reminder per waiting purchase, or flag it once the last one is due.

    The reminder count only moves when the email actually went out.
    """
    now = now or datetime.utcnow()
    limit = get_settings().tracking_reminder_limit
    activity = ActivityService(db)
    run = ReminderRun()

    purchases = await purchases_awaiting_tracking(db, now)
    logger.info(f"[TRACKING] {len(purchases)} purchase(s) waiting for tracking details")

    for purchase in purchases:
        if not purchase.customer_email:
            run.skipped += 1
            continue

        if purchase.tracking_reminders_sent >= limit - 1:
            purchase.flagged_for_follow_up = True
            purchase.last_tracking_reminder_at = now
            run.flagged += 1
            run.flagged_purchase_ids.append(str(purchase.id))
            logger.info(f"[TRACKING] Flagged purchase {purchase.id} for manual follow-up")
            await send_quietly(
                email.send_tracking_follow_up(
                    purchase.customer_name, purchase.customer_phone, purchase.id
                ),
                f"tracking follow-up notice for purchase {purchase.id}",
            )
            continue

        reminder_number = purchase.tracking_reminders_sent + 1
        sent = await send_quietly(
            email.send_tracking_reminder(
                purchase.customer_name,
                purchase.customer_email,
                purchase.quote_confirmation_token,
                reminder_number,
            ),
            f"tracking reminder for purchase {purchase.id}",
        )
        if not sent:
            run.skipped += 1
            continue

        purchase.tracking_reminders_sent = reminder_number
        purchase.last_tracking_reminder_at = now
        await activity.log_purchase_status(
            ActivityAction.TRACKING_REMINDER_SENT, purchase.id, reminder_number=reminder_number
        )
        run.reminders_sent += 1
        logger.info(f"[TRACKING] Sent reminder {reminder_number}/{limit} for purchase {purchase.id}")

    await db.commit()
    return run
