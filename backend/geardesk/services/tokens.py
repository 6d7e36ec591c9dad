"""One-time quote confirmation tokens."""

import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.config import get_settings
from geardesk.models.purchase import PendingPurchase


def generate_quote_token() -> str:
    """64 hex characters (32 random bytes)."""
    return secrets.token_hex(32)


def token_expiry(days: Optional[int] = None) -> datetime:
    if days is None:
        days = get_settings().quote_token_ttl_days
    return datetime.utcnow() + timedelta(days=days)


def issue_quote_token(purchase: PendingPurchase) -> str:
    """Attach a fresh token and expiry to the purchase."""
    purchase.quote_confirmation_token = generate_quote_token()
    purchase.quote_token_expires_at = token_expiry()
    return purchase.quote_confirmation_token


async def validate_quote_token(
    db: AsyncSession, token: str
) -> Optional[tuple[PendingPurchase, bool]]:
    """Look up a purchase by token.

    Returns None for an unknown or expired token, otherwise the purchase and whether
    the client has already accepted or declined.
    """
    if not token:
        return None

    result = await db.execute(
        select(PendingPurchase).where(PendingPurchase.quote_confirmation_token == token)
    )
    purchase = result.scalar_one_or_none()
    if purchase is None:
        return None

    if purchase.quote_token_expires_at and purchase.quote_token_expires_at < datetime.utcnow():
        return None

    already_responded = (
        purchase.client_accepted_at is not None or purchase.client_declined_at is not None
    )
    return purchase, already_responded


def invalidate_quote_token(purchase: PendingPurchase) -> None:
    """Make the link single-use."""
    purchase.quote_confirmation_token = None
    purchase.quote_token_expires_at = None
