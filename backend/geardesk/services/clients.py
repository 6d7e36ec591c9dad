"""Client deduplication, merging and history."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.enums import AcquisitionType
from geardesk.models.equipment import Equipment
from geardesk.models.purchase import PendingPurchase
from geardesk.models.vendor import Client

logger = logging.getLogger(__name__)


class ClientMergeError(Exception):
    """A merge request that cannot be applied."""


@dataclass
class ClientSummary:
    client: Client
    item_count: int
    buy_count: int
    consignment_count: int
    total_paid_cents: int


def split_name(full_name: str) -> tuple[str, str]:
    """Split "Jane van der Merwe" into ("Jane", "van der Merwe")."""
    parts = (full_name or "").strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


async def find_or_create_client(
    db: AsyncSession,
    first_name: str,
    last_name: str,
    phone: str,
    email: Optional[str] = None,
) -> Client:
    """Return the client matching phone or email, creating one if none exists.

    A missing email on the existing row is filled in. Merged rows are never returned.
    """
    conditions = [Client.phone == phone]
    if email:
        conditions.append(Client.email == email)

    result = await db.execute(
        select(Client)
        .where(or_(*conditions), Client.merged_into_id.is_(None))
        .order_by(Client.created_at)
        .limit(1)
    )
    client = result.scalar_one_or_none()

    if client:
        if not client.email and email:
            client.email = email
            logger.info(f"[CLIENTS] Filled email for client {client.id}")
        return client

    client = Client(first_name=first_name, last_name=last_name, phone=phone, email=email or None)
    db.add(client)
    await db.flush()
    logger.info(f"[CLIENTS] Created client {client.id} ({client.full_name})")
    return client


async def merge_clients(db: AsyncSession, source_id: UUID, target_id: UUID) -> Client:
    """Move everything from ``source`` onto ``target`` and mark the source merged."""
    if source_id == target_id:
        raise ClientMergeError("Cannot merge a client with itself")

    source = await db.get(Client, source_id)
    target = await db.get(Client, target_id)
    if source is None or target is None:
        raise ClientMergeError("One or both clients not found")
    if source.merged_into_id is not None:
        raise ClientMergeError("Source client has already been merged")
    if target.merged_into_id is not None:
        raise ClientMergeError("Target client has been merged into another client")

    await db.execute(
        update(Equipment).where(Equipment.client_id == source_id).values(client_id=target_id)
    )
    await db.execute(
        update(PendingPurchase)
        .where(PendingPurchase.client_id == source_id)
        .values(client_id=target_id)
    )

    if not target.email and source.email:
        target.email = source.email

    source.merged_into_id = target_id
    source.merged_at = datetime.utcnow()
    await db.flush()

    logger.info(f"[CLIENTS] Merged {source.full_name} ({source_id}) into {target.full_name} ({target_id})")
    return target


async def get_client_with_history(
    db: AsyncSession, client_id: UUID
) -> Optional[tuple[Client, list[Equipment], list[PendingPurchase]]]:
    """The client with equipment and purchases, newest first."""
    client = await db.get(Client, client_id)
    if client is None:
        return None

    equipment = await db.execute(
        select(Equipment)
        .where(Equipment.client_id == client_id)
        .order_by(Equipment.created_at.desc())
    )
    purchases = await db.execute(
        select(PendingPurchase)
        .where(PendingPurchase.client_id == client_id)
        .order_by(PendingPurchase.created_at.desc())
    )
    return client, list(equipment.scalars().all()), list(purchases.scalars().all())


async def list_clients(
    db: AsyncSession,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[ClientSummary]:
    """Clients that have not been merged away, with equipment stats."""
    outright = Equipment.acquisition_type == AcquisitionType.PURCHASED_OUTRIGHT
    consigned = Equipment.acquisition_type == AcquisitionType.CONSIGNMENT

    stmt = (
        select(
            Client,
            func.count(Equipment.id),
            func.coalesce(func.sum(case((outright, 1), else_=0)), 0),
            func.coalesce(func.sum(case((consigned, 1), else_=0)), 0),
            func.coalesce(
                func.sum(case((outright, Equipment.purchase_price_cents), else_=0)), 0
            ),
        )
        .outerjoin(Equipment, Equipment.client_id == Client.id)
        .where(Client.merged_into_id.is_(None))
        .group_by(Client.id)
        .order_by(Client.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                Client.first_name.ilike(pattern),
                Client.last_name.ilike(pattern),
                Client.phone.ilike(pattern),
                Client.email.ilike(pattern),
            )
        )

    result = await db.execute(stmt)
    return [
        ClientSummary(
            client=row[0],
            item_count=int(row[1]),
            buy_count=int(row[2]),
            consignment_count=int(row[3]),
            total_paid_cents=int(row[4]),
        )
        for row in result.all()
    ]
