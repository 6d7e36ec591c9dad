"""Consignment change requests sent to clients for confirmation."""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    String, DateTime, Date, ForeignKey, Enum as SQLEnum, Text, Integer, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base
from geardesk.models.enums import ChangeRequestStatus
from geardesk.models.equipment import Equipment


class ConsignmentChangeRequest(Base):
    """Proposed payout or end-date change that the consignor must confirm."""

    __tablename__ = "consignment_change_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    # Payouts (INTEGER CENTS)
    current_payout_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    proposed_payout_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    client_adjusted_payout_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    final_payout_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    proposed_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ChangeRequestStatus] = mapped_column(
        SQLEnum(ChangeRequestStatus),
        default=ChangeRequestStatus.PENDING_CLIENT,
        nullable=False,
    )
    approved_by_admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    client_confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    equipment: Mapped[Equipment] = relationship(Equipment, lazy="selectin")
