"""Bundles of intake-complete equipment sold as one listing."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String, DateTime, ForeignKey, Enum as SQLEnum, Text, Integer, Boolean, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base
from geardesk.models.enums import BundleStatus
from geardesk.models.equipment import Equipment


class Bundle(Base):
    """A kit (e.g. body + lens) with its own selling price."""

    __tablename__ = "bundles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    selling_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_price_cents: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[BundleStatus] = mapped_column(
        SQLEnum(BundleStatus), default=BundleStatus.ACTIVE, nullable=False, index=True
    )

    woocommerce_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    synced_to_woo: Mapped[bool] = mapped_column(Boolean, default=False)
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    dissolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    items: Mapped[list["BundleItem"]] = relationship(
        "BundleItem", cascade="all, delete-orphan", lazy="selectin"
    )


class BundleItem(Base):
    """Membership of a unit in a bundle."""

    __tablename__ = "bundle_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    bundle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bundles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    equipment: Mapped[Equipment] = relationship(Equipment, lazy="selectin")
