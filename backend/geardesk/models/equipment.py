"""Equipment stock, price history and repair logs."""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String, DateTime, Date, ForeignKey, Enum as SQLEnum, Text, Integer, Boolean, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base, JSONType
from geardesk.models.enums import (
    AcquisitionType, EquipmentCondition, EquipmentStatus, IntakeStatus, ProductType, RepairStatus,
)

if TYPE_CHECKING:
    from geardesk.models.vendor import Vendor, Client


class Equipment(Base):
    """A physical unit in stock."""

    __tablename__ = "equipment"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sku: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[ProductType] = mapped_column(
        SQLEnum(ProductType), default=ProductType.OTHER, nullable=False
    )
    condition: Mapped[EquipmentCondition] = mapped_column(
        SQLEnum(EquipmentCondition), default=EquipmentCondition.GOOD, nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    shelf_location: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSONType, default=list)

    # Acquisition
    acquisition_type: Mapped[AcquisitionType] = mapped_column(
        SQLEnum(AcquisitionType),
        default=AcquisitionType.PURCHASED_OUTRIGHT,
        nullable=False,
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True
    )
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Pricing (INTEGER CENTS)
    purchase_price_cents: Mapped[int] = mapped_column(Integer, default=0)
    selling_price_cents: Mapped[int] = mapped_column(Integer, default=0)
    cost_price_cents: Mapped[int] = mapped_column(Integer, default=0)
    consignment_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # % to vendor
    consignment_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[EquipmentStatus] = mapped_column(
        SQLEnum(EquipmentStatus),
        default=EquipmentStatus.PENDING_INSPECTION,
        nullable=False,
        index=True,
    )
    intake_status: Mapped[IntakeStatus] = mapped_column(
        SQLEnum(IntakeStatus),
        default=IntakeStatus.PENDING_INTAKE,
        nullable=False,
    )
    in_repair: Mapped[bool] = mapped_column(Boolean, default=False)

    source_verified_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("verified_gear_items.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )

    # WooCommerce
    woocommerce_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    synced_to_woo: Mapped[bool] = mapped_column(Boolean, default=False)
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    sold_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    vendor: Mapped[Optional["Vendor"]] = relationship("Vendor", back_populates="equipment")
    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="equipment")


class PriceHistory(Base):
    """Audit of selling price changes."""

    __tablename__ = "price_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True
    )
    old_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    new_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    changed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class RepairLog(Base):
    """A unit sent out to a technician."""

    __tablename__ = "repair_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True
    )
    technician_name: Mapped[str] = mapped_column(String(255), nullable=False)
    issue: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[RepairStatus] = mapped_column(
        SQLEnum(RepairStatus), default=RepairStatus.SENT_TO_TECH, nullable=False
    )
    cost_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    equipment: Mapped["Equipment"] = relationship("Equipment", lazy="selectin")
