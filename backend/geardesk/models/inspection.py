"""Inspection models: sessions, incoming items and their verified records."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String, DateTime, ForeignKey, Enum as SQLEnum, Text, Integer, Boolean, Numeric, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base, JSONType
from geardesk.models.enums import (
    SessionStatus, InspectionStatus, VerifiedCondition, ClientSelection, OverrideReason,
)

if TYPE_CHECKING:
    from geardesk.models.purchase import PendingPurchase
    from geardesk.models.product import Product


class InspectionSession(Base):
    """A batch of incoming gear being checked before the final quote."""

    __tablename__ = "inspection_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    session_name: Mapped[str] = mapped_column(String(255), nullable=False)

    purchase_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("pending_purchases.id", ondelete="CASCADE"),
        unique=True,
        nullable=True,
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[SessionStatus] = mapped_column(
        SQLEnum(SessionStatus),
        default=SessionStatus.IN_PROGRESS,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    purchase: Mapped[Optional["PendingPurchase"]] = relationship(
        "PendingPurchase", back_populates="inspection_session"
    )
    items: Mapped[list["IncomingGearItem"]] = relationship(
        "IncomingGearItem",
        back_populates="session",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="IncomingGearItem.created_at",
    )


class IncomingGearItem(Base):
    """What the client said they are sending, before verification."""

    __tablename__ = "incoming_gear_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("inspection_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    pending_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("pending_items.id", ondelete="SET NULL"), nullable=True
    )

    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    client_model: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    client_serial_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    client_images: Mapped[list[str]] = mapped_column(JSONType, default=list)
    client_selection: Mapped[Optional[ClientSelection]] = mapped_column(
        SQLEnum(ClientSelection), nullable=True
    )

    inspection_status: Mapped[InspectionStatus] = mapped_column(
        SQLEnum(InspectionStatus),
        default=InspectionStatus.UNVERIFIED,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    session: Mapped["InspectionSession"] = relationship(
        "InspectionSession", back_populates="items"
    )
    verified_item: Mapped[Optional["VerifiedGearItem"]] = relationship(
        "VerifiedGearItem",
        back_populates="incoming_item",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )


class VerifiedGearItem(Base):
    """The inspector's record of an incoming item, tied to a catalog product."""

    __tablename__ = "verified_gear_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    incoming_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("incoming_gear_items.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )

    serial_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    verified_condition: Mapped[VerifiedCondition] = mapped_column(
        SQLEnum(VerifiedCondition),
        default=VerifiedCondition.GOOD,
        nullable=False,
    )
    general_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    not_interested: Mapped[bool] = mapped_column(Boolean, default=False)
    requires_repair: Mapped[bool] = mapped_column(Boolean, default=False)
    repair_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    verified_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    locked: Mapped[bool] = mapped_column(Boolean, default=False)
    reopened_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reopened_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reopen_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    incoming_item: Mapped["IncomingGearItem"] = relationship(
        "IncomingGearItem", back_populates="verified_item"
    )
    product: Mapped["Product"] = relationship("Product", lazy="selectin")
    answers: Mapped[list["VerifiedAnswer"]] = relationship(
        "VerifiedAnswer", cascade="all, delete-orphan", lazy="selectin"
    )
    accessories: Mapped[list["VerifiedAccessory"]] = relationship(
        "VerifiedAccessory",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="VerifiedAccessory.accessory_order",
    )
    pricing_snapshot: Mapped[Optional["PricingSnapshot"]] = relationship(
        "PricingSnapshot", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    price_override: Mapped[Optional["PriceOverride"]] = relationship(
        "PriceOverride", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )


class VerifiedAnswer(Base):
    """Answer to a checklist question."""

    __tablename__ = "verified_answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verified_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("verified_gear_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(String(50), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class VerifiedAccessory(Base):
    """Whether an expected accessory came in the box."""

    __tablename__ = "verified_accessories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verified_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("verified_gear_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    accessory_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_present: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    accessory_order: Mapped[int] = mapped_column(Integer, default=0)


class PricingSnapshot(Base):
    """Offer computed from the product price bands at verification time (INTEGER CENTS)."""

    __tablename__ = "pricing_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verified_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("verified_gear_items.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    base_buy_min_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    base_buy_max_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    base_consign_min_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    base_consign_max_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    condition_multiplier: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False)
    computed_buy_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    computed_consign_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    accessory_penalty_cents: Mapped[int] = mapped_column(Integer, default=0)
    final_buy_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    final_consign_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class PriceOverride(Base):
    """Manual override of the computed offer."""

    __tablename__ = "price_overrides"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verified_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("verified_gear_items.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    override_buy_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    override_consign_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    override_reason: Mapped[OverrideReason] = mapped_column(
        SQLEnum(OverrideReason), nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    overridden_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    overridden_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
