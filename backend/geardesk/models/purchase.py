"""PendingPurchase, PendingItem and ClientDetails models."""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean, String, DateTime, Date, ForeignKey, Enum as SQLEnum, Text, Integer, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base, JSONType
from geardesk.models.enums import PurchaseStatus, PendingItemStatus

if TYPE_CHECKING:
    from geardesk.models.inspection import InspectionSession


class PendingPurchase(Base):
    """A quote accepted on WhatsApp (or a walk-in) moving toward payment and stock."""

    __tablename__ = "pending_purchases"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Customer
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    whatsapp_conversation_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, index=True
    )

    # Bot quote (INTEGER CENTS)
    total_quote_amount_cents: Mapped[int] = mapped_column(Integer, default=0)
    bot_quote_accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    bot_conversation_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    status: Mapped[PurchaseStatus] = mapped_column(
        SQLEnum(PurchaseStatus),
        default=PurchaseStatus.PENDING_REVIEW,
        nullable=False,
        index=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Public quote link (one-time, expiring)
    quote_confirmation_token: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, nullable=True, index=True
    )
    quote_token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Client response
    client_accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    client_declined_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    client_decline_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Courier delivery
    courier_company: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    tracking_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    tracking_reminders_sent: Mapped[int] = mapped_column(Integer, default=0)
    last_tracking_reminder_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    flagged_for_follow_up: Mapped[bool] = mapped_column(Boolean, default=False)

    # Receiving
    gear_received_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    gear_received_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    client_notified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Final quote and payment
    final_quote_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_received_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    invoice_number: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)
    invoice_total_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    items: Mapped[list["PendingItem"]] = relationship(
        "PendingItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PendingItem.created_at",
    )
    client_details: Mapped[Optional["ClientDetails"]] = relationship(
        "ClientDetails",
        back_populates="purchase",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )
    inspection_session: Mapped[Optional["InspectionSession"]] = relationship(
        "InspectionSession",
        back_populates="purchase",
        uselist=False,
        lazy="selectin",
    )


class PendingItem(Base):
    """A line item on a purchase quote."""

    __tablename__ = "pending_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    purchase_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("pending_purchases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    condition: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # What the bot read off the photos
    ocr_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ocr_brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    ocr_model: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Pricing (INTEGER CENTS)
    bot_estimated_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    proposed_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    suggested_sell_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    final_price_cents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    image_urls: Mapped[list[str]] = mapped_column(JSONType, default=list)

    status: Mapped[PendingItemStatus] = mapped_column(
        SQLEnum(PendingItemStatus),
        default=PendingItemStatus.PENDING,
        nullable=False,
    )
    inspection_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    purchase: Mapped["PendingPurchase"] = relationship("PendingPurchase", back_populates="items")


class ClientDetails(Base):
    """Identity, address and banking details submitted through the quote link."""

    __tablename__ = "client_details"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    purchase_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("pending_purchases.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    surname: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    id_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    passport_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    physical_address: Mapped[str] = mapped_column(Text, nullable=False)
    postal_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Banking
    bank_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    account_holder: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    branch_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    account_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    purchase: Mapped["PendingPurchase"] = relationship(
        "PendingPurchase", back_populates="client_details"
    )
