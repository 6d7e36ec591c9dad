"""Purchase lifecycle schemas (incoming gear, quote confirmation, client details)."""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from geardesk.models.enums import (
    ClientSelection, PendingItemStatus, PurchaseStatus, VerifiedCondition,
)
from geardesk.schemas.base import BaseSchema, IDMixin, TimestampMixin


class PendingItemResponse(BaseSchema, IDMixin):
    name: str
    brand: Optional[str] = None
    model: Optional[str] = None
    category: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    serial_number: Optional[str] = None
    bot_estimated_price_cents: Optional[int] = None
    proposed_price_cents: Optional[int] = None
    suggested_sell_price_cents: Optional[int] = None
    final_price_cents: Optional[int] = None
    image_urls: list[str] = []
    status: PendingItemStatus
    inspection_notes: Optional[str] = None


class PendingItemUpdate(BaseSchema):
    """Staff review of a quoted item.

    Setting ``proposed_price_cents`` alone marks the item PRICE_ADJUSTED.
    """

    proposed_price_cents: Optional[int] = Field(None, ge=0)
    final_price_cents: Optional[int] = Field(None, ge=0)
    status: Optional[PendingItemStatus] = None
    inspection_notes: Optional[str] = None


class ClientDetailsResponse(BaseSchema, IDMixin):
    full_name: str
    surname: str
    email: str
    phone: str
    id_number: Optional[str] = None
    passport_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    physical_address: str
    postal_address: Optional[str] = None
    bank_name: Optional[str] = None
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    branch_code: Optional[str] = None
    account_type: Optional[str] = None
    submitted_at: datetime


class PurchaseResponse(BaseSchema, IDMixin, TimestampMixin):
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    whatsapp_conversation_id: Optional[str] = None
    total_quote_amount_cents: int
    bot_quote_accepted_at: Optional[datetime] = None
    status: PurchaseStatus
    notes: Optional[str] = None
    vendor_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    quote_token_expires_at: Optional[datetime] = None
    client_accepted_at: Optional[datetime] = None
    client_declined_at: Optional[datetime] = None
    client_decline_reason: Optional[str] = None
    gear_received_at: Optional[datetime] = None
    gear_received_by_id: Optional[UUID] = None
    client_notified_at: Optional[datetime] = None
    final_quote_sent_at: Optional[datetime] = None
    payment_approved_at: Optional[datetime] = None
    payment_received_at: Optional[datetime] = None
    invoice_number: Optional[str] = None
    invoice_total_cents: Optional[int] = None
    courier_company: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_submitted_at: Optional[datetime] = None
    tracking_reminders_sent: int = 0
    flagged_for_follow_up: bool = False
    items: list[PendingItemResponse] = []
    client_details: Optional[ClientDetailsResponse] = None


class PurchaseUpdate(BaseSchema):
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(None, min_length=7, max_length=50)
    customer_email: Optional[EmailStr] = None
    notes: Optional[str] = None
    vendor_id: Optional[UUID] = None


class WalkInItem(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    brand: Optional[str] = None
    model: Optional[str] = None
    category: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    serial_number: Optional[str] = None
    proposed_price_cents: Optional[int] = Field(None, ge=0)


class WalkInCreate(BaseSchema):
    """A customer who brought gear to the counter."""

    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=7, max_length=50)
    customer_email: Optional[EmailStr] = None
    notes: Optional[str] = None
    items: list[WalkInItem] = Field(..., min_length=1)


class MarkReceivedResponse(BaseModel):
    purchase: PurchaseResponse
    session_id: UUID
    session_number: str
    undo_expires_at: datetime


class MarkPaidResponse(BaseModel):
    purchase: PurchaseResponse
    equipment_created: int
    items_skipped: int
    items_requiring_repair: int
    errors: list[str] = []


class _CamelSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )


class ClientDetailsSubmit(_CamelSchema):
    """Details form on the public quote page (camelCase on the wire)."""

    full_name: str = Field(..., min_length=1)
    surname: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    id_number: Optional[str] = None
    passport_number: Optional[str] = None
    physical_address: str = Field(..., min_length=1)
    postal_address: Optional[str] = None
    bank_name: Optional[str] = None
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    branch_code: Optional[str] = None
    account_type: Optional[str] = None


class DeclineRequest(BaseModel):
    reason: Optional[str] = None


class QuoteLineItem(BaseModel):
    id: UUID
    name: str
    brand: Optional[str] = None
    model: Optional[str] = None
    condition: Optional[str] = None
    image_urls: list[str] = []
    price_cents: Optional[int] = None
    price_display: str


class QuoteConfirmationResponse(BaseModel):
    """Public view of a quote behind its token."""

    purchase_id: UUID
    customer_name: str
    status: PurchaseStatus
    items: list[QuoteLineItem]
    total_quote_amount_cents: int
    total_display: str
    expires_at: Optional[datetime] = None
    already_responded: bool
    accepted: bool
    declined: bool
    details_submitted: bool


class QuoteActionResponse(BaseModel):
    success: bool = True
    status: PurchaseStatus
    message: str
    extra: dict[str, Any] = {}


class OfferAnswer(BaseModel):
    question: str
    answer: str
    notes: Optional[str] = None


class OfferAccessory(BaseModel):
    name: str
    is_present: bool
    notes: Optional[str] = None


class InspectionOfferItem(BaseModel):
    """An approved item with both prices, for the client to choose between."""

    id: UUID
    verified_item_id: UUID
    client_name: str
    client_description: Optional[str] = None
    product_name: str
    product_brand: Optional[str] = None
    product_model: Optional[str] = None
    verified_condition: VerifiedCondition
    serial_number: Optional[str] = None
    general_notes: Optional[str] = None
    buy_price_cents: int
    buy_price_display: str
    consign_price_cents: int
    consign_price_display: str
    client_selection: Optional[ClientSelection] = None
    images: list[str] = []
    answers: list[OfferAnswer] = []
    accessories: list[OfferAccessory] = []


class InspectionOfferResponse(BaseModel):
    purchase_id: UUID
    customer_name: str
    status: PurchaseStatus
    session_name: Optional[str] = None
    completed_at: Optional[datetime] = None
    items: list[InspectionOfferItem]
    expires_at: Optional[datetime] = None


class ProductSelectionRequest(BaseModel):
    """Buy or consign choice per offered item, keyed by incoming item id."""

    selections: dict[UUID, ClientSelection]


class TrackingSubmit(_CamelSchema):
    courier_company: Optional[str] = None
    tracking_number: Optional[str] = None
