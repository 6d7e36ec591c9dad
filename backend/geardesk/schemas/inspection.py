"""Inspection schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from geardesk.models.enums import (
    ClientSelection, InspectionStatus, OverrideReason, SessionStatus, VerifiedCondition,
)
from geardesk.schemas.base import BaseSchema, IDMixin, TimestampMixin
from geardesk.schemas.product import ProductDetailResponse, ProductResponse


class SessionCreate(BaseSchema):
    """Manual session for a vendor drop-off."""

    session_name: str = Field(..., min_length=1, max_length=255)
    vendor_id: Optional[UUID] = None
    notes: Optional[str] = None


class IncomingItemCreate(BaseSchema):
    client_name: str = Field(..., min_length=1, max_length=255)
    client_brand: Optional[str] = None
    client_model: Optional[str] = None
    client_description: Optional[str] = None
    client_serial_number: Optional[str] = None
    client_images: list[str] = Field(default_factory=list)
    client_selection: Optional[ClientSelection] = None


class PricingSnapshotResponse(BaseSchema, IDMixin):
    base_buy_min_cents: int
    base_buy_max_cents: int
    base_consign_min_cents: int
    base_consign_max_cents: int
    condition_multiplier: Decimal
    computed_buy_price_cents: int
    computed_consign_price_cents: int
    accessory_penalty_cents: int
    final_buy_price_cents: int
    final_consign_price_cents: int
    calculated_at: datetime


class PriceOverrideResponse(BaseSchema, IDMixin):
    override_buy_price_cents: Optional[int] = None
    override_consign_price_cents: Optional[int] = None
    override_reason: OverrideReason
    notes: Optional[str] = None
    overridden_by_id: Optional[UUID] = None
    overridden_at: datetime


class VerifiedAnswerResponse(BaseSchema):
    question_text: str
    answer: str
    notes: Optional[str] = None


class VerifiedAccessoryResponse(BaseSchema):
    accessory_name: str
    is_present: bool
    notes: Optional[str] = None
    accessory_order: int


class VerifiedItemResponse(BaseSchema, IDMixin, TimestampMixin):
    incoming_item_id: UUID
    product_id: UUID
    product: Optional[ProductResponse] = None
    serial_number: Optional[str] = None
    verified_condition: VerifiedCondition
    general_notes: Optional[str] = None
    not_interested: bool
    requires_repair: bool
    repair_notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    approved_by_id: Optional[UUID] = None
    locked: bool
    reopened_at: Optional[datetime] = None
    reopened_by_id: Optional[UUID] = None
    reopen_reason: Optional[str] = None
    answers: list[VerifiedAnswerResponse] = []
    accessories: list[VerifiedAccessoryResponse] = []
    pricing_snapshot: Optional[PricingSnapshotResponse] = None
    price_override: Optional[PriceOverrideResponse] = None


class IncomingItemResponse(BaseSchema, IDMixin, TimestampMixin):
    session_id: UUID
    pending_item_id: Optional[UUID] = None
    client_name: str
    client_brand: Optional[str] = None
    client_model: Optional[str] = None
    client_description: Optional[str] = None
    client_serial_number: Optional[str] = None
    client_images: list[str] = []
    client_selection: Optional[ClientSelection] = None
    inspection_status: InspectionStatus
    verified_item: Optional[VerifiedItemResponse] = None


class SessionSummary(BaseSchema, IDMixin, TimestampMixin):
    session_number: str
    session_name: str
    purchase_id: Optional[UUID] = None
    vendor_id: Optional[UUID] = None
    status: SessionStatus
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    item_count: int = 0
    approved_count: int = 0


class SessionResponse(SessionSummary):
    items: list[IncomingItemResponse] = []


class IncomingItemDetail(BaseModel):
    item: IncomingItemResponse
    product: Optional[ProductDetailResponse] = None


class IdentifyRequest(BaseSchema):
    product_id: UUID


class AnswerInput(BaseSchema):
    question_text: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = None


class AccessoryInput(BaseSchema):
    accessory_name: str = Field(..., min_length=1)
    is_present: bool
    notes: Optional[str] = None


class ItemActionRequest(BaseSchema):
    """``action`` is one of verify, approve, reopen, reject."""

    action: str
    serial_number: Optional[str] = None
    verified_condition: Optional[VerifiedCondition] = None
    general_notes: Optional[str] = None
    not_interested: Optional[bool] = None
    requires_repair: Optional[bool] = None
    repair_notes: Optional[str] = None
    answers: Optional[list[AnswerInput]] = None
    accessories: Optional[list[AccessoryInput]] = None
    reopen_reason: Optional[str] = None
    client_selection: Optional[ClientSelection] = None


class PriceOverrideRequest(BaseSchema):
    override_buy_price_cents: Optional[int] = Field(None, ge=0)
    override_consign_price_cents: Optional[int] = Field(None, ge=0)
    override_reason: str
    notes: Optional[str] = None
