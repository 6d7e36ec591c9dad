"""Bundle and consignment change request schemas."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from geardesk.models.enums import BundleStatus, ChangeRequestStatus
from geardesk.schemas.base import BaseSchema, IDMixin, TimestampMixin
from geardesk.schemas.equipment import EquipmentResponse


class BundleCreate(BaseSchema):
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    selling_price_cents: int
    equipment_ids: list[UUID]


class BundleItemResponse(BaseSchema, IDMixin):
    equipment_id: UUID
    equipment: EquipmentResponse


class BundleResponse(BaseSchema, IDMixin, TimestampMixin):
    title: str
    description: Optional[str] = None
    selling_price_cents: int
    cost_price_cents: int
    status: BundleStatus
    woocommerce_id: Optional[int] = None
    synced_to_woo: bool
    last_synced_at: Optional[datetime] = None
    approved_by_id: Optional[UUID] = None
    dissolved_at: Optional[datetime] = None
    items: list[BundleItemResponse] = []


class ChangeRequestCreate(BaseSchema):
    equipment_id: UUID
    proposed_payout_cents: int = Field(..., ge=0)
    proposed_end_date: Optional[date] = None
    reason: Optional[str] = None


class ChangeRequestResponse(BaseSchema, IDMixin, TimestampMixin):
    equipment_id: UUID
    current_payout_cents: int
    proposed_payout_cents: int
    client_adjusted_payout_cents: Optional[int] = None
    final_payout_cents: Optional[int] = None
    proposed_end_date: Optional[date] = None
    reason: Optional[str] = None
    status: ChangeRequestStatus
    approved_by_admin_id: Optional[UUID] = None
    client_confirmed_at: Optional[datetime] = None


class ConsignmentReviewResponse(BaseModel):
    """What the consignor sees on the public review page."""

    status: ChangeRequestStatus
    equipment_name: str
    equipment_sku: str
    current_payout_cents: int
    proposed_payout_cents: int
    proposed_end_date: Optional[date] = None
    current_end_date: Optional[date] = None
    reason: Optional[str] = None
    client_confirmed_at: Optional[datetime] = None


class ConsignmentConfirmRequest(BaseModel):
    adjusted_payout_cents: Optional[int] = Field(None, ge=0)
