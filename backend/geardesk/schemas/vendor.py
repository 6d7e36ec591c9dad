"""Vendor and client schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from geardesk.models.enums import AcquisitionType, EquipmentStatus, PurchaseStatus
from geardesk.schemas.base import BaseSchema, IDMixin, TimestampMixin


class VendorCreate(BaseSchema):
    """Create a new vendor."""

    name: str = Field(..., min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    notes: Optional[str] = None


class VendorUpdate(BaseSchema):
    """Update vendor."""

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class VendorResponse(BaseSchema, IDMixin, TimestampMixin):
    """Vendor response."""

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    notes: Optional[str] = None


class ClientResponse(BaseSchema, IDMixin, TimestampMixin):
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    merged_into_id: Optional[UUID] = None
    merged_at: Optional[datetime] = None


class ClientListItem(ClientResponse):
    """Client with purchase statistics."""

    item_count: int = 0
    buy_count: int = 0
    consignment_count: int = 0
    total_paid_cents: int = 0


class ClientEquipmentSummary(BaseSchema, IDMixin):
    sku: str
    name: str
    acquisition_type: AcquisitionType
    status: EquipmentStatus
    purchase_price_cents: int
    selling_price_cents: int


class ClientPurchaseSummary(BaseSchema, IDMixin):
    status: PurchaseStatus
    total_quote_amount_cents: int
    invoice_number: Optional[str] = None
    created_at: datetime


class ClientDetailResponse(BaseModel):
    client: ClientResponse
    equipment: list[ClientEquipmentSummary]
    purchases: list[ClientPurchaseSummary]


class ClientMergeRequest(BaseSchema):
    """Merge this client (the source) into ``target_id``."""

    target_id: UUID
