"""Equipment, price history and repair schemas."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from geardesk.models.enums import (
    AcquisitionType, EquipmentCondition, EquipmentStatus, IntakeStatus, ProductType, RepairStatus,
)
from geardesk.schemas.base import BaseSchema, IDMixin, TimestampMixin


class EquipmentCreate(BaseSchema):
    """Manual stock entry. The SKU is generated when omitted."""

    sku: Optional[str] = Field(None, max_length=32)
    name: str = Field(..., min_length=1, max_length=255)
    brand: str = Field(..., min_length=1, max_length=120)
    model: str = Field(..., min_length=1, max_length=255)
    category: ProductType = ProductType.OTHER
    condition: EquipmentCondition = EquipmentCondition.GOOD
    description: Optional[str] = None
    serial_number: Optional[str] = None
    shelf_location: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    acquisition_type: AcquisitionType = AcquisitionType.PURCHASED_OUTRIGHT
    vendor_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    purchase_price_cents: int = Field(0, ge=0)
    selling_price_cents: int = Field(0, ge=0)
    consignment_rate: Optional[int] = Field(None, ge=0, le=100)
    consignment_end_date: Optional[date] = None


class EquipmentUpdate(BaseSchema):
    """Editable fields. Selling price changes go through the price endpoint."""

    sku: Optional[str] = Field(None, max_length=32)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    brand: Optional[str] = None
    model: Optional[str] = None
    category: Optional[ProductType] = None
    condition: Optional[EquipmentCondition] = None
    description: Optional[str] = None
    serial_number: Optional[str] = None
    shelf_location: Optional[str] = None
    images: Optional[list[str]] = None
    status: Optional[EquipmentStatus] = None
    vendor_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    consignment_rate: Optional[int] = Field(None, ge=0, le=100)
    consignment_end_date: Optional[date] = None


class EquipmentResponse(BaseSchema, IDMixin, TimestampMixin):
    sku: str
    name: str
    brand: str
    model: str
    category: ProductType
    condition: EquipmentCondition
    description: Optional[str] = None
    serial_number: Optional[str] = None
    shelf_location: Optional[str] = None
    images: list[str] = []
    acquisition_type: AcquisitionType
    vendor_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    purchase_price_cents: int
    selling_price_cents: int
    cost_price_cents: int
    consignment_rate: Optional[int] = None
    consignment_end_date: Optional[date] = None
    status: EquipmentStatus
    intake_status: IntakeStatus
    in_repair: bool
    source_verified_item_id: Optional[UUID] = None
    woocommerce_id: Optional[int] = None
    synced_to_woo: bool
    last_synced_at: Optional[datetime] = None
    sold_at: Optional[datetime] = None


class PriceUpdate(BaseSchema):
    selling_price_cents: int = Field(..., ge=0)
    reason: Optional[str] = None


class PriceUpdateResponse(BaseModel):
    equipment: EquipmentResponse
    old_price_cents: int
    new_price_cents: int
    woo_synced: bool
    woo_error: Optional[str] = None


class PriceHistoryResponse(BaseSchema, IDMixin):
    old_price_cents: int
    new_price_cents: int
    reason: str
    changed_by_id: Optional[UUID] = None
    created_at: datetime


class RepairCreate(BaseSchema):
    equipment_id: UUID
    technician_name: str = Field(..., min_length=1, max_length=255)
    issue: str = Field(..., min_length=1)
    cost_cents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class RepairUpdate(BaseSchema):
    status: Optional[RepairStatus] = None
    technician_name: Optional[str] = Field(None, min_length=1, max_length=255)
    cost_cents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class RepairResponse(BaseSchema, IDMixin):
    equipment_id: UUID
    technician_name: str
    issue: str
    status: RepairStatus
    cost_cents: Optional[int] = None
    notes: Optional[str] = None
    sent_at: datetime
    completed_at: Optional[datetime] = None
    equipment_sku: Optional[str] = None
    equipment_name: Optional[str] = None


class PendingRepairItem(BaseModel):
    """A verified item flagged for repair on a paid purchase, not yet in the repair log."""

    verified_item_id: UUID
    purchase_id: UUID
    customer_name: str
    product_name: str
    repair_notes: Optional[str] = None


class RepairListResponse(BaseModel):
    repairs: list[RepairResponse]
    pending_from_inspections: list[PendingRepairItem]
