"""Product and template schemas."""

from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from geardesk.models.enums import ProductType
from geardesk.schemas.base import BaseSchema, IDMixin, TimestampMixin


class QuestionTemplateResponse(BaseSchema, IDMixin):
    question: str
    question_order: int
    is_required: bool
    category: Optional[str] = None


class AccessoryTemplateCreate(BaseSchema):
    product_id: UUID
    accessory_name: str = Field(..., min_length=1, max_length=255)
    accessory_order: int = 0
    is_required: bool = False
    penalty_amount_cents: int = Field(0, ge=0)


class AccessoryTemplateResponse(BaseSchema, IDMixin):
    product_id: UUID
    accessory_name: str
    accessory_order: int
    is_required: bool
    penalty_amount_cents: int


class ProductCreate(BaseSchema):
    """Create a catalog product with its price bands (cents)."""

    name: str = Field(..., min_length=1, max_length=255)
    brand: str = Field(..., min_length=1, max_length=120)
    model: str = Field(..., min_length=1, max_length=255)
    variant: str = Field("Standard", max_length=120)
    product_type: ProductType
    buy_price_min_cents: int = Field(0, ge=0)
    buy_price_max_cents: int = Field(0, ge=0)
    consign_price_min_cents: int = Field(0, ge=0)
    consign_price_max_cents: int = Field(0, ge=0)
    description: Optional[str] = None
    specifications: Optional[dict[str, Any]] = None
    questions: list[str] = Field(default_factory=list)


class ProductResponse(BaseSchema, IDMixin, TimestampMixin):
    name: str
    brand: str
    model: str
    variant: str
    product_type: ProductType
    buy_price_min_cents: int
    buy_price_max_cents: int
    consign_price_min_cents: int
    consign_price_max_cents: int
    description: Optional[str] = None
    specifications: Optional[dict[str, Any]] = None
    active: bool


class ProductDetailResponse(ProductResponse):
    question_templates: list[QuestionTemplateResponse] = []
    accessory_templates: list[AccessoryTemplateResponse] = []
