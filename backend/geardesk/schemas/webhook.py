"""Inbound webhook envelope and payloads (camelCase on the wire)."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from geardesk.models.enums import WebhookEventType, WebhookStatus
from geardesk.schemas.base import BaseSchema, IDMixin


class WebhookEnvelope(BaseModel):
    """Every webhook carries a unique event id for idempotency."""

    event_id: UUID = Field(validation_alias=AliasChoices("event_id", "eventId"))
    event_type: WebhookEventType = Field(validation_alias=AliasChoices("event_type", "eventType"))
    version: str = Field(pattern=r"^\d+\.\d+$")
    timestamp: datetime
    payload: dict[str, Any]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class QuoteItem(_CamelModel):
    """A quoted item. ``ocr_*`` fields are for matching only and never shown to users."""

    ocr_text: Optional[str] = Field(None, alias="ocrText")
    ocr_brand: Optional[str] = Field(None, alias="ocrBrand")
    ocr_model: Optional[str] = Field(None, alias="ocrModel")

    name: str = Field(..., min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    category: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None
    serial_number: Optional[str] = Field(None, alias="serialNumber")

    # Rand amounts as sent by the bot
    bot_estimated_price: Optional[float] = Field(None, alias="botEstimatedPrice", ge=0)
    proposed_price: Optional[float] = Field(None, alias="proposedPrice", ge=0)
    suggested_sell_price: Optional[float] = Field(None, alias="suggestedSellPrice", gt=0)

    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")


class QuoteAcceptedPayloadV1(_CamelModel):
    customer_name: str = Field(..., alias="customerName", min_length=1)
    customer_phone: str = Field(..., alias="customerPhone", min_length=7)
    customer_email: Optional[EmailStr] = Field(None, alias="customerEmail")
    whatsapp_conversation_id: Optional[str] = Field(None, alias="whatsappConversationId")
    total_quote_amount: Optional[float] = Field(None, alias="totalQuoteAmount", gt=0)
    bot_quote_accepted_at: Optional[datetime] = Field(None, alias="botQuoteAcceptedAt")
    bot_conversation_data: Optional[dict[str, Any]] = Field(None, alias="botConversationData")
    items: list[QuoteItem] = Field(..., min_length=1)


class QuoteDeclinedPayloadV1(_CamelModel):
    customer_phone: str = Field(..., alias="customerPhone", min_length=7)
    whatsapp_conversation_id: Optional[str] = Field(None, alias="whatsappConversationId")
    reason: Optional[str] = None


class WebhookEventResponse(BaseSchema, IDMixin):
    """Admin view of a logged webhook event."""

    event_id: str
    event_type: str
    version: str
    payload: dict[str, Any]
    status: WebhookStatus
    error_message: Optional[str] = None
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
    received_at: datetime
    processed_at: Optional[datetime] = None
    retry_count: int
    last_retried_at: Optional[datetime] = None
    ignored_at: Optional[datetime] = None
    ignored_by_id: Optional[UUID] = None
    ignore_note: Optional[str] = None
    source_ip: Optional[str] = None
    signature_provided: Optional[str] = None
    signature_computed: Optional[str] = None
    signature_valid: Optional[bool] = None


class WebhookEventSummary(BaseModel):
    by_status: dict[str, int]
    failed_not_ignored_count: int
    total: int


class IgnoreEventRequest(BaseModel):
    note: Optional[str] = None
