"""WhatsApp (Kapso) schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    to: str = Field(..., min_length=7)
    body: str = Field(..., min_length=1, max_length=4096)
    phone_number_id: Optional[str] = None


class ConversationUpdate(BaseModel):
    status: Optional[str] = None
    assigned_to: Optional[str] = None


class PhoneConfig(BaseModel):
    configured: bool
    phone_number_id: Optional[str] = None
