"""Store integration settings schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from geardesk.schemas.base import BaseSchema


class WooSettingsUpdate(BaseSchema):
    store_url: str = Field(..., min_length=1, max_length=255)
    consumer_key: str = Field(..., min_length=1, max_length=255)
    consumer_secret: str = Field(..., min_length=1, max_length=255)
    auto_sync: bool = False


class WooSettingsResponse(BaseModel):
    """The consumer secret is never returned in full."""

    configured: bool
    source: Optional[str] = None
    store_url: Optional[str] = None
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    auto_sync: bool = False
    updated_at: Optional[datetime] = None


class WooConnectionTest(BaseModel):
    success: bool
    message: str
