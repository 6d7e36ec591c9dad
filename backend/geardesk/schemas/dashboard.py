"""Dashboard schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from geardesk.models.enums import ActivityAction
from geardesk.schemas.base import BaseSchema, IDMixin


class ActivityResponse(BaseSchema, IDMixin):
    user_id: Optional[UUID] = None
    action: ActivityAction
    entity_type: str
    entity_id: UUID
    details: Optional[dict[str, Any]] = None
    created_at: datetime


class DashboardStats(BaseModel):
    total_inventory: int
    pending_inspection: int
    in_repair: int
    ready_for_sale: int
    active_vendors: int
    total_value_cents: int
    recent_activity: list[ActivityResponse]


class NotificationCounts(BaseModel):
    incoming: int
    awaiting_payment: int
    inspections_in_progress: int
    failed_webhooks: int
    open_catalog_issues: int
    pending_enrichment_reviews: int
