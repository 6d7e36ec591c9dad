"""Catalog, blocking issue and enrichment review schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from geardesk.models.enums import IssueSeverity, IssueStatus, SuggestionStatus
from geardesk.schemas.base import BaseSchema, IDMixin


class CatalogItemResponse(BaseSchema, IDMixin):
    output_text: Optional[str] = None
    make: Optional[str] = None
    product_type: Optional[str] = None
    specifications: dict[str, Any] = {}
    buy_low: Optional[int] = None
    buy_high: Optional[int] = None
    consign_low: Optional[int] = None
    consign_high: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class CatalogItemUpdate(BaseSchema):
    """``specifications`` is merged into the stored specs; null values remove keys."""

    output_text: Optional[str] = None
    make: Optional[str] = None
    product_type: Optional[str] = None
    specifications: Optional[dict[str, Any]] = None
    buy_low: Optional[int] = None
    buy_high: Optional[int] = None
    consign_low: Optional[int] = None
    consign_high: Optional[int] = None
    is_active: Optional[bool] = None


class CatalogItemDetail(BaseModel):
    item: CatalogItemResponse
    open_issues: list["IssueResponse"] = []


class IssueResponse(BaseSchema, IDMixin):
    catalog_item_id: UUID
    issue_type: str
    severity: IssueSeverity
    status: IssueStatus
    message: str
    details: Optional[dict[str, Any]] = None
    first_detected_at: datetime
    last_detected_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by_id: Optional[UUID] = None
    resolution_note: Optional[str] = None


class IssuesSummary(BaseModel):
    open_blocking_count: int
    by_type: dict[str, int]


class ResolveIssueRequest(BaseModel):
    resolution_note: Optional[str] = None


class SuggestionResponse(BaseSchema, IDMixin):
    catalog_item_id: UUID
    lensfun_lens_id: Optional[UUID] = None
    match_score: float
    match_confidence: str
    match_reasons: list[str] = []
    suggested_specs: dict[str, Any] = {}
    specs_before: Optional[dict[str, Any]] = None
    specs_after: Optional[dict[str, Any]] = None
    status: SuggestionStatus
    reviewed_by_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None
    created_at: datetime
    catalog_output_text: Optional[str] = None
    catalog_make: Optional[str] = None
    catalog_product_type: Optional[str] = None
    catalog_specifications: Optional[dict[str, Any]] = None


class ReviewDecision(BaseModel):
    note: Optional[str] = None
    overwrite: bool = False


class SuggestionSummary(BaseModel):
    by_status: dict[str, int]
    total: int


CatalogItemDetail.model_rebuild()
