"""Admin review queue for medium-confidence Lensfun matches."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_admin, AuthenticatedUser
from geardesk.models.catalog import EnrichmentSuggestion
from geardesk.models.enums import SuggestionStatus
from geardesk.schemas.catalog import ReviewDecision, SuggestionResponse, SuggestionSummary
from geardesk.services.catalog_issues import scan_catalog_blocking_issues
from geardesk.services.enrichment import apply_reviewed_specs, pick_suggested_lens_specs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/enrichment-reviews", tags=["enrichment-reviews"])


def _suggestion_response(suggestion: EnrichmentSuggestion) -> SuggestionResponse:
    item = suggestion.catalog_item
    return SuggestionResponse.model_validate(suggestion).model_copy(
        update={
            "catalog_output_text": item.output_text,
            "catalog_make": item.make,
            "catalog_product_type": item.product_type,
            "catalog_specifications": item.specifications,
        }
    )


async def _get_pending(db: AsyncSession, suggestion_id: UUID, verb: str) -> EnrichmentSuggestion:
    suggestion = await db.get(EnrichmentSuggestion, suggestion_id)
    if not suggestion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    if suggestion.status != SuggestionStatus.PENDING_REVIEW:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {verb} suggestion in status {suggestion.status.value}",
        )
    return suggestion


def _require_note(note: Optional[str]) -> str:
    note = (note or "").strip()
    if not note:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="note is required")
    return note


@router.get("", response_model=List[SuggestionResponse])
async def list_reviews(
    status_filter: Optional[SuggestionStatus] = Query(SuggestionStatus.PENDING_REVIEW, alias="status"),
    limit: int = Query(200, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Suggestions with their catalog item, best matches first."""
    query = select(EnrichmentSuggestion)
    if status_filter:
        query = query.where(EnrichmentSuggestion.status == status_filter)
    result = await db.execute(
        query.order_by(
            EnrichmentSuggestion.match_score.desc(), EnrichmentSuggestion.created_at.desc()
        ).limit(limit)
    )
    return [_suggestion_response(s) for s in result.scalars().all()]


@router.get("/summary", response_model=SuggestionSummary)
async def reviews_summary(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Suggestion counts by status."""
    rows = await db.execute(
        select(EnrichmentSuggestion.status, func.count()).group_by(EnrichmentSuggestion.status)
    )
    by_status = {s.value: 0 for s in SuggestionStatus}
    for suggestion_status, count in rows.all():
        by_status[suggestion_status.value] = count
    return SuggestionSummary(by_status=by_status, total=sum(by_status.values()))


@router.post("/{suggestion_id}/approve", response_model=SuggestionResponse)
async def approve_review(
    suggestion_id: UUID,
    data: ReviewDecision,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Apply a suggestion's lens specs to its catalog item."""
    note = _require_note(data.note)
    suggestion = await _get_pending(db, suggestion_id, "approve")

    item = suggestion.catalog_item
    if "lens" not in (item.product_type or "").lower():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refusing to apply enrichment to non-lens product",
        )

    lens_specs = pick_suggested_lens_specs(suggestion.suggested_specs)
    if not lens_specs:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Suggested specs contain no lens spec fields",
        )

    specs_before = dict(item.specifications or {})
    specs_after = apply_reviewed_specs(specs_before, lens_specs, data.overwrite)
    item.specifications = specs_after

    if data.overwrite:
        note = f"{note}\n\n[overwrite=true] Overwrote lens spec keys: {', '.join(lens_specs)}"
    suggestion.status = SuggestionStatus.APPROVED
    suggestion.reviewed_at = datetime.utcnow()
    suggestion.reviewed_by_id = current_user.db_user_id
    suggestion.review_note = note
    suggestion.specs_before = specs_before
    suggestion.specs_after = specs_after
    await db.flush()

    await scan_catalog_blocking_issues(db, item_ids=[item.id])
    await db.refresh(suggestion)

    logger.info(f"[ENRICH] Suggestion {suggestion.id} approved by {current_user.name}")
    return _suggestion_response(suggestion)


@router.post("/{suggestion_id}/reject", response_model=SuggestionResponse)
async def reject_review(
    suggestion_id: UUID,
    data: ReviewDecision,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Dismiss a suggestion without touching the catalog item."""
    note = _require_note(data.note)
    suggestion = await _get_pending(db, suggestion_id, "reject")

    suggestion.status = SuggestionStatus.REJECTED
    suggestion.reviewed_at = datetime.utcnow()
    suggestion.reviewed_by_id = current_user.db_user_id
    suggestion.review_note = note
    await db.commit()
    await db.refresh(suggestion)

    logger.info(f"[ENRICH] Suggestion {suggestion.id} rejected by {current_user.name}")
    return _suggestion_response(suggestion)
