"""Admin catalog quality: blocking issues and item edits."""

import logging
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_admin, AuthenticatedUser
from geardesk.models.catalog import CatalogBlockingIssue, CatalogItem
from geardesk.models.enums import IssueStatus
from geardesk.schemas.catalog import (
    CatalogItemDetail,
    CatalogItemResponse,
    CatalogItemUpdate,
    IssueResponse,
    IssuesSummary,
    ResolveIssueRequest,
)
from geardesk.services.catalog_issues import get_issues_summary, scan_catalog_blocking_issues

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/catalog", tags=["catalog"])

TEXT_FIELDS = ("output_text", "make", "product_type")


def _is_lens(product_type: Optional[str]) -> bool:
    return "lens" in (product_type or "").lower()


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def activation_errors(
    output_text: Optional[str],
    make: Optional[str],
    product_type: Optional[str],
    specs: dict[str, Any],
) -> tuple[str, list[str]]:
    """Fields an active item is missing, with the error to report. Empty when valid."""
    if _is_lens(product_type):
        missing = []
        if _blank(specs.get("mount")):
            missing.append("specifications.mount")
        if specs.get("focal_min_mm") is None:
            missing.append("specifications.focal_min_mm")
        if specs.get("aperture_min") is None:
            missing.append("specifications.aperture_min")
        if missing:
            return "Cannot activate lens catalog item: missing required lens specs", missing

    missing = [
        name
        for name, value in zip(TEXT_FIELDS, (output_text, make, product_type))
        if _blank(value)
    ]
    if missing:
        return "Cannot activate item: missing required fields", missing
    return "", []


async def _get_item(db: AsyncSession, item_id: UUID) -> CatalogItem:
    item = await db.get(CatalogItem, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Catalog item not found")
    return item


async def _item_detail(db: AsyncSession, item: CatalogItem) -> CatalogItemDetail:
    result = await db.execute(
        select(CatalogBlockingIssue).where(
            CatalogBlockingIssue.catalog_item_id == item.id,
            CatalogBlockingIssue.status == IssueStatus.OPEN,
        )
    )
    return CatalogItemDetail(
        item=CatalogItemResponse.model_validate(item),
        open_issues=[IssueResponse.model_validate(i) for i in result.scalars().all()],
    )


@router.get("/issues", response_model=List[IssueResponse])
async def list_issues(
    status_filter: Optional[IssueStatus] = Query(IssueStatus.OPEN, alias="status"),
    issue_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(500, ge=1, le=2000),
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """List blocking issues, most recently detected first."""
    query = select(CatalogBlockingIssue)
    if status_filter:
        query = query.where(CatalogBlockingIssue.status == status_filter)
    if issue_type:
        query = query.where(CatalogBlockingIssue.issue_type == issue_type)
    result = await db.execute(
        query.order_by(CatalogBlockingIssue.last_detected_at.desc()).limit(limit)
    )
    return [IssueResponse.model_validate(i) for i in result.scalars().all()]


@router.get("/issues/summary", response_model=IssuesSummary)
async def issues_summary(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Open blocking issue counts."""
    return IssuesSummary(**await get_issues_summary(db))


@router.post("/issues/rescan", response_model=IssuesSummary)
async def rescan_issues(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Rescan the whole catalog."""
    return IssuesSummary(**await scan_catalog_blocking_issues(db))


@router.post("/issues/{issue_id}/resolve", response_model=IssueResponse)
async def resolve_issue(
    issue_id: UUID,
    data: ResolveIssueRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Resolve an issue by hand. A later rescan reopens it if it still applies."""
    note = (data.resolution_note or "").strip()
    if not note:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="resolution_note is required",
        )

    issue = await db.get(CatalogBlockingIssue, issue_id)
    if not issue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")

    issue.status = IssueStatus.RESOLVED
    issue.resolved_at = datetime.utcnow()
    issue.resolved_by_id = current_user.db_user_id
    issue.resolution_note = note
    await db.commit()
    await db.refresh(issue)

    return IssueResponse.model_validate(issue)


@router.get("/items/{item_id}", response_model=CatalogItemDetail)
async def get_catalog_item(
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Get a catalog item with its open issues."""
    return await _item_detail(db, await _get_item(db, item_id))


@router.patch("/items/{item_id}", response_model=CatalogItemDetail)
async def update_catalog_item(
    item_id: UUID,
    data: CatalogItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Edit fields and specs, then rescan this item for issues."""
    item = await _get_item(db, item_id)
    update_data = data.model_dump(exclude_unset=True)

    specs = dict(item.specifications or {})
    for key, value in (update_data.pop("specifications", None) or {}).items():
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            specs.pop(key, None)
        else:
            specs[key] = value

    for field in TEXT_FIELDS:
        if isinstance(update_data.get(field), str):
            update_data[field] = update_data[field].strip()

    merged = {field: update_data.get(field, getattr(item, field)) for field in TEXT_FIELDS}
    is_active = update_data.get("is_active", item.is_active)
    if is_active:
        error, missing = activation_errors(
            merged["output_text"], merged["make"], merged["product_type"], specs
        )
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": error, "missing": missing},
            )

    for field, value in update_data.items():
        setattr(item, field, value)
    item.specifications = specs
    await db.flush()

    await scan_catalog_blocking_issues(db, item_ids=[item.id])
    await db.refresh(item)

    logger.info(f"[CATALOG] Item {item.id} updated by {current_user.name}")
    return await _item_detail(db, item)
