"""Catalog data-quality scan.

A rescan is idempotent: current problems are upserted as OPEN issues (one per item and
type) and OPEN issues that no longer apply are resolved.
"""

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.catalog import CatalogBlockingIssue, CatalogItem
from geardesk.models.enums import CatalogIssueType, IssueSeverity, IssueStatus

logger = logging.getLogger(__name__)

DetectedIssue = tuple[str, str, dict[str, Any]]

_NUMERIC = re.compile(r"^[0-9]+(\.[0-9]+)?$")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    text = str(value).strip()
    return float(text) if _NUMERIC.match(text) else None


def _item_context(item: CatalogItem) -> dict[str, Any]:
    return {
        "product_type": item.product_type,
        "is_active": item.is_active,
        "make": item.make,
        "output_text": item.output_text,
    }


def detect_issues(item: CatalogItem) -> list[DetectedIssue]:
    """Return ``(issue_type, message, details)`` for every problem on one item."""
    issues: list[DetectedIssue] = []
    specs = item.specifications if isinstance(item.specifications, dict) else {}

    if item.is_lens:
        mounts = specs.get("mounts")
        if _blank(specs.get("mount")) and not (isinstance(mounts, list) and mounts):
            issues.append((
                CatalogIssueType.LENS_MISSING_MOUNT.value,
                "Lens is missing mount (specifications.mount and specifications.mounts are empty)",
                {**_item_context(item), "specifications": specs},
            ))

        if specs.get("focal_min_mm") is None and specs.get("aperture_min") is None:
            issues.append((
                CatalogIssueType.LENS_MISSING_FOCAL_AND_APERTURE.value,
                "Lens is missing both focal_min_mm and aperture_min",
                {**_item_context(item), "specifications": specs},
            ))

        focal_min, focal_max = _numeric(specs.get("focal_min_mm")), _numeric(specs.get("focal_max_mm"))
        if focal_min is not None and focal_max is not None and focal_min > focal_max:
            issues.append((
                CatalogIssueType.LENS_INVALID_FOCAL_RANGE.value,
                "Lens has invalid focal range (focal_min_mm > focal_max_mm)",
                {**_item_context(item), "focal_min_mm": focal_min, "focal_max_mm": focal_max},
            ))

        ap_min, ap_max = _numeric(specs.get("aperture_min")), _numeric(specs.get("aperture_max"))
        if ap_min is not None and ap_max is not None and ap_min > ap_max:
            issues.append((
                CatalogIssueType.LENS_INVALID_APERTURE_RANGE.value,
                "Lens has invalid aperture range (aperture_min > aperture_max)",
                {**_item_context(item), "aperture_min": ap_min, "aperture_max": ap_max},
            ))

    prices = {
        "buy_low": item.buy_low,
        "buy_high": item.buy_high,
        "consign_low": item.consign_low,
        "consign_high": item.consign_high,
    }
    if any(value is None or value < 0 for value in prices.values()):
        issues.append((
            CatalogIssueType.PRICING_NULL_OR_INVALID.value,
            "One or more pricing fields are NULL or negative",
            {**prices, **_item_context(item)},
        ))

    if item.is_active and (
        _blank(item.output_text) or _blank(item.make) or _blank(item.product_type)
    ):
        issues.append((
            CatalogIssueType.REQUIRED_FIELD_VIOLATION_ON_ACTIVE.value,
            "Active item is missing a required field (output_text/make/product_type)",
            _item_context(item),
        ))

    return issues


async def get_issues_summary(db: AsyncSession) -> dict[str, Any]:
    result = await db.execute(
        select(CatalogBlockingIssue.issue_type, func.count(CatalogBlockingIssue.id))
        .where(
            CatalogBlockingIssue.status == IssueStatus.OPEN,
            CatalogBlockingIssue.severity == IssueSeverity.BLOCKING,
        )
        .group_by(CatalogBlockingIssue.issue_type)
        .order_by(CatalogBlockingIssue.issue_type)
    )
    by_type = {issue_type: count for issue_type, count in result.all()}
    return {"open_blocking_count": sum(by_type.values()), "by_type": by_type}


async def scan_catalog_blocking_issues(
    db: AsyncSession,
    auto_resolve_note: str = "Auto-resolved by rescan",
    item_ids: Optional[Iterable[UUID]] = None,
) -> dict[str, Any]:
    """Rescan the catalog (or just ``item_ids``) and return the open-issue summary."""
    items_query = select(CatalogItem)
    issues_query = select(CatalogBlockingIssue).where(
        CatalogBlockingIssue.status == IssueStatus.OPEN,
        CatalogBlockingIssue.severity == IssueSeverity.BLOCKING,
    )
    if item_ids is not None:
        ids = list(item_ids)
        items_query = items_query.where(CatalogItem.id.in_(ids))
        issues_query = issues_query.where(CatalogBlockingIssue.catalog_item_id.in_(ids))

    items = (await db.execute(items_query)).scalars().all()
    open_issues = {
        (issue.catalog_item_id, issue.issue_type): issue
        for issue in (await db.execute(issues_query)).scalars().all()
    }

    now = datetime.utcnow()
    current = set()
    created = 0
    for item in items:
        for issue_type, message, details in detect_issues(item):
            key = (item.id, issue_type)
            current.add(key)
            existing = open_issues.get(key)
            if existing is not None:
                existing.last_detected_at = now
                existing.message = message
                existing.details = details
                continue
            db.add(CatalogBlockingIssue(
                catalog_item_id=item.id,
                issue_type=issue_type,
                severity=IssueSeverity.BLOCKING,
                status=IssueStatus.OPEN,
                message=message,
                details=details,
                first_detected_at=now,
                last_detected_at=now,
            ))
            created += 1

    resolved = 0
    for key, issue in open_issues.items():
        if key in current:
            continue
        issue.status = IssueStatus.RESOLVED
        issue.resolved_at = now
        issue.resolution_note = auto_resolve_note
        resolved += 1

    await db.commit()
    logger.info(f"[CATALOG] Scan complete: {created} new, {resolved} auto-resolved")
    return await get_issues_summary(db)
