"""Dashboard router: stock overview and sidebar notification counts."""

from fastapi import APIRouter, Depends
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_staff, AuthenticatedUser
from geardesk.models.audit import ActivityLog
from geardesk.models.catalog import CatalogBlockingIssue, EnrichmentSuggestion
from geardesk.models.enums import (
    EquipmentStatus, IssueStatus, PurchaseStatus, SessionStatus, SuggestionStatus, WebhookStatus,
)
from geardesk.models.equipment import Equipment
from geardesk.models.inspection import InspectionSession
from geardesk.models.purchase import PendingPurchase
from geardesk.models.vendor import Vendor
from geardesk.models.webhook import WebhookEventLog
from geardesk.schemas.dashboard import ActivityResponse, DashboardStats, NotificationCounts

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
notifications_router = APIRouter(prefix="/notifications", tags=["dashboard"])

VALUED_STATUSES = (
    EquipmentStatus.READY_FOR_SALE,
    EquipmentStatus.RESERVED,
    EquipmentStatus.PENDING_INSPECTION,
    EquipmentStatus.INSPECTED,
)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Stock counts, stock value and recent activity.

    Stock value is the selling price of everything not sold, returned or in repair.
    """
    equipment_query = await db.execute(
        select(
            func.count(Equipment.id).label("total"),
            func.sum(case((Equipment.status == EquipmentStatus.PENDING_INSPECTION, 1), else_=0)).label("pending_inspection"),
            func.sum(case((Equipment.status == EquipmentStatus.IN_REPAIR, 1), else_=0)).label("in_repair"),
            func.sum(case((Equipment.status == EquipmentStatus.READY_FOR_SALE, 1), else_=0)).label("ready_for_sale"),
            func.sum(
                case((Equipment.status.in_(VALUED_STATUSES), Equipment.selling_price_cents), else_=0)
            ).label("total_value"),
        )
    )
    equipment_stats = equipment_query.one()

    active_vendors = await db.execute(
        select(func.count(Vendor.id)).where(Vendor.is_active.is_(True))
    )

    recent = await db.execute(
        select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(10)
    )

    return DashboardStats(
        total_inventory=equipment_stats.total or 0,
        pending_inspection=equipment_stats.pending_inspection or 0,
        in_repair=equipment_stats.in_repair or 0,
        ready_for_sale=equipment_stats.ready_for_sale or 0,
        active_vendors=active_vendors.scalar_one(),
        total_value_cents=equipment_stats.total_value or 0,
        recent_activity=[ActivityResponse.model_validate(a) for a in recent.scalars().all()],
    )


@notifications_router.get("/counts", response_model=NotificationCounts)
async def get_notification_counts(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Badge counts for the sidebar."""
    purchase_query = await db.execute(
        select(
            func.sum(
                case(
                    (
                        PendingPurchase.status.in_(
                            (
                                PurchaseStatus.PENDING_REVIEW,
                                PurchaseStatus.QUOTE_SENT,
                                PurchaseStatus.CLIENT_ACCEPTED,
                                PurchaseStatus.AWAITING_DELIVERY,
                            )
                        ),
                        1,
                    ),
                    else_=0,
                )
            ).label("incoming"),
            func.sum(
                case(
                    (
                        PendingPurchase.status.in_(
                            (PurchaseStatus.AWAITING_PAYMENT, PurchaseStatus.APPROVED)
                        ),
                        1,
                    ),
                    else_=0,
                )
            ).label("awaiting_payment"),
        )
    )
    purchase_stats = purchase_query.one()

    inspections = await db.execute(
        select(func.count(InspectionSession.id)).where(
            InspectionSession.status == SessionStatus.IN_PROGRESS
        )
    )
    failed_webhooks = await db.execute(
        select(func.count(WebhookEventLog.id)).where(
            WebhookEventLog.status == WebhookStatus.FAILED,
            WebhookEventLog.ignored_at.is_(None),
        )
    )
    open_issues = await db.execute(
        select(func.count(CatalogBlockingIssue.id)).where(
            CatalogBlockingIssue.status == IssueStatus.OPEN
        )
    )
    pending_reviews = await db.execute(
        select(func.count(EnrichmentSuggestion.id)).where(
            EnrichmentSuggestion.status == SuggestionStatus.PENDING_REVIEW
        )
    )

    return NotificationCounts(
        incoming=purchase_stats.incoming or 0,
        awaiting_payment=purchase_stats.awaiting_payment or 0,
        inspections_in_progress=inspections.scalar_one(),
        failed_webhooks=failed_webhooks.scalar_one(),
        open_catalog_issues=open_issues.scalar_one(),
        pending_enrichment_reviews=pending_reviews.scalar_one(),
    )
