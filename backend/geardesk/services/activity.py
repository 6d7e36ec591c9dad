"""Activity logging service."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.models.audit import ActivityLog
from geardesk.models.enums import ActivityAction


class ActivityService:
    """Service for creating activity log entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: ActivityAction,
        entity_type: str,
        entity_id: UUID,
        user_id: Optional[UUID] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        """Create an activity log entry."""
        entry = ActivityLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            details=details or {},
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_price_updated(
        self,
        equipment_id: UUID,
        user_id: Optional[UUID],
        old_price_cents: int,
        new_price_cents: int,
        reason: str,
    ) -> ActivityLog:
        """Log a selling price change."""
        return await self.log(
            action=ActivityAction.PRICE_UPDATED,
            entity_type="equipment",
            entity_id=equipment_id,
            user_id=user_id,
            details={
                "old_price_cents": old_price_cents,
                "new_price_cents": new_price_cents,
                "reason": reason,
            },
        )

    async def log_equipment_from_inspection(
        self,
        equipment_id: UUID,
        user_id: Optional[UUID],
        verified_item_id: UUID,
        sku: str,
        acquisition_type: str,
    ) -> ActivityLog:
        """Log stock created from an approved inspection item."""
        return await self.log(
            action=ActivityAction.CREATED_EQUIPMENT_FROM_INSPECTION,
            entity_type="equipment",
            entity_id=equipment_id,
            user_id=user_id,
            details={
                "verified_item_id": str(verified_item_id),
                "sku": sku,
                "acquisition_type": acquisition_type,
            },
        )

    async def log_purchase_status(
        self,
        action: ActivityAction,
        purchase_id: UUID,
        user_id: Optional[UUID] = None,
        **details: Any,
    ) -> ActivityLog:
        """Log a purchase lifecycle transition."""
        return await self.log(
            action=action,
            entity_type="pending_purchase",
            entity_id=purchase_id,
            user_id=user_id,
            details=details,
        )

    async def log_sent_to_repair(
        self,
        equipment_id: UUID,
        user_id: Optional[UUID],
        repair_id: UUID,
        technician_name: str,
        issue: str,
    ) -> ActivityLog:
        """Log equipment sent to a technician."""
        return await self.log(
            action=ActivityAction.SENT_TO_REPAIR,
            entity_type="equipment",
            entity_id=equipment_id,
            user_id=user_id,
            details={
                "repair_id": str(repair_id),
                "technician_name": technician_name,
                "issue": issue,
            },
        )
