"""Enumeration types for the GearDesk domain model."""

from enum import Enum


class UserRole(str, Enum):
    """Dashboard account role."""
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class PurchaseStatus(str, Enum):
    """Lifecycle of a bot-accepted or walk-in purchase."""
    PENDING_REVIEW = "PENDING_REVIEW"
    QUOTE_SENT = "QUOTE_SENT"
    CLIENT_ACCEPTED = "CLIENT_ACCEPTED"
    CLIENT_DECLINED = "CLIENT_DECLINED"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"  # Client submitted details
    AWAITING_DELIVERY = "AWAITING_DELIVERY"  # Courier tracking submitted
    INSPECTION_IN_PROGRESS = "INSPECTION_IN_PROGRESS"
    FINAL_QUOTE_SENT = "FINAL_QUOTE_SENT"
    APPROVED = "APPROVED"  # Approved for payment, invoice issued
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    COMPLETED = "COMPLETED"


class PendingItemStatus(str, Enum):
    """Status of an item on a purchase quote."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PRICE_ADJUSTED = "PRICE_ADJUSTED"
    REJECTED = "REJECTED"
    ADDED_TO_INVENTORY = "ADDED_TO_INVENTORY"


class ProductType(str, Enum):
    """Product catalog category (shared with equipment)."""
    CAMERA_BODY = "CAMERA_BODY"
    LENS = "LENS"
    FLASH = "FLASH"
    DRONE = "DRONE"
    VIDEO_CAMERA = "VIDEO_CAMERA"
    ACCESSORY = "ACCESSORY"
    OTHER = "OTHER"


class SessionStatus(str, Enum):
    """Inspection session status."""
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class InspectionStatus(str, Enum):
    """Inspection status of an incoming gear item."""
    UNVERIFIED = "UNVERIFIED"
    IN_PROGRESS = "IN_PROGRESS"
    VERIFIED = "VERIFIED"
    APPROVED = "APPROVED"
    REOPENED = "REOPENED"
    REJECTED = "REJECTED"


class VerifiedCondition(str, Enum):
    """Condition grade assigned during inspection."""
    LIKE_NEW = "LIKE_NEW"
    EXCELLENT = "EXCELLENT"
    VERY_GOOD = "VERY_GOOD"
    GOOD = "GOOD"
    WORN = "WORN"


class ClientSelection(str, Enum):
    """How the client wants to sell an item."""
    BUY = "BUY"
    CONSIGNMENT = "CONSIGNMENT"


class OverrideReason(str, Enum):
    """Reason for a manual price override."""
    MARKET_RESEARCH = "MARKET_RESEARCH"
    DEMAND_HIGH = "DEMAND_HIGH"
    DEMAND_LOW = "DEMAND_LOW"
    CONDITION_EXCEPTION = "CONDITION_EXCEPTION"
    CLIENT_NEGOTIATION = "CLIENT_NEGOTIATION"
    BULK_DISCOUNT = "BULK_DISCOUNT"
    DAMAGED_NOT_OBVIOUS = "DAMAGED_NOT_OBVIOUS"
    RARE_ITEM = "RARE_ITEM"
    OTHER = "OTHER"  # Requires notes


class EquipmentCondition(str, Enum):
    """Condition of stock on the shelf."""
    MINT = "MINT"
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"


class EquipmentStatus(str, Enum):
    """Sales status of a piece of equipment."""
    PENDING_INSPECTION = "PENDING_INSPECTION"
    INSPECTED = "INSPECTED"
    IN_REPAIR = "IN_REPAIR"
    READY_FOR_SALE = "READY_FOR_SALE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    RETURNED = "RETURNED"


class IntakeStatus(str, Enum):
    """Shelf intake status."""
    PENDING_INTAKE = "PENDING_INTAKE"
    INTAKE_COMPLETE = "INTAKE_COMPLETE"


class AcquisitionType(str, Enum):
    """How the store acquired the equipment."""
    PURCHASED_OUTRIGHT = "PURCHASED_OUTRIGHT"
    CONSIGNMENT = "CONSIGNMENT"


class RepairStatus(str, Enum):
    """Status of a repair job."""
    SENT_TO_TECH = "SENT_TO_TECH"
    REPAIR_COMPLETED = "REPAIR_COMPLETED"


class BundleStatus(str, Enum):
    """Status of a sales bundle."""
    ACTIVE = "ACTIVE"
    DISSOLVED = "DISSOLVED"


class ChangeRequestStatus(str, Enum):
    """Consignment change request status."""
    PENDING_CLIENT = "PENDING_CLIENT"
    CONFIRMED = "CONFIRMED"


class WebhookStatus(str, Enum):
    """Processing status of an inbound webhook event."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


class WebhookEventType(str, Enum):
    """Inbound webhook event types."""
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_DECLINED = "quote_declined"


class SuggestionStatus(str, Enum):
    """Catalog enrichment suggestion status."""
    AUTO_APPLIED = "AUTO_APPLIED"
    PENDING_REVIEW = "PENDING_REVIEW"
    SUPERSEDED = "SUPERSEDED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class IssueStatus(str, Enum):
    """Catalog blocking issue status."""
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class IssueSeverity(str, Enum):
    """Catalog issue severity."""
    BLOCKING = "BLOCKING"


class CatalogIssueType(str, Enum):
    """Data-quality problems that block a catalog item."""
    LENS_MISSING_MOUNT = "LENS_MISSING_MOUNT"
    LENS_MISSING_FOCAL_AND_APERTURE = "LENS_MISSING_FOCAL_AND_APERTURE"
    LENS_INVALID_FOCAL_RANGE = "LENS_INVALID_FOCAL_RANGE"
    LENS_INVALID_APERTURE_RANGE = "LENS_INVALID_APERTURE_RANGE"
    PRICING_NULL_OR_INVALID = "PRICING_NULL_OR_INVALID"
    REQUIRED_FIELD_VIOLATION_ON_ACTIVE = "REQUIRED_FIELD_VIOLATION_ON_ACTIVE"


class ActivityAction(str, Enum):
    """Actions recorded in the activity log."""
    PURCHASE_CREATED = "PURCHASE_CREATED"
    QUOTE_SENT = "QUOTE_SENT"
    QUOTE_ACCEPTED = "QUOTE_ACCEPTED"
    QUOTE_DECLINED = "QUOTE_DECLINED"
    CLIENT_DETAILS_SUBMITTED = "CLIENT_DETAILS_SUBMITTED"
    TRACKING_SUBMITTED = "TRACKING_SUBMITTED"
    TRACKING_REMINDER_SENT = "TRACKING_REMINDER_SENT"
    CLIENT_SELECTION_SUBMITTED = "CLIENT_SELECTION_SUBMITTED"
    GEAR_RECEIVED = "GEAR_RECEIVED"
    GEAR_RECEIVED_UNDONE = "GEAR_RECEIVED_UNDONE"
    INSPECTION_STARTED = "INSPECTION_STARTED"
    ITEM_IDENTIFIED = "ITEM_IDENTIFIED"
    ITEM_VERIFIED = "ITEM_VERIFIED"
    ITEM_APPROVED = "ITEM_APPROVED"
    ITEM_REOPENED = "ITEM_REOPENED"
    ITEM_REJECTED = "ITEM_REJECTED"
    PRICE_OVERRIDDEN = "PRICE_OVERRIDDEN"
    FINAL_QUOTE_SENT = "FINAL_QUOTE_SENT"
    APPROVED_FOR_PAYMENT = "APPROVED_FOR_PAYMENT"
    MARKED_AS_PAID = "MARKED_AS_PAID"
    CREATED_EQUIPMENT = "CREATED_EQUIPMENT"
    CREATED_EQUIPMENT_FROM_INSPECTION = "CREATED_EQUIPMENT_FROM_INSPECTION"
    PRICE_UPDATED = "PRICE_UPDATED"
    INTAKE_COMPLETED = "INTAKE_COMPLETED"
    SENT_TO_REPAIR = "SENT_TO_REPAIR"
    REPAIR_COMPLETED = "REPAIR_COMPLETED"
    SOLD = "SOLD"
    SYNCED_TO_WOO = "SYNCED_TO_WOO"
    BUNDLE_CREATED = "BUNDLE_CREATED"
    BUNDLE_DISSOLVED = "BUNDLE_DISSOLVED"
    CONSIGNMENT_CHANGE_REQUESTED = "CONSIGNMENT_CHANGE_REQUESTED"
    CONSIGNMENT_CHANGE_CONFIRMED = "CONSIGNMENT_CHANGE_CONFIRMED"
    CLIENTS_MERGED = "CLIENTS_MERGED"
