"""SQLAlchemy models for GearDesk."""

from geardesk.models.user import User
from geardesk.models.vendor import Vendor, Client
from geardesk.models.purchase import PendingPurchase, PendingItem, ClientDetails
from geardesk.models.product import Product, ProductQuestionTemplate, AccessoryTemplate
from geardesk.models.inspection import (
    InspectionSession,
    IncomingGearItem,
    VerifiedGearItem,
    VerifiedAnswer,
    VerifiedAccessory,
    PricingSnapshot,
    PriceOverride,
)
from geardesk.models.equipment import Equipment, PriceHistory, RepairLog
from geardesk.models.bundle import Bundle, BundleItem
from geardesk.models.consignment import ConsignmentChangeRequest
from geardesk.models.webhook import WebhookEventLog
from geardesk.models.audit import ActivityLog
from geardesk.models.settings import WooSettings
from geardesk.models.catalog import (
    CatalogItem,
    LensfunLens,
    EnrichmentSuggestion,
    CatalogBlockingIssue,
)

__all__ = [
    "User",
    "Vendor",
    "Client",
    "PendingPurchase",
    "PendingItem",
    "ClientDetails",
    "Product",
    "ProductQuestionTemplate",
    "AccessoryTemplate",
    "InspectionSession",
    "IncomingGearItem",
    "VerifiedGearItem",
    "VerifiedAnswer",
    "VerifiedAccessory",
    "PricingSnapshot",
    "PriceOverride",
    "Equipment",
    "PriceHistory",
    "RepairLog",
    "Bundle",
    "BundleItem",
    "ConsignmentChangeRequest",
    "WebhookEventLog",
    "ActivityLog",
    "WooSettings",
    "CatalogItem",
    "LensfunLens",
    "EnrichmentSuggestion",
    "CatalogBlockingIssue",
]
