"""API Routers for GearDesk."""

from geardesk.routers.auth import router as auth_router
from geardesk.routers.vendors import router as vendors_router
from geardesk.routers.clients import router as clients_router
from geardesk.routers.products import router as products_router
from geardesk.routers.incoming_gear import router as incoming_gear_router
from geardesk.routers.inspections import router as inspections_router
from geardesk.routers.quote_confirmation import router as quote_confirmation_router
from geardesk.routers.equipment import router as equipment_router
from geardesk.routers.repairs import router as repairs_router
from geardesk.routers.bundles import router as bundles_router
from geardesk.routers.consignment import router as consignment_router
from geardesk.routers.consignment import review_router as consignment_review_router
from geardesk.routers.webhooks import router as webhooks_router
from geardesk.routers.admin_webhooks import router as admin_webhooks_router
from geardesk.routers.enrichment_reviews import router as enrichment_reviews_router
from geardesk.routers.catalog import router as catalog_router
from geardesk.routers.settings import router as settings_router
from geardesk.routers.whatsapp import router as whatsapp_router
from geardesk.routers.documents import router as documents_router
from geardesk.routers.dashboard import router as dashboard_router
from geardesk.routers.dashboard import notifications_router
from geardesk.routers.cron import router as cron_router

__all__ = [
    "auth_router",
    "vendors_router",
    "clients_router",
    "products_router",
    "incoming_gear_router",
    "inspections_router",
    "quote_confirmation_router",
    "equipment_router",
    "repairs_router",
    "bundles_router",
    "consignment_router",
    "consignment_review_router",
    "webhooks_router",
    "admin_webhooks_router",
    "enrichment_reviews_router",
    "catalog_router",
    "settings_router",
    "whatsapp_router",
    "documents_router",
    "dashboard_router",
    "notifications_router",
    "cron_router",
]
