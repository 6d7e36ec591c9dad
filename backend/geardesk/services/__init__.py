"""Services for GearDesk."""

from geardesk.services.activity import ActivityService
from geardesk.services.email import EmailService, get_email_service
from geardesk.services.kapso import KapsoClient, get_kapso_client
from geardesk.services.pdf_generator import PDFGenerator, get_pdf_generator
from geardesk.services.woocommerce import WooCommerceClient, get_woo_client

__all__ = [
    "ActivityService",
    "EmailService",
    "get_email_service",
    "KapsoClient",
    "get_kapso_client",
    "PDFGenerator",
    "get_pdf_generator",
    "WooCommerceClient",
    "get_woo_client",
]
