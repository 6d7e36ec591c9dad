"""GearDesk - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geardesk.core.config import get_settings
from geardesk.core.env_validation import validate_environment
from geardesk.core.logging_config import setup_logging
from geardesk.routers import (
    auth_router,
    vendors_router,
    clients_router,
    products_router,
    incoming_gear_router,
    inspections_router,
    quote_confirmation_router,
    equipment_router,
    repairs_router,
    bundles_router,
    consignment_router,
    consignment_review_router,
    webhooks_router,
    admin_webhooks_router,
    enrichment_reviews_router,
    catalog_router,
    settings_router,
    whatsapp_router,
    documents_router,
    dashboard_router,
    notifications_router,
    cron_router,
)

# CRITICAL: Validate environment before proceeding
# This will hard-fail (exit 1) if required configuration is missing
validate_environment()

settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"{settings.app_name} starting (debug={settings.debug})")
    yield
    logger.info(f"{settings.app_name} shutting down")


app = FastAPI(
    title=settings.app_name,
    description="Back office for a used camera gear reseller: WhatsApp quotes, inspections, stock, consignment and web store sync.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS - Dynamically configured from ALLOWED_ORIGINS environment variable
# In production, wildcard (*) is blocked by env_validation.py
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]

print(f"🔒 CORS configured with origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API v1 routers
app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(vendors_router, prefix=settings.api_v1_prefix)
app.include_router(clients_router, prefix=settings.api_v1_prefix)
app.include_router(products_router, prefix=settings.api_v1_prefix)
app.include_router(incoming_gear_router, prefix=settings.api_v1_prefix)
app.include_router(inspections_router, prefix=settings.api_v1_prefix)
app.include_router(quote_confirmation_router, prefix=settings.api_v1_prefix)  # Public, token auth
app.include_router(equipment_router, prefix=settings.api_v1_prefix)
app.include_router(repairs_router, prefix=settings.api_v1_prefix)
app.include_router(bundles_router, prefix=settings.api_v1_prefix)
app.include_router(consignment_router, prefix=settings.api_v1_prefix)
app.include_router(consignment_review_router, prefix=settings.api_v1_prefix)  # Public, token auth
app.include_router(webhooks_router, prefix=settings.api_v1_prefix)  # HMAC signed
app.include_router(admin_webhooks_router, prefix=settings.api_v1_prefix)
app.include_router(enrichment_reviews_router, prefix=settings.api_v1_prefix)
app.include_router(catalog_router, prefix=settings.api_v1_prefix)
app.include_router(settings_router, prefix=settings.api_v1_prefix)
app.include_router(whatsapp_router, prefix=settings.api_v1_prefix)
app.include_router(documents_router, prefix=settings.api_v1_prefix)
app.include_router(dashboard_router, prefix=settings.api_v1_prefix)
app.include_router(notifications_router, prefix=settings.api_v1_prefix)
app.include_router(cron_router, prefix=settings.api_v1_prefix)  # CRON_SECRET bearer


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
