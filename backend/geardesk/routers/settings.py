"""Settings router: WooCommerce credentials and accessory templates."""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.config import get_settings
from geardesk.core.database import get_db
from geardesk.core.security import require_admin, require_staff, AuthenticatedUser
from geardesk.models.product import AccessoryTemplate, Product
from geardesk.models.settings import WooSettings
from geardesk.schemas.base import MessageResponse
from geardesk.schemas.product import AccessoryTemplateCreate, AccessoryTemplateResponse
from geardesk.schemas.settings import WooConnectionTest, WooSettingsResponse, WooSettingsUpdate
from geardesk.services.woocommerce import WooCommerceError, get_woo_client, get_woo_transport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


def mask_secret(secret: Optional[str]) -> Optional[str]:
    if not secret:
        return None
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}{'*' * (len(secret) - 8)}{secret[-4:]}"


@router.get("/woocommerce", response_model=WooSettingsResponse)
async def get_woocommerce_settings(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Current store settings, from the database or the environment."""
    row = (await db.execute(select(WooSettings).limit(1))).scalar_one_or_none()
    if row is not None:
        return WooSettingsResponse(
            configured=True,
            source="database",
            store_url=row.store_url,
            consumer_key=row.consumer_key,
            consumer_secret=mask_secret(row.consumer_secret),
            auto_sync=row.auto_sync,
            updated_at=row.updated_at,
        )

    settings = get_settings()
    if settings.woo_store_url and settings.woo_consumer_key and settings.woo_consumer_secret:
        return WooSettingsResponse(
            configured=True,
            source="environment",
            store_url=settings.woo_store_url,
            consumer_key=settings.woo_consumer_key,
            consumer_secret=mask_secret(settings.woo_consumer_secret),
        )
    return WooSettingsResponse(configured=False)


@router.put("/woocommerce", response_model=WooSettingsResponse)
async def update_woocommerce_settings(
    data: WooSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Store credentials in the database, overriding the environment."""
    row = (await db.execute(select(WooSettings).limit(1))).scalar_one_or_none()
    if row is None:
        row = WooSettings()
        db.add(row)

    row.store_url = data.store_url.rstrip("/")
    row.consumer_key = data.consumer_key
    row.consumer_secret = data.consumer_secret
    row.auto_sync = data.auto_sync
    row.updated_at = datetime.utcnow()
    await db.commit()

    logger.info(f"[WOO] Settings updated by {current_user.name}")
    return WooSettingsResponse(
        configured=True,
        source="database",
        store_url=row.store_url,
        consumer_key=row.consumer_key,
        consumer_secret=mask_secret(row.consumer_secret),
        auto_sync=row.auto_sync,
        updated_at=row.updated_at,
    )


@router.post("/woocommerce/test", response_model=WooConnectionTest)
async def test_woocommerce_connection(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_woo_transport),
):
    """Fetch one product page to check the credentials."""
    try:
        client = await get_woo_client(db, transport)
        await client.list_products(per_page=1)
    except WooCommerceError as e:
        logger.warning(f"[WOO] Connection test failed: {e}")
        return WooConnectionTest(success=False, message=str(e))
    return WooConnectionTest(success=True, message="Connected to WooCommerce")


@router.get("/accessories", response_model=List[AccessoryTemplateResponse])
async def list_accessories(
    product_id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Accessory templates, optionally for one product."""
    query = select(AccessoryTemplate)
    if product_id:
        query = query.where(AccessoryTemplate.product_id == product_id)
    result = await db.execute(
        query.order_by(AccessoryTemplate.product_id, AccessoryTemplate.accessory_order)
    )
    return [AccessoryTemplateResponse.model_validate(a) for a in result.scalars().all()]


@router.post(
    "/accessories",
    response_model=AccessoryTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_accessory(
    data: AccessoryTemplateCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Add an expected accessory (with its missing-item penalty) to a product."""
    if not await db.get(Product, data.product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    accessory = AccessoryTemplate(**data.model_dump())
    db.add(accessory)
    await db.commit()
    await db.refresh(accessory)

    return AccessoryTemplateResponse.model_validate(accessory)


@router.delete("/accessories/{accessory_id}", response_model=MessageResponse)
async def delete_accessory(
    accessory_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Remove an accessory template."""
    accessory = await db.get(AccessoryTemplate, accessory_id)
    if not accessory:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Accessory not found")

    await db.delete(accessory)
    await db.commit()
    return MessageResponse(message="Accessory deleted")
