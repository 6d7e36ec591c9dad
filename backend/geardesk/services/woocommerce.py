"""WooCommerce REST API (v3) client and product sync."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.config import get_settings
from geardesk.models.bundle import Bundle
from geardesk.models.enums import BundleStatus, EquipmentStatus
from geardesk.models.equipment import Equipment
from geardesk.models.settings import WooSettings

logger = logging.getLogger(__name__)


class WooCommerceError(Exception):
    """WooCommerce is unconfigured or returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def rand_string(cents: int) -> str:
    """WooCommerce wants prices as decimal strings in rand, e.g. "12500.00"."""
    return str((Decimal(cents or 0) / 100).quantize(Decimal("0.01")))


class WooCommerceClient:
    """Thin async wrapper over ``/wp-json/wc/v3`` with basic auth."""

    def __init__(
        self,
        store_url: str,
        consumer_key: str,
        consumer_secret: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = f"{store_url.rstrip('/')}/wp-json/wc/v3"
        self.auth = httpx.BasicAuth(consumer_key, consumer_secret)
        self.transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url, auth=self.auth, transport=self.transport
        ) as client:
            try:
                response = await client.request(method, path, timeout=15.0, **kwargs)
            except httpx.HTTPError as e:
                raise WooCommerceError(f"WooCommerce unreachable: {e}") from e

        if response.status_code >= 300:
            logger.error(f"[WOO] {method} {path} failed: {response.status_code} {response.text}")
            raise WooCommerceError(
                f"WooCommerce {method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def create_product(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/products", json=data)

    async def update_product(self, product_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/products/{product_id}", json=data)

    async def get_product(self, product_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/products/{product_id}")

    async def list_products(self, per_page: int = 1) -> list[dict[str, Any]]:
        return await self._request("GET", "/products", params={"per_page": per_page})

    async def delete_product(self, product_id: int) -> dict[str, Any]:
        return await self._request("DELETE", f"/products/{product_id}", params={"force": "true"})

    async def update_price(self, product_id: int, price_cents: int) -> dict[str, Any]:
        return await self.update_product(product_id, {"regular_price": rand_string(price_cents)})


def build_equipment_product(equipment: Equipment) -> dict[str, Any]:
    """WooCommerce product payload for a single unit."""
    return {
        "name": equipment.name,
        "type": "simple",
        "regular_price": rand_string(equipment.selling_price_cents),
        "description": equipment.description or "",
        "short_description": f"{equipment.brand} {equipment.model}",
        "sku": equipment.sku,
        "stock_quantity": 1,
        "manage_stock": True,
        "in_stock": equipment.status == EquipmentStatus.READY_FOR_SALE,
        "categories": [{"name": equipment.category.value}],
        "images": [{"src": url} for url in equipment.images or []],
        "meta_data": [
            {"key": "_dashboard_id", "value": str(equipment.id)},
            {"key": "_brand", "value": equipment.brand},
            {"key": "_model", "value": equipment.model},
            {"key": "_condition", "value": equipment.condition.value},
            {"key": "_serial_number", "value": equipment.serial_number or ""},
        ],
    }


def build_bundle_product(bundle: Bundle) -> dict[str, Any]:
    """WooCommerce product payload for a bundle: combined images and descriptions."""
    units = [item.equipment for item in bundle.items]
    lines = [
        f"{e.name} ({e.condition.value})" + (f": {e.description}" if e.description else "")
        for e in units
    ]
    description = f"{bundle.description or ''}\n\n**Bundle includes:**\n\n" + "\n\n".join(lines)
    return {
        "name": bundle.title,
        "type": "simple",
        "regular_price": rand_string(bundle.selling_price_cents),
        "description": description,
        "short_description": bundle.description or "",
        "status": "publish",
        "stock_status": "instock",
        "manage_stock": True,
        "stock_quantity": 1,
        "images": [{"src": url} for e in units for url in e.images or []],
        "meta_data": [
            {"key": "_bundle_id", "value": str(bundle.id)},
            {"key": "_item_count", "value": str(len(units))},
        ],
    }


async def get_woo_client(
    db: AsyncSession, transport: Optional[httpx.AsyncBaseTransport] = None
) -> WooCommerceClient:
    """Client from the stored settings row, falling back to environment settings."""
    row = (await db.execute(select(WooSettings).limit(1))).scalar_one_or_none()
    if row is not None:
        return WooCommerceClient(row.store_url, row.consumer_key, row.consumer_secret, transport)

    settings = get_settings()
    if settings.woo_store_url and settings.woo_consumer_key and settings.woo_consumer_secret:
        return WooCommerceClient(
            settings.woo_store_url,
            settings.woo_consumer_key,
            settings.woo_consumer_secret,
            transport,
        )
    raise WooCommerceError("WooCommerce settings not configured")


async def sync_equipment(
    db: AsyncSession, equipment: Equipment, client: Optional[WooCommerceClient] = None
) -> dict[str, Any]:
    """Create or update the product for a unit and record the sync."""
    client = client or await get_woo_client(db)
    data = build_equipment_product(equipment)

    if equipment.woocommerce_id:
        product = await client.update_product(equipment.woocommerce_id, data)
    else:
        product = await client.create_product(data)
        equipment.woocommerce_id = int(product["id"])

    equipment.synced_to_woo = True
    equipment.last_synced_at = datetime.utcnow()
    await db.flush()
    logger.info(f"[WOO] Synced equipment {equipment.sku} (product {equipment.woocommerce_id})")
    return product


async def sync_bundle(
    db: AsyncSession, bundle: Bundle, client: Optional[WooCommerceClient] = None
) -> dict[str, Any]:
    """Create or update the product for an active bundle."""
    if bundle.status != BundleStatus.ACTIVE:
        raise WooCommerceError("Cannot sync dissolved bundle")

    client = client or await get_woo_client(db)
    data = build_bundle_product(bundle)

    if bundle.woocommerce_id:
        product = await client.update_product(bundle.woocommerce_id, data)
    else:
        product = await client.create_product(data)
        bundle.woocommerce_id = int(product["id"])

    bundle.synced_to_woo = True
    bundle.last_synced_at = datetime.utcnow()
    await db.flush()
    logger.info(f"[WOO] Synced bundle {bundle.title} (product {bundle.woocommerce_id})")
    return product


def get_woo_transport() -> Optional[httpx.AsyncBaseTransport]:
    """FastAPI dependency for the HTTP transport; tests override it with a MockTransport."""
    return None
