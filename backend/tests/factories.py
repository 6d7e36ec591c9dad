"""Builders for rows the API tests need in place."""

import uuid

from geardesk.models.enums import (
    EquipmentCondition,
    EquipmentStatus,
    IntakeStatus,
    PendingItemStatus,
    ProductType,
    PurchaseStatus,
)
from geardesk.models.equipment import Equipment
from geardesk.models.product import AccessoryTemplate, Product
from geardesk.models.purchase import PendingItem, PendingPurchase
from geardesk.services.tokens import issue_quote_token


def build_equipment(**overrides) -> Equipment:
    fields = {
        "sku": f"CA-{uuid.uuid4().hex[:6].upper()}",
        "name": "Canon EOS R6",
        "brand": "Canon",
        "model": "EOS R6",
        "category": ProductType.CAMERA_BODY,
        "condition": EquipmentCondition.EXCELLENT,
        "serial_number": "123456789",
        "images": ["https://img.geardesk.test/r6-front.jpg"],
        "purchase_price_cents": 1800000,
        "cost_price_cents": 1800000,
        "selling_price_cents": 2400000,
        "status": EquipmentStatus.READY_FOR_SALE,
        "intake_status": IntakeStatus.INTAKE_COMPLETE,
    }
    fields.update(overrides)
    return Equipment(**fields)


async def make_equipment(db, **overrides) -> Equipment:
    equipment = build_equipment(**overrides)
    db.add(equipment)
    await db.commit()
    return equipment


async def make_product(db, **overrides) -> Product:
    """A camera body with a battery (penalised when missing) and a strap."""
    fields = {
        "name": "Canon EOS R6",
        "brand": "Canon",
        "model": "EOS R6",
        "product_type": ProductType.CAMERA_BODY,
        "buy_price_min_cents": 1600000,
        "buy_price_max_cents": 2000000,
        "consign_price_min_cents": 2200000,
        "consign_price_max_cents": 2600000,
    }
    fields.update(overrides)
    product = Product(**fields)
    product.accessory_templates = [
        AccessoryTemplate(accessory_name="Battery", accessory_order=1, is_required=True, penalty_amount_cents=50000),
        AccessoryTemplate(accessory_name="Strap", accessory_order=2),
    ]
    db.add(product)
    await db.commit()
    return product


async def make_quoted_purchase(db, **overrides) -> PendingPurchase:
    """A reviewed bot purchase with a live quote link."""
    fields = {
        "customer_name": "Thandi Mokoena",
        "customer_phone": "0821234567",
        "customer_email": "thandi@example.co.za",
        "total_quote_amount_cents": 1850000,
        "status": PurchaseStatus.QUOTE_SENT,
    }
    fields.update(overrides)
    purchase = PendingPurchase(**fields)
    issue_quote_token(purchase)
    purchase.items = [
        PendingItem(name="Canon EOS R6", brand="Canon", proposed_price_cents=1600000, status=PendingItemStatus.PENDING),
        PendingItem(name="Canon RF 50mm f/1.8", proposed_price_cents=250000, status=PendingItemStatus.PENDING),
    ]
    db.add(purchase)
    await db.commit()
    return purchase
