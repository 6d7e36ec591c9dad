"""Product catalog used during inspection, with question and accessory templates."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    String, DateTime, ForeignKey, Enum as SQLEnum, Text, Integer, Boolean, Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base, JSONType
from geardesk.models.enums import ProductType


class Product(Base):
    """A sellable model with buy and consignment price bands."""

    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("brand", "model", "variant", name="uq_products_brand_model_variant"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    variant: Mapped[str] = mapped_column(String(120), nullable=False, default="Standard")
    product_type: Mapped[ProductType] = mapped_column(
        SQLEnum(ProductType),
        nullable=False,
    )

    # Price bands (INTEGER CENTS)
    buy_price_min_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    buy_price_max_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    consign_price_min_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    consign_price_max_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    specifications: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    question_templates: Mapped[list["ProductQuestionTemplate"]] = relationship(
        "ProductQuestionTemplate",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductQuestionTemplate.question_order",
    )
    accessory_templates: Mapped[list["AccessoryTemplate"]] = relationship(
        "AccessoryTemplate",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="AccessoryTemplate.accessory_order",
    )


class ProductQuestionTemplate(Base):
    """A checklist question asked for every unit of a product."""

    __tablename__ = "product_question_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    question_order: Mapped[int] = mapped_column(Integer, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, default=True)
    category: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)


class AccessoryTemplate(Base):
    """An accessory expected in the box; missing ones reduce the offer."""

    __tablename__ = "accessory_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    accessory_name: Mapped[str] = mapped_column(String(255), nullable=False)
    accessory_order: Mapped[int] = mapped_column(Integer, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    penalty_amount_cents: Mapped[int] = mapped_column(Integer, default=0)
