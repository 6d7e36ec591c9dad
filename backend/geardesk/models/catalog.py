"""Catalog items, Lensfun reference lenses, enrichment suggestions and blocking issues."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    String, DateTime, ForeignKey, Enum as SQLEnum, Text, Integer, Boolean, Float, Uuid,
    Index, UniqueConstraint, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from geardesk.core.database import Base, JSONType
from geardesk.models.enums import SuggestionStatus, IssueStatus, IssueSeverity


class CatalogItem(Base):
    """A price-guide entry ("output_text" is the canonical listing name)."""

    __tablename__ = "catalog_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    output_text: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    make: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    product_type: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    specifications: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)

    # Price guide (INTEGER CENTS)
    buy_low: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    buy_high: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    consign_low: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    consign_high: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def is_lens(self) -> bool:
        return "lens" in (self.product_type or "").lower()


class LensfunLens(Base):
    """A lens imported from the Lensfun XML database."""

    __tablename__ = "lensfun_lenses"
    __table_args__ = (
        UniqueConstraint("maker", "model", name="uq_lensfun_maker_model"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    maker: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    mounts: Mapped[list[str]] = mapped_column(JSONType, default=list)
    lens_type: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    crop_factor: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    focal_min_mm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    focal_max_mm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    aperture_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    aperture_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    source_file: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    imported_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class EnrichmentSuggestion(Base):
    """A Lensfun match proposed for (or applied to) a catalog item."""

    __tablename__ = "catalog_enrichment_suggestions"
    __table_args__ = (
        # At most one pending review per catalog item
        Index(
            "uq_enrichment_pending_per_item",
            "catalog_item_id",
            unique=True,
            postgresql_where=text("status = 'PENDING_REVIEW'"),
            sqlite_where=text("status = 'PENDING_REVIEW'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    catalog_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lensfun_lens_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("lensfun_lenses.id", ondelete="SET NULL"), nullable=True
    )

    match_score: Mapped[float] = mapped_column(Float, nullable=False)
    match_confidence: Mapped[str] = mapped_column(String(16), nullable=False)
    match_reasons: Mapped[list[str]] = mapped_column(JSONType, default=list)
    suggested_specs: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    specs_before: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    specs_after: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    status: Mapped[SuggestionStatus] = mapped_column(
        SQLEnum(SuggestionStatus), nullable=False, index=True
    )
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    review_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    catalog_item: Mapped["CatalogItem"] = relationship("CatalogItem", lazy="selectin")


class CatalogBlockingIssue(Base):
    """A data-quality problem detected by the catalog scan."""

    __tablename__ = "catalog_blocking_issues"
    __table_args__ = (
        Index(
            "uq_open_issue_per_item_type",
            "catalog_item_id",
            "issue_type",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    catalog_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    issue_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    severity: Mapped[IssueSeverity] = mapped_column(
        SQLEnum(IssueSeverity), default=IssueSeverity.BLOCKING, nullable=False
    )
    status: Mapped[IssueStatus] = mapped_column(
        SQLEnum(IssueStatus), default=IssueStatus.OPEN, nullable=False, index=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    first_detected_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_detected_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    resolution_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
