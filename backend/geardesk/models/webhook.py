"""Inbound webhook event log (idempotency + replay)."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, String, DateTime, ForeignKey, Enum as SQLEnum, Text, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from geardesk.core.database import Base, JSONType
from geardesk.models.enums import WebhookStatus


class WebhookEventLog(Base):
    """One row per delivered event_id; the unique constraint makes redelivery a no-op."""

    __tablename__ = "webhook_event_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    version: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    status: Mapped[WebhookStatus] = mapped_column(
        SQLEnum(WebhookStatus),
        default=WebhookStatus.PENDING,
        nullable=False,
        index=True,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    related_entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    related_entity_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    received_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Request forensics
    source_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    signature_provided: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    signature_computed: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    signature_valid: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Replay
    retry_count: Mapped[int] = mapped_column(Integer, default=0)
    last_retried_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Ignore
    ignored_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ignored_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    ignore_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
