"""Store integration settings editable from the dashboard."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Boolean, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from geardesk.core.database import Base


class WooSettings(Base):
    """WooCommerce credentials (single row). Overrides the WOO_* environment defaults."""

    __tablename__ = "woo_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_url: Mapped[str] = mapped_column(String(255), nullable=False)
    consumer_key: Mapped[str] = mapped_column(String(255), nullable=False)
    consumer_secret: Mapped[str] = mapped_column(String(255), nullable=False)
    auto_sync: Mapped[bool] = mapped_column(Boolean, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
