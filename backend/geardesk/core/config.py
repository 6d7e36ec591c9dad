"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "GearDesk"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    allowed_origins: str = "http://localhost:3000"
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    # Database
    database_url: str

    # Firebase Auth
    firebase_project_id: str
    google_application_credentials: Optional[str] = None

    # Inbound webhooks (WhatsApp quote bot)
    webhook_secret: Optional[str] = None

    # Scheduled jobs (Authorization: Bearer <secret>; open when unset)
    cron_secret: Optional[str] = None

    # Email (Resend)
    resend_api_key: Optional[str] = None
    email_from: str = "GearDesk <noreply@geardesk.local>"
    admin_email: Optional[str] = None
    company_name: str = "GearDesk Camera Exchange"
    dashboard_url: str = "http://localhost:3000"
    public_base_url: str = "http://localhost:3000"

    # WhatsApp (Kapso)
    kapso_api_key: Optional[str] = None
    kapso_phone_number_id: Optional[str] = None

    # WooCommerce defaults (woo_settings row takes precedence)
    woo_store_url: Optional[str] = None
    woo_consumer_key: Optional[str] = None
    woo_consumer_secret: Optional[str] = None

    # Lensfun
    lensfun_data_dir: str = "data/lensfun"

    # Quote confirmation links
    quote_token_ttl_days: int = 7
    tracking_reminder_limit: int = 7

    @property
    def email_enabled(self) -> bool:
        return bool(self.resend_api_key)

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite:///"):
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
