"""
Runtime Environment Validation Module

Validates required environment variables at application startup.
If validation fails, the application refuses to start (hard fail).
"""

import os
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProductionSettings(BaseSettings):
    """
    Strict validation schema for environment variables.

    Required fields MUST be present and valid, or the application will not start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # CRITICAL: Database Configuration
    # ========================================================================
    database_url: str  # REQUIRED: PostgreSQL connection string

    # ========================================================================
    # CRITICAL: Firebase Authentication
    # ========================================================================
    firebase_project_id: str  # REQUIRED: Firebase project ID
    google_application_credentials: Optional[str] = None  # Path to service account JSON

    # ========================================================================
    # Application Configuration
    # ========================================================================
    app_name: str = "GearDesk"
    debug: bool = False
    api_v1_prefix: str = "/v1"

    # ========================================================================
    # CRITICAL: CORS Configuration
    # ========================================================================
    allowed_origins: str  # REQUIRED: Comma-separated list of allowed origins

    # ========================================================================
    # Optional: External Integrations
    # ========================================================================
    webhook_secret: Optional[str] = None
    resend_api_key: Optional[str] = None
    admin_email: Optional[str] = None
    kapso_api_key: Optional[str] = None
    woo_store_url: Optional[str] = None


def validate_environment() -> ProductionSettings:
    """
    Validate all required environment variables at startup.

    Must be called before the FastAPI app starts.

    Raises:
        SystemExit: If validation fails (exit code 1)
    """

    try:
        settings = ProductionSettings()

        # 1. CORS: wildcard is not allowed outside debug
        if not settings.debug:
            origins = [o.strip() for o in settings.allowed_origins.split(",")]
            if "*" in origins:
                print(
                    "❌ FATAL: Wildcard CORS origin (*) detected in production mode.",
                    file=sys.stderr
                )
                print(
                    "   Set ALLOWED_ORIGINS to specific domains (comma-separated).",
                    file=sys.stderr
                )
                sys.exit(1)

        # 2. Firebase: credentials path must exist (if provided)
        if settings.google_application_credentials:
            if not os.path.exists(settings.google_application_credentials):
                print(
                    f"❌ FATAL: Firebase credentials file not found: {settings.google_application_credentials}",
                    file=sys.stderr
                )
                sys.exit(1)

        # 3. Database URL: PostgreSQL in production, SQLite allowed in debug
        is_postgres = settings.database_url.startswith("postgresql")
        is_sqlite = settings.database_url.startswith("sqlite")
        if not is_postgres and not (settings.debug and is_sqlite):
            print(
                "❌ FATAL: DATABASE_URL must be a PostgreSQL connection string (postgresql:// or postgresql+asyncpg://)",
                file=sys.stderr
            )
            sys.exit(1)

        # 4. Webhooks: the quote bot cannot be verified without a secret
        if not settings.webhook_secret:
            print("⚠️  WEBHOOK_SECRET not set: inbound quote webhooks will be rejected")

        print("✅ Environment validation passed")
        print(f"   App: {settings.app_name}")
        print(f"   Debug: {settings.debug}")
        print(f"   Email: {'enabled' if settings.resend_api_key else 'disabled'}")
        print(f"   CORS Origins: {settings.allowed_origins}")

        return settings

    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        print("\nMissing or invalid environment variables:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"   • {field}: {msg}", file=sys.stderr)

        print("\nThe application cannot start with invalid configuration.", file=sys.stderr)
        print("Please check your .env file or environment variables.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
