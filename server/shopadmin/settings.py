"""
Store Admin Server Settings

Configuration management using pydantic settings.
Loads from environment variables with SHOP_ADMIN_ prefix.
"""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field
from typing import List


class Settings(BaseSettings):
    """
    Server configuration settings.

    Environment variables:
    - SHOP_ADMIN_ALLOWED_ORIGINS_RAW: Comma-separated list of allowed CORS origins
    - SHOP_ADMIN_ADMIN_EMAIL / SHOP_ADMIN_ADMIN_PASSWORD: Credentials seeded on first start
    - SHOP_ADMIN_BCRYPT_ROUNDS: bcrypt cost factor (default: 10)
    - SHOP_ADMIN_DEFAULT_DELIVERY_AREA: Zone used when an order omits one (default: sitra)
    - SHOP_ADMIN_DELIVERY_AREAS_RAW: Comma-separated list of accepted delivery zones
    - SHOP_ADMIN_UPLOAD_DIR: Directory for uploaded product images (default: uploads)
    - SHOP_ADMIN_MAX_UPLOAD_MB: Per-file upload limit in megabytes (default: 5)
    - SHOP_ADMIN_LOGIN_RATE_LIMIT: slowapi limit string for admin login (default: 10/minute)
    - SHOP_ADMIN_LIMITS_ENABLED: Enable rate limiting (default: true)
    - SHOP_ADMIN_ENVIRONMENT: Reported by /api/debug (default: production)
    - DATABASE_URL: PostgreSQL connection string (in-memory tables when unset)
    """

    model_config = SettingsConfigDict(
        env_prefix="SHOP_ADMIN_",
        env_file=".env",
        extra="ignore",
    )

    # Raw string fields for comma-separated values
    allowed_origins_raw: str = ""
    delivery_areas_raw: str = "sitra,manama,muharraq,riffa,isa-town,hamad-town,juffair,seef,budaiya,saar"
    allowed_image_extensions_raw: str = "jpg,jpeg,png,gif,webp"

    # Default administrator, only used when no admin record exists yet
    admin_email: str = "admin@azharstore.com"
    admin_password: str = "azhar2311"
    bcrypt_rounds: int = 10

    default_delivery_area: str = "sitra"

    upload_dir: str = "uploads"
    max_upload_mb: int = 5

    login_rate_limit: str = "10/minute"
    limits_enabled: bool = True

    # In-process buffers
    max_log_entries: int = 1000
    max_analytics_events: int = 10000

    environment: str = "production"
    debug: bool = False

    @computed_field
    @property
    def allowed_origins(self) -> List[str]:
        """Parse comma-separated allowed origins into list."""
        if not self.allowed_origins_raw:
            return []
        return [v.strip() for v in self.allowed_origins_raw.split(",") if v.strip()]

    @computed_field
    @property
    def delivery_areas(self) -> List[str]:
        """Parse comma-separated delivery zones into list."""
        return [v.strip().lower() for v in self.delivery_areas_raw.split(",") if v.strip()]

    @computed_field
    @property
    def allowed_image_extensions(self) -> List[str]:
        return [v.strip().lower().lstrip(".") for v in self.allowed_image_extensions_raw.split(",") if v.strip()]


# Database URL (read separately since it doesn't have the SHOP_ADMIN_ prefix)
DATABASE_URL = os.environ.get("DATABASE_URL", "")

# Global settings instance
settings = Settings()
