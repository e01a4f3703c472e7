# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Values are validated once at startup. All settings are accessed via
    the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 secret used to verify Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    CELERY_TASK_ALWAYS_EAGER: bool = Field(
        default=False,
        description="Run notification tasks inline instead of sending them to the broker"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Marketplace Settings
    # -------------------------------------------------------------------------

    COMMISSION_RATE: float = Field(
        default=0.05,
        ge=0.0,
        lt=1.0,
        description="Brokerage commission taken from each approved purchase"
    )

    POINTS_PER_WON: int = Field(
        default=1,
        ge=1,
        description="Points credited per won charged"
    )

    ADMIN_NOTIFICATION_EMAIL: str = Field(
        default="admin@example.com",
        description="Recipient of marketplace notification emails"
    )

    ADMIN_SETUP_KEY: str = Field(
        default="",
        description="Shared key allowing the create-admin endpoint without an admin token"
    )

    ALLOW_TEST_DATA_RESET: bool = Field(
        default=False,
        description="Permit the test data reset endpoint in production"
    )

    # -------------------------------------------------------------------------
    # Storage / Upload Settings
    # -------------------------------------------------------------------------

    DOCUMENTS_BUCKET: str = Field(
        default="documents",
        description="Private storage bucket for license and business registration files"
    )

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum file upload size in MB"
    )

    ALLOWED_DOCUMENT_EXTENSIONS: str = Field(
        default=".pdf,.jpg,.jpeg,.png",
        description="Allowed document extensions (comma-separated)"
    )

    ALLOWED_SPREADSHEET_EXTENSIONS: str = Field(
        default=".xlsx,.csv",
        description="Allowed inventory/sales spreadsheet extensions (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Profile Provisioning
    # -------------------------------------------------------------------------

    PROFILE_CREATE_MAX_RETRIES: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Attempts made while waiting for a freshly registered auth user"
    )

    PROFILE_CREATE_RETRY_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Base delay between profile provisioning attempts"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_document_extensions_list(self) -> list[str]:
        """Example: ".pdf, .png" -> [".pdf", ".png"]"""
        return [ext.strip().lower() for ext in self.ALLOWED_DOCUMENT_EXTENSIONS.split(",")]

    @property
    def allowed_spreadsheet_extensions_list(self) -> list[str]:
        return [ext.strip().lower() for ext in self.ALLOWED_SPREADSHEET_EXTENSIONS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def test_data_reset_allowed(self) -> bool:
        """Test data reset is always allowed outside production."""
        return not self.is_production or self.ALLOW_TEST_DATA_RESET


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
