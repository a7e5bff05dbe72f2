"""
ViajaTheme Configuration
Manages environment variables and defaults for the theming service.
"""
import os
from typing import Literal, Optional

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Configuration class for the theming service."""

    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("VIAJATHEME_MAX_FILE_MB", "5"))
    FETCH_TIMEOUT: float = float(os.environ.get("VIAJATHEME_FETCH_TIMEOUT", "10"))

    # Logging
    LOG_LEVEL: str = os.environ.get("VIAJATHEME_LOG_LEVEL", "INFO")

    # Theme store backend
    THEME_STORE_BACKEND: Literal["memory", "supabase"] = os.environ.get(
        "VIAJATHEME_THEME_STORE_BACKEND", "memory"
    )
    SUPABASE_URL: Optional[str] = os.environ.get("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    THEMES_TABLE: str = os.environ.get("VIAJATHEME_THEMES_TABLE", "platform_themes")
    AGENCY_THEMES_TABLE: str = os.environ.get("VIAJATHEME_AGENCY_THEMES_TABLE", "agency_themes")
    ACTIVATE_THEME_RPC: str = os.environ.get("VIAJATHEME_ACTIVATE_THEME_RPC", "activate_theme")

    # Shared secret expected on store change webhooks (empty disables the check)
    WEBHOOK_SECRET: str = os.environ.get("VIAJATHEME_WEBHOOK_SECRET", "")

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("VIAJATHEME_ALLOWED_ORIGINS", "http://localhost:5173")

    # Supported image formats
    SUPPORTED_MIME_TYPES = ["image/png", "image/jpeg", "image/webp", "image/gif"]
    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

    @classmethod
    def validate_store_backend(cls, backend: str) -> bool:
        """Validate theme store backend name."""
        return backend in ["memory", "supabase"]

    @classmethod
    def validate_supabase(cls) -> bool:
        """Check that Supabase credentials are present."""
        return bool(cls.SUPABASE_URL and cls.SUPABASE_SERVICE_ROLE_KEY)

    @classmethod
    def allowed_origins(cls) -> list:
        """Parse the comma-separated CORS origin list."""
        return [origin.strip() for origin in cls.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Global config instance
config = Config()
