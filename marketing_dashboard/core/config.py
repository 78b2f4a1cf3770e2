"""
Settings and environment management for the marketing dashboard API.

Configuration is loaded with pydantic-settings from environment variables and an
optional ``.env`` file. Values are validated once and cached, so request handlers
and services receive an already-built ``Settings`` object instead of reading the
process environment themselves.

Environment Variables:
- GA4_PROPERTY_ID: GA4 property to report on, ``123456789`` or ``properties/123456789`` (Required)
- GA4_API_BASE: Base URL of the GA4 Data API (default: https://analyticsdata.googleapis.com/v1beta)
- GA4_REQUEST_TIMEOUT_SECONDS: Timeout applied to every runReport call (default: 10.0)
- DEFAULT_WINDOW_DAYS: Length of the default reporting window (default: 7)
- CORS_ORIGINS: Comma separated extra origins allowed to call the API
- LOG_LEVEL: Root logging level (default: INFO)

Usage:
    from marketing_dashboard.core.config import get_settings

    settings = get_settings()
    property_path = settings.property_path
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_GA4_API_BASE = "https://analyticsdata.googleapis.com/v1beta"

# Next.js dashboard dev servers
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        ga4_property_id: GA4 property id, with or without the ``properties/`` prefix.
        ga4_api_base: Base URL of the GA4 Data API.
        ga4_request_timeout_seconds: Per-call timeout for upstream report requests.
            A timeout is handled like any other upstream failure.
        default_window_days: Days between start and end of the default window
            used when the caller omits ``startDate``.
        cors_origins: Extra origins (comma separated) allowed by the CORS middleware.
        log_level: Name of the root logging level.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # GA4 Data API
    # =========================================================================

    ga4_property_id: str

    ga4_api_base: str = DEFAULT_GA4_API_BASE

    # Upper bound on a single facet; calls are never retried
    ga4_request_timeout_seconds: float = 10.0

    # =========================================================================
    # Reporting defaults
    # =========================================================================

    default_window_days: int = 7

    # =========================================================================
    # Service
    # =========================================================================

    cors_origins: str = ""

    log_level: str = "INFO"

    @property
    def property_path(self) -> str:
        """
        Return the property as the ``properties/{id}`` resource path.

        Example:
            >>> Settings(ga4_property_id="123").property_path
            'properties/123'
            >>> Settings(ga4_property_id="properties/123").property_path
            'properties/123'
        """
        property_id = self.ga4_property_id.strip()
        if property_id.startswith("properties/"):
            property_id = property_id[len("properties/"):]
        return f"properties/{property_id}"

    @property
    def allowed_origins(self) -> List[str]:
        """Default dashboard origins plus any configured through CORS_ORIGINS."""
        extra = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return DEFAULT_CORS_ORIGINS + extra


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Raises:
        pydantic.ValidationError: If GA4_PROPERTY_ID is not configured.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
