"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development.

Usage:
    from damwatch.core.config import settings
    print(settings.CACHE_TTL_SECONDS)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "DamWatch Hazard Engine"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Cache ──
    CACHE_TTL_SECONDS: int = Field(default=600, gt=0)  # 10 min

    # ── Batch processing ──
    BATCH_SIZE: int = Field(default=5, ge=1)  # concurrent sites per chunk

    # ── Upstream timeouts (seconds) ──
    SOURCE_TIMEOUT_SECONDS: float = 15.0
    SATELLITE_TIMEOUT_SECONDS: float = 20.0  # NASA POWER is slow

    # ── External APIs ──
    OPEN_METEO_BASE_URL: str = "https://api.open-meteo.com/v1"
    OPEN_METEO_FLOOD_URL: str = "https://flood-api.open-meteo.com/v1/flood"
    NASA_POWER_URL: str = "https://power.larc.nasa.gov/api/temporal/daily/point"
    USGS_EARTHQUAKE_URL: str = "https://earthquake.usgs.gov/fdsnws/event/1/query"
    SOURCE_TIMEZONE: str = "Asia/Kolkata"

    # ── Query windows ──
    FORECAST_DAYS: int = 7
    HISTORY_DAYS: int = 7
    SATELLITE_DAYS: int = 14
    SEISMIC_RADIUS_KM: float = 300.0
    SEISMIC_LOOKBACK_DAYS: int = 30
    SEISMIC_MIN_MAGNITUDE: float = 2.5

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
