"""Configuration management using Pydantic Settings."""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"


# =============================================================================
# Find .env file
# =============================================================================

def find_env_file() -> str:
    """Find the .env file relative to project root."""
    candidates = [
        "config/.env",
        ".env",
        PACKAGE_DIR.parent / "config" / ".env",
    ]

    for candidate in candidates:
        path = Path(candidate)
        if path.exists():
            return str(path)

    return "config/.env"  # Default


ENV_FILE = find_env_file()


# =============================================================================
# Settings Classes
# =============================================================================


class AvailabilitySettings(BaseSettings):
    """Calendar feed ingestion and cache settings."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix="AVAILABILITY_",
        extra="ignore",
    )

    cache_ttl_seconds: int = 30 * 60
    fetch_timeout_seconds: float = 10.0
    timezone: str = "Europe/Zurich"
    booking_window_months: int = 24

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Cache TTL cannot be negative")
        return v

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(seconds=self.cache_ttl_seconds)


class BookingSettings(BaseSettings):
    """Booking inquiry settings."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix="BOOKING_",
        extra="ignore",
    )

    inquiry_email: str = "info@stieregg.ch"
    site_url: str = ""


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    # Static configuration
    apartments_file: Path = DATA_DIR / "apartments.json"
    seasons_file: Path = DATA_DIR / "seasons.json"

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]
    api_prefix: str = "/api"


class Settings(BaseSettings):
    """Main settings container with lazy loading."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cache for sub-settings
    _availability: AvailabilitySettings | None = None
    _booking: BookingSettings | None = None
    _app: AppSettings | None = None

    @property
    def availability(self) -> AvailabilitySettings:
        if self._availability is None:
            self._availability = AvailabilitySettings()
        return self._availability

    @property
    def booking(self) -> BookingSettings:
        if self._booking is None:
            self._booking = BookingSettings()
        return self._booking

    @property
    def app(self) -> AppSettings:
        if self._app is None:
            self._app = AppSettings()
        return self._app

    # Convenience accessors
    @property
    def timezone(self) -> str:
        return self.availability.timezone

    @property
    def cache_ttl(self) -> timedelta:
        return self.availability.cache_ttl

    @property
    def apartments_file(self) -> Path:
        return self.app.apartments_file

    @property
    def seasons_file(self) -> Path:
        return self.app.seasons_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
