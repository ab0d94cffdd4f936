"""
Urban Feedback - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Pipeline timing
    upload_delay_seconds: float = 0.8
    analysis_delay_seconds: float = 2.5
    success_reset_delay_seconds: float = 2.0

    # Location
    gps_high_accuracy: bool = True
    gps_timeout_ms: int = 10000

    # Reverse geocoding (Nominatim)
    geocoding_base_url: str = "https://nominatim.openstreetmap.org"
    geocoding_user_agent: str = "UrbanFeedback/1.0"
    geocoding_timeout_seconds: float = 8.0
    geocoding_zoom: int = 18
    address_segments: int = 3
    coordinate_precision: int = 5

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
