"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Recruiting backend (owns positions, applications, users, news)
    backend_api_url: str = "http://localhost:3000"
    backend_timeout_seconds: float = 30.0
    positions_fetch_limit: int = 1000

    # Remote geocoder (Photon, GeoJSON responses)
    geocoder_url: str = "https://photon.komoot.io/api/"
    geocoder_country: str = "Hungary"
    geocoder_timeout_seconds: float = 10.0
    geocode_delay_seconds: float = 0.2

    # Geocode cache
    geocode_cache_backend: Literal["memory", "file", "mongo"] = "file"
    geocode_cache_path: str = "geocoding_cache.json"
    geocode_cache_ttl_seconds: Optional[float] = None  # None = never expire
    geocode_cache_max_entries: Optional[int] = None

    # MongoDB (only used by the mongo cache backend)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "placement_portal"

    # Presentation
    display_timezone: str = "Europe/Budapest"

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    debug: bool = False

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
