"""Application configuration helpers."""

import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from charity_finder.models import Coordinate

logger = logging.getLogger(__name__)

CATALOG_CHOICES = {"static", "google_places"}


class ConfigError(RuntimeError):
    """Raised when a configuration value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str = ""
    catalog: str = "static"
    default_radius_miles: float = 25.0
    location_timeout_ms: int = 30000
    location_max_cached_age_ms: int = 300000
    location_high_accuracy: bool = True
    fallback_lat: float = 40.7128
    fallback_lng: float = -74.0060
    ip_geolocation_url: str = "http://ip-api.com/json"
    worker_port: int = 9000


def _parse_env(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} has an invalid value: {raw!r}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    catalog = os.getenv("CHARITY_CATALOG", "static").strip().lower()
    if catalog not in CATALOG_CHOICES:
        raise ConfigError(f"CHARITY_CATALOG must be one of {sorted(CATALOG_CHOICES)}, got {catalog!r}")

    default_radius_miles = _parse_env("DEFAULT_RADIUS_MILES", "25", float)
    if not (math.isfinite(default_radius_miles) and default_radius_miles > 0):
        raise ConfigError("DEFAULT_RADIUS_MILES must be a finite positive number")

    location_timeout_ms = _parse_env("LOCATION_TIMEOUT_MS", "30000", int)
    location_max_cached_age_ms = _parse_env("LOCATION_MAX_CACHED_AGE_MS", "300000", int)
    location_high_accuracy = os.getenv("LOCATION_HIGH_ACCURACY", "true").lower() in {"1", "true", "yes"}
    fallback_lat = _parse_env("FALLBACK_LAT", "40.7128", float)
    fallback_lng = _parse_env("FALLBACK_LNG", "-74.0060", float)
    if not Coordinate(fallback_lat, fallback_lng).is_valid():
        raise ConfigError(f"FALLBACK_LAT/FALLBACK_LNG out of range: {fallback_lat}, {fallback_lng}")
    ip_geolocation_url = os.getenv("IP_GEOLOCATION_URL", "http://ip-api.com/json")
    worker_port = _parse_env("WORKER_PORT", "9000", int)

    if catalog == "google_places" and not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places catalog requests will fail.")

    return Settings(
        google_api_key=google_api_key,
        catalog=catalog,
        default_radius_miles=default_radius_miles,
        location_timeout_ms=location_timeout_ms,
        location_max_cached_age_ms=location_max_cached_age_ms,
        location_high_accuracy=location_high_accuracy,
        fallback_lat=fallback_lat,
        fallback_lng=fallback_lng,
        ip_geolocation_url=ip_geolocation_url,
        worker_port=worker_port,
    )
