"""
Configuration for the telemetry and weather collectors.
Every value can be overridden through environment variables.
"""
import os
from decimal import Decimal
from typing import Optional


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class CollectorConfig:
    """Polling cadences, operating hours and upstream credentials."""

    WEATHER_API_KEY: Optional[str] = os.getenv("KARTMAN_WEATHER_API_KEY", None)
    WEATHER_LOCATION: str = os.getenv("KARTMAN_WEATHER_LOCATION", "Batumi")

    TELEMETRY_POLL_INTERVAL_SECONDS: float = float(os.getenv("KARTMAN_TELEMETRY_POLL_INTERVAL", "3"))
    IDLE_POLL_INTERVAL_SECONDS: float = float(os.getenv("KARTMAN_IDLE_POLL_INTERVAL", "300"))
    WEATHER_POLL_INTERVAL_SECONDS: float = float(os.getenv("KARTMAN_WEATHER_POLL_INTERVAL", "60"))
    HTTP_TIMEOUT: float = float(os.getenv("KARTMAN_HTTP_TIMEOUT", "30"))

    # Operating hours of the track, UTC (9 AM - 11 PM local).
    START_HOUR_UTC: int = int(os.getenv("KARTMAN_START_HOUR_UTC", "5"))
    END_HOUR_UTC: int = int(os.getenv("KARTMAN_END_HOUR_UTC", "19"))
    STALE_TELEMETRY_HOURS: float = float(os.getenv("KARTMAN_STALE_TELEMETRY_HOURS", "1.5"))
    DAY_END_DETECTION_ENABLED: bool = _get_bool("KARTMAN_DAY_END_DETECTION", False)

    # Upstream times are occasionally skewed, so the default accepts everything.
    MIN_LAP_TIME: Decimal = Decimal(os.getenv("KARTMAN_MIN_LAP_TIME", "0"))
