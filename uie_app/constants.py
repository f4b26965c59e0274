"""Shared constants for the Urban Index Engine."""

from __future__ import annotations

from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CREDENTIALS_PATH = ROOT_DIR / "credentials.json"

NASA_POWER_URL = "https://power.larc.nasa.gov/api/temporal/daily/point"
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_AIR_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"

DEFAULT_PROVIDER_TIMEOUT = 8.0  # seconds
DEFAULT_USER_AGENT = "urban-index-engine/0.1"

# Plausible ranges for values generated when a provider cannot supply a field.
SYNTHETIC_RANGES = {
    "temperature": (20.0, 30.0),
    "precipitation": (0.0, 10.0),
    "humidity": (50.0, 80.0),
    "wind_speed": (2.0, 12.0),
    "air_quality_score": (50.0, 90.0),
    "vegetation_fraction": (0.2, 0.6),
    "surface_temperature": (22.0, 37.0),
    "cloud_cover": (0.0, 100.0),
}

HEALTH_STATUS_THRESHOLDS = (
    (80.0, "Excellent"),
    (60.0, "Good"),
    (40.0, "Moderate"),
)
HEALTH_STATUS_FLOOR = "Needs Improvement"


__all__ = [
    "ROOT_DIR",
    "DEFAULT_CREDENTIALS_PATH",
    "NASA_POWER_URL",
    "OPEN_METEO_FORECAST_URL",
    "OPEN_METEO_AIR_URL",
    "DEFAULT_PROVIDER_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "SYNTHETIC_RANGES",
    "HEALTH_STATUS_THRESHOLDS",
    "HEALTH_STATUS_FLOOR",
]
