"""Air quality helpers backed by the Open-Meteo API."""

from __future__ import annotations

from statistics import mean
from typing import Dict, List, Optional

from .constants import OPEN_METEO_AIR_URL
from .models import Location
from .providers import DataProvider, ProviderUnavailable, get_json


def _average(values: List[Optional[float]]) -> Optional[float]:
    points = [float(v) for v in values if v is not None]
    if not points:
        return None
    return mean(points)


def aqi_to_score(european_aqi: float) -> float:
    """European AQI (0 good, 100+ extremely poor) to a 0-100 higher-is-cleaner score."""

    return round(max(0.0, min(100.0, 100.0 - float(european_aqi))), 1)


def fetch_air_quality(lat: float, lon: float, hours: int = 24, timeout: float = 20) -> Dict[str, Optional[float]]:
    """Return recent air-quality averages near the given coordinate."""

    payload = get_json(
        OPEN_METEO_AIR_URL,
        {
            "latitude": lat,
            "longitude": lon,
            "hourly": "european_aqi,pm2_5,nitrogen_dioxide",
            "past_days": 1,
            "forecast_days": 1,
            "timezone": "UTC",
        },
        timeout,
        source="Open-Meteo air quality",
    )
    hourly = (payload.get("hourly") or {}) if isinstance(payload, dict) else {}
    length = len(hourly.get("time") or [])
    start_idx = max(0, length - hours)

    def window(key: str) -> List[Optional[float]]:
        series = hourly.get(key) or []
        return series[start_idx:]

    return {
        "european_aqi": _average(window("european_aqi")),
        "pm2_5": _average(window("pm2_5")),
        "no2": _average(window("nitrogen_dioxide")),
    }


class OpenMeteoAirQualityProvider(DataProvider):
    name = "open_meteo_air"

    def fetch(self, location: Location) -> Dict[str, Optional[float]]:
        readings = fetch_air_quality(location.latitude, location.longitude, timeout=self.timeout)
        aqi = readings["european_aqi"]
        if aqi is None:
            raise ProviderUnavailable("Open-Meteo returned no European AQI readings.")
        return {"air_quality_score": aqi_to_score(aqi)}


__all__ = ["OpenMeteoAirQualityProvider", "aqi_to_score", "fetch_air_quality"]
