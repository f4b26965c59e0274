"""Current weather from the Open-Meteo forecast API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .constants import OPEN_METEO_FORECAST_URL
from .models import Location
from .providers import DataProvider, ProviderUnavailable, get_json

CURRENT_FIELDS = {
    "temperature_2m": "temperature",
    "relative_humidity_2m": "humidity",
    "wind_speed_10m": "wind_speed",
    "cloud_cover": "cloud_cover",
}


def _number(value: Any) -> Optional[float]:
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


def fetch_current_weather(lat: float, lon: float, timeout: float = 20) -> Dict[str, Optional[float]]:
    """Return current conditions plus today's precipitation total."""

    payload = get_json(
        OPEN_METEO_FORECAST_URL,
        {
            "latitude": lat,
            "longitude": lon,
            "current": ",".join(CURRENT_FIELDS),
            "daily": "precipitation_sum",
            "wind_speed_unit": "ms",
            "forecast_days": 1,
            "timezone": "auto",
        },
        timeout,
        source="Open-Meteo forecast",
    )
    if not isinstance(payload, dict) or "current" not in payload:
        raise ProviderUnavailable("Open-Meteo forecast response has no current block.")

    current = payload.get("current") or {}
    values = {field: _number(current.get(key)) for key, field in CURRENT_FIELDS.items()}
    daily = (payload.get("daily") or {}).get("precipitation_sum") or []
    values["precipitation"] = _number(daily[0]) if daily else None
    return values


class OpenMeteoWeatherProvider(DataProvider):
    name = "open_meteo_weather"

    def fetch(self, location: Location) -> Dict[str, Optional[float]]:
        return fetch_current_weather(location.latitude, location.longitude, timeout=self.timeout)


__all__ = ["OpenMeteoWeatherProvider", "fetch_current_weather"]
