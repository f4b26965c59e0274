"""NASA POWER API helpers."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Optional

import pandas as pd

from .constants import NASA_POWER_URL
from .models import Location
from .providers import DataProvider, ProviderUnavailable, get_json

INVALID_VALUE = -999.0

# NASA POWER parameter -> sample field
PARAMETERS = {
    "T2M": "temperature",
    "PRECTOTCORR": "precipitation",
    "RH2M": "humidity",
    "WS2M": "wind_speed",
    "CLOUD_AMT": "cloud_cover",
    "TS": "surface_temperature",
}


def fetch_power_timeseries(
    lat: float,
    lon: float,
    days: int = 30,
    timeout: float = 20,
    end_date: Optional[date] = None,
) -> pd.DataFrame:
    """Fetch daily NASA POWER values as a date-indexed DataFrame.

    Columns are sample field names; the API's ``-999`` fill value becomes NaN.
    The frame doubles as chart data for temperature and precipitation trends.
    """

    if days <= 0:
        days = 30
    end = end_date or date.today()
    start = end - timedelta(days=days - 1)

    params = {
        "latitude": lat,
        "longitude": lon,
        "start": start.strftime("%Y%m%d"),
        "end": end.strftime("%Y%m%d"),
        "parameters": ",".join(PARAMETERS),
        "community": "RE",
        "format": "JSON",
    }
    payload = get_json(NASA_POWER_URL, params, timeout, source="NASA POWER")

    parameter = ((payload.get("properties") or {}).get("parameter") or {}) if isinstance(payload, dict) else {}
    if not parameter:
        raise ProviderUnavailable("NASA POWER returned no parameters for this window.")

    frame = pd.DataFrame({PARAMETERS[key]: series for key, series in parameter.items() if key in PARAMETERS})
    frame.index = pd.to_datetime(frame.index, format="%Y%m%d")
    frame = frame.sort_index().apply(pd.to_numeric, errors="coerce")
    return frame.mask(frame == INVALID_VALUE)


def summarise_power(frame: pd.DataFrame, window: int = 7) -> Dict[str, Optional[float]]:
    """Average the most recent ``window`` valid days of each column."""

    values: Dict[str, Optional[float]] = {}
    for field in PARAMETERS.values():
        if field not in frame:
            values[field] = None
            continue
        series = frame[field].dropna().tail(window)
        values[field] = round(float(series.mean()), 2) if not series.empty else None
    return values


class NasaPowerProvider(DataProvider):
    """Recent daily means of temperature, rain, humidity, wind, cloud and skin temperature."""

    name = "nasa_power"

    def __init__(self, timeout: float = 8.0, days: int = 14, window: int = 7) -> None:
        super().__init__(timeout)
        self.days = days
        self.window = window

    def fetch(self, location: Location) -> Dict[str, Optional[float]]:
        frame = fetch_power_timeseries(
            location.latitude, location.longitude, days=self.days, timeout=self.timeout
        )
        values = summarise_power(frame, window=self.window)
        if all(value is None for value in values.values()):
            raise ProviderUnavailable("NASA POWER returned only fill values for this window.")
        return values


__all__ = ["NasaPowerProvider", "fetch_power_timeseries", "summarise_power"]
