"""Google Earth Engine vegetation helpers."""

from __future__ import annotations

import json
from datetime import date, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

import ee
from loguru import logger

from .constants import DEFAULT_CREDENTIALS_PATH
from .models import Location
from .providers import DataProvider, ProviderUnavailable, call_with_timeout

DEFAULT_CLOUD_COVER = 20
DEFAULT_LOOKBACK_DAYS = 90
DEFAULT_BUFFER_M = 1_000

# NDVI of bare soil and of dense canopy, used to turn NDVI into a cover fraction.
NDVI_SOIL = 0.05
NDVI_CANOPY = 0.85


class EarthEngineUnavailable(ProviderUnavailable):
    """Raised when Google Earth Engine cannot be used."""


def _load_service_account(path: Path) -> Tuple[str, Path]:
    data = json.loads(path.read_text())
    service_account = data.get("client_email")
    if not service_account:
        raise EarthEngineUnavailable("Service account email missing in credentials file")
    return service_account, path


@lru_cache(maxsize=4)
def initialise(credentials_path: Path = DEFAULT_CREDENTIALS_PATH) -> Tuple[bool, Optional[str]]:
    """Initialise the Earth Engine client once per credentials file."""

    resolved = credentials_path.resolve()
    if not resolved.exists():
        return False, f"Credentials file not found at {resolved}"

    try:
        service_account, key_path = _load_service_account(resolved)
        credentials = ee.ServiceAccountCredentials(service_account, str(key_path))
        ee.Initialize(credentials=credentials)
        return True, None
    except Exception as exc:  # pragma: no cover - relies on external service
        logger.warning("Earth Engine initialisation failed: {}", exc)
        return False, str(exc)


def ndvi_to_fraction(ndvi: float) -> float:
    """Linear fractional vegetation cover between bare soil and full canopy."""

    value = (float(ndvi) - NDVI_SOIL) / (NDVI_CANOPY - NDVI_SOIL)
    return round(max(0.0, min(1.0, value)), 3)


def mean_ndvi(
    lat: float,
    lon: float,
    buffer_m: int = DEFAULT_BUFFER_M,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    max_cloud: int = DEFAULT_CLOUD_COVER,
    end_date: Optional[date] = None,
) -> Optional[float]:
    """Median Sentinel-2 NDVI averaged over a buffer around the point."""

    end = end_date or date.today()
    start = end - timedelta(days=lookback_days)
    aoi = ee.Geometry.Point([lon, lat]).buffer(buffer_m)
    image = (
        ee.ImageCollection("COPERNICUS/S2_SR_HARMONIZED")
        .filterBounds(aoi)
        .filterDate(start.isoformat(), end.isoformat())
        .filter(ee.Filter.lt("CLOUDY_PIXEL_PERCENTAGE", max_cloud))
        .median()
    )
    ndvi = image.normalizedDifference(["B8", "B4"]).rename("NDVI")
    stats = ndvi.reduceRegion(reducer=ee.Reducer.mean(), geometry=aoi, scale=30, bestEffort=True)
    results = stats.getInfo() or {}
    return results.get("NDVI")


class EarthEngineVegetationProvider(DataProvider):
    name = "earth_engine"

    def __init__(self, timeout: float = 8.0, credentials_path: Path = DEFAULT_CREDENTIALS_PATH) -> None:
        super().__init__(timeout)
        self.credentials_path = Path(credentials_path)

    def fetch(self, location: Location) -> Dict[str, Optional[float]]:
        status, error = initialise(self.credentials_path)
        if not status:
            raise EarthEngineUnavailable(error or "Earth Engine unavailable")
        # The deadline bounds each Earth Engine HTTP request; the worker bounds the whole computation.
        ee.data.setDeadline(int(self.timeout * 1000))
        try:
            ndvi = call_with_timeout(
                mean_ndvi, self.timeout, "Earth Engine NDVI", location.latitude, location.longitude
            )
        except ee.EEException as exc:
            raise EarthEngineUnavailable(f"Earth Engine NDVI request failed: {exc}") from exc
        if ndvi is None:
            raise EarthEngineUnavailable("No cloud-free Sentinel-2 scenes for this location.")
        return {"vegetation_fraction": ndvi_to_fraction(ndvi)}


__all__ = [
    "EarthEngineUnavailable",
    "EarthEngineVegetationProvider",
    "initialise",
    "mean_ndvi",
    "ndvi_to_fraction",
]
