"""Deterministic stand-in values for fields no provider could supply."""

from __future__ import annotations

import math
from typing import Dict, Iterable, Optional

from .constants import SYNTHETIC_RANGES
from .models import SAMPLE_FIELDS, Location


def _noise(lat: float, lon: float, seed: int) -> float:
    return abs(math.sin(lat * 5 + lon * 3 + seed)) % 1.0


def synthetic_value(location: Location, field: str) -> float:
    """Return a plausible value for ``field`` that depends only on the location."""

    low, high = SYNTHETIC_RANGES[field]
    seed = SAMPLE_FIELDS.index(field) + 1
    value = low + (high - low) * _noise(location.latitude, location.longitude, seed)
    return round(value, 3 if field == "vegetation_fraction" else 1)


def synthetic_values(location: Location, fields: Optional[Iterable[str]] = None) -> Dict[str, float]:
    return {field: synthetic_value(location, field) for field in (fields or SAMPLE_FIELDS)}


__all__ = ["synthetic_value", "synthetic_values"]
