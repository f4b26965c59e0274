"""Pytest configuration for the project."""
from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from uie_app.models import DataQuality, EnvironmentalSample, Location  # noqa: E402

FIXED_TIME = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)

BASE_VALUES = {
    "temperature": 21.0,
    "precipitation": 5.0,
    "humidity": 60.0,
    "wind_speed": 4.0,
    "air_quality_score": 80.0,
    "vegetation_fraction": 0.4,
    "surface_temperature": 30.0,
    "cloud_cover": 40.0,
}


@pytest.fixture
def dhaka() -> Location:
    return Location(23.8103, 90.4125)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def make_sample(dhaka):
    """Build a measured sample at Dhaka, overriding any field by keyword."""

    def factory(location: Location = dhaka, quality: DataQuality = DataQuality.MEASURED, **overrides):
        values = dict(BASE_VALUES)
        values.update(overrides)
        return EnvironmentalSample(
            latitude=location.latitude,
            longitude=location.longitude,
            timestamp=FIXED_TIME,
            quality=quality,
            sources={name: "test" for name in values},
            **values,
        )

    return factory
