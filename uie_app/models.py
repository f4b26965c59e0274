"""Value types shared by the gateway, composer, classifier and needs aggregator."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class InvalidLocation(ValueError):
    """Raised when a coordinate falls outside the WGS84 range."""


class StatusBand(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    CRITICAL = "critical"


class Directionality(str, Enum):
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class DataQuality(str, Enum):
    MEASURED = "measured"
    ESTIMATED = "estimated"
    SYNTHETIC = "synthetic"


class NeedSeverity(str, Enum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    LOW = "low"


SAMPLE_FIELDS: Tuple[str, ...] = (
    "temperature",
    "precipitation",
    "humidity",
    "wind_speed",
    "air_quality_score",
    "vegetation_fraction",
    "surface_temperature",
    "cloud_cover",
)

SYNTHETIC_SOURCE = "synthetic"


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, limit in (
            ("latitude", self.latitude, 90.0),
            ("longitude", self.longitude, 180.0),
        ):
            try:
                number = float(value)
            except (TypeError, ValueError):
                raise InvalidLocation(f"{name} must be a number, got {value!r}") from None
            if math.isnan(number) or not -limit <= number <= limit:
                raise InvalidLocation(f"{name} {value!r} is outside [-{limit:g}, {limit:g}]")
            object.__setattr__(self, name, number)

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class AreaBounds:
    """Map selection rectangle in decimal degrees."""

    north: float
    south: float
    east: float
    west: float

    def __post_init__(self) -> None:
        # Constructing the corners validates every edge.
        Location(self.north, self.east)
        Location(self.south, self.west)
        if self.south > self.north:
            raise InvalidLocation(f"south {self.south} lies north of north {self.north}")
        if self.west > self.east:
            raise InvalidLocation(f"west {self.west} lies east of east {self.east}")

    @property
    def center(self) -> Location:
        return Location((self.north + self.south) / 2, (self.east + self.west) / 2)


@dataclass(frozen=True)
class EnvironmentalSample:
    latitude: float
    longitude: float
    temperature: float  # °C
    precipitation: float  # mm/day
    humidity: float  # %
    wind_speed: float  # m/s
    air_quality_score: float  # 0-100, higher is cleaner
    vegetation_fraction: float  # 0-1
    surface_temperature: float  # °C
    cloud_cover: float  # %
    timestamp: datetime
    quality: DataQuality
    sources: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", _frozen(self.sources))

    @property
    def location(self) -> Location:
        return Location(self.latitude, self.longitude)

    @property
    def synthetic_fields(self) -> Tuple[str, ...]:
        return tuple(name for name in SAMPLE_FIELDS if self.sources.get(name) == SYNTHETIC_SOURCE)

    @property
    def is_degraded(self) -> bool:
        return self.quality is not DataQuality.MEASURED

    def values(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in SAMPLE_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = self.values()
        payload.update(
            {
                "coordinates": {"lat": self.latitude, "lon": self.longitude},
                "timestamp": self.timestamp.isoformat(),
                "quality": self.quality.value,
                "sources": dict(self.sources),
            }
        )
        return payload


@dataclass(frozen=True)
class UrbanIndex:
    """One named sub-index with its component breakdown.

    ``components`` must add up to ``total_score`` and every component must sit
    inside the point range declared for it in ``component_ranges``.
    """

    key: str
    name: str
    category: str
    components: Mapping[str, int]
    total_score: int
    target: float
    directionality: Directionality
    component_ranges: Mapping[str, Tuple[int, int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", _frozen(self.components))
        object.__setattr__(self, "component_ranges", _frozen(self.component_ranges))
        total = sum(self.components.values())
        if total != self.total_score:
            raise ValueError(
                f"{self.key}: components sum to {total}, expected {self.total_score}"
            )
        for name, value in self.components.items():
            bounds = self.component_ranges.get(name)
            if bounds and not bounds[0] <= value <= bounds[1]:
                raise ValueError(f"{self.key}: {name}={value} outside {bounds[0]}-{bounds[1]} points")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index_name": self.name,
            "category": self.category,
            "components": dict(self.components),
            "total_score": self.total_score,
            "target": self.target,
            "directionality": self.directionality.value,
        }


@dataclass(frozen=True)
class IndexStatus:
    band: StatusBand
    progress_pct: float


@dataclass(frozen=True)
class CityHealthSnapshot:
    location: Location
    timestamp: datetime
    indices: Mapping[str, UrbanIndex]
    statuses: Mapping[str, IndexStatus]
    overall_score: float
    health_status: str
    data_quality: DataQuality
    sample: EnvironmentalSample
    place_name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", _frozen(self.indices))
        object.__setattr__(self, "statuses", _frozen(self.statuses))

    def to_dict(self) -> Dict[str, Any]:
        indices = {}
        for key, index in self.indices.items():
            entry = index.to_dict()
            status = self.statuses.get(key)
            if status is not None:
                entry["status"] = status.band.value
                entry["progress_pct"] = round(status.progress_pct, 1)
            indices[key] = entry
        return {
            "timestamp": self.timestamp.isoformat(),
            "location": self.location.to_dict(),
            "place_name": self.place_name,
            "overall_score": self.overall_score,
            "city_health_status": self.health_status,
            "indices": indices,
            "data_quality": self.data_quality.value,
            "synthetic_fields": list(self.sample.synthetic_fields),
            "last_updated": self.sample.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class CommunityNeed:
    category: str
    label: str
    severity: NeedSeverity
    score: float
    location: Location
    source_index: str
    band: StatusBand
    cluster_size: int = 1
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.category,
            "name": self.label,
            "level": self.severity.value,
            "score": round(self.score, 1),
            "position": {"lat": self.location.latitude, "lng": self.location.longitude},
            "source_index": self.source_index,
            "band": self.band.value,
            "cluster_size": self.cluster_size,
            "description": self.description,
        }


__all__ = [
    "AreaBounds",
    "CityHealthSnapshot",
    "CommunityNeed",
    "DataQuality",
    "Directionality",
    "EnvironmentalSample",
    "IndexStatus",
    "InvalidLocation",
    "Location",
    "NeedSeverity",
    "SAMPLE_FIELDS",
    "SYNTHETIC_SOURCE",
    "StatusBand",
    "UrbanIndex",
]
