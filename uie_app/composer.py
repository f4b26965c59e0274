"""Turn an environmental sample into the ten urban health indices."""

from __future__ import annotations

import random
from statistics import mean
from typing import Callable, Dict, Mapping, Optional

from loguru import logger

from .classifier import classify_index
from .constants import HEALTH_STATUS_FLOOR, HEALTH_STATUS_THRESHOLDS
from .indices import (
    DEFAULT_HWI_WEIGHTS,
    INDEX_DEFINITIONS,
    INDEX_IDS,
    IndexDefinition,
    health_score,
    hwi_components,
    normalise_weights,
)
from .models import CityHealthSnapshot, EnvironmentalSample, Location, UrbanIndex
from .scoring import apportion, comfort, fraction, points


def _uhvi(s: EnvironmentalSample) -> Dict[str, int]:
    return {
        "Land Surface Temperature": points(s.surface_temperature, 25, 45, 30),
        "Air Temperature": points(s.temperature, 20, 40, 20),
        "Heat Island Intensity": points(s.surface_temperature - s.temperature, 0, 5, 25),
        "Cooling Infrastructure": points(s.vegetation_fraction, 0.1, 0.6, 15, invert=True),
        "Population Vulnerability": points(s.humidity, 30, 90, 10),
    }


def _cri(s: EnvironmentalSample) -> Dict[str, int]:
    return {
        "Temperature Adaptation Capacity": int(round(25 * comfort(s.temperature))),
        "Heat Wave Preparedness": points(s.surface_temperature, 25, 45, 20, invert=True),
        "Flood Risk Management": points(s.precipitation, 0, 50, 20, invert=True),
        "Air Quality Resilience": points(s.air_quality_score, 0, 100, 20),
        "Green Infrastructure Coverage": points(s.vegetation_fraction, 0, 0.6, 15),
    }


def _wsi(s: EnvironmentalSample) -> Dict[str, int]:
    return {
        "Surface Water Availability": points(s.precipitation, 0, 10, 25),
        "Groundwater Sustainability": points(s.vegetation_fraction, 0, 0.6, 20),
        "Water Quality Index": points(s.air_quality_score, 0, 100, 25),
        "Access Equity Score": points(s.humidity, 20, 80, 15),
        "Climate Resilience": points(s.temperature, 15, 40, 15, invert=True),
    }


def _aqhi_total(s: EnvironmentalSample) -> int:
    pollution = fraction(s.air_quality_score, 0, 100, invert=True)
    return 1 + int(round(9 * pollution))


def _gea_total(s: EnvironmentalSample) -> int:
    return int(round(100 * fraction(s.vegetation_fraction, 0, 0.6)))


def _scm_total(s: EnvironmentalSample) -> int:
    value = (
        0.5 * comfort(s.temperature)
        + 0.3 * fraction(s.air_quality_score, 0, 100)
        + 0.2 * fraction(s.vegetation_fraction, 0, 0.6)
    )
    return int(round(100 * value))


def _ejt_total(s: EnvironmentalSample) -> int:
    value = (
        0.4 * fraction(s.air_quality_score, 0, 100)
        + 0.3 * fraction(s.vegetation_fraction, 0, 0.6)
        + 0.3 * fraction(s.surface_temperature, 25, 45, invert=True)
    )
    return int(round(100 * value))


def _tas_total(s: EnvironmentalSample) -> int:
    value = (
        0.4 * fraction(s.precipitation, 0, 30, invert=True)
        + 0.3 * fraction(s.wind_speed, 0, 15, invert=True)
        + 0.3 * comfort(s.temperature)
    )
    return int(round(100 * value))


def _dpi_total(s: EnvironmentalSample) -> int:
    value = (
        0.35 * fraction(s.precipitation, 0, 50, invert=True)
        + 0.35 * fraction(s.wind_speed, 0, 20, invert=True)
        + 0.30 * fraction(s.surface_temperature, 25, 45, invert=True)
    )
    return int(round(100 * value))


# Indices whose components are each computed from the sample.
COMPONENT_FORMULAS: Mapping[str, Callable[[EnvironmentalSample], Dict[str, int]]] = {
    "cri": _cri,
    "uhvi": _uhvi,
    "wsi": _wsi,
}

# Indices scored as a whole and then split across their components.
TOTAL_FORMULAS: Mapping[str, Callable[[EnvironmentalSample], int]] = {
    "aqhi": _aqhi_total,
    "gea": _gea_total,
    "scm": _scm_total,
    "ejt": _ejt_total,
    "tas": _tas_total,
    "dpi": _dpi_total,
}


def _seed(location: Location) -> int:
    return int(round(location.latitude * 10_000)) * 1_000_003 + int(round(location.longitude * 10_000))


def _build(definition: IndexDefinition, components: Dict[str, int], ranges=None) -> UrbanIndex:
    return UrbanIndex(
        key=definition.key,
        name=definition.name,
        category=definition.category,
        components=components,
        total_score=sum(components.values()),
        target=definition.target,
        directionality=definition.directionality,
        component_ranges=ranges if ranges is not None else definition.component_ranges,
    )


class IndexComposer:
    """Compose the fixed set of urban indices from one environmental sample.

    ``jitter`` spreads apportioned components by up to ±jitter of their base
    share using a generator seeded from the location, so output is repeatable.
    ``hwi_weights`` selects which indices feed the Human Well-being Index and
    how much each one counts.
    """

    def __init__(
        self,
        hwi_weights: Optional[Mapping[str, float]] = None,
        jitter: float = 0.0,
    ) -> None:
        if not 0.0 <= jitter < 1.0:
            raise ValueError(f"jitter must be within [0, 1), got {jitter}")
        self.hwi_weights = dict(normalise_weights(hwi_weights or DEFAULT_HWI_WEIGHTS))
        self.jitter = jitter

    def compose(self, sample: EnvironmentalSample, location: Location) -> Dict[str, UrbanIndex]:
        rng = random.Random(_seed(location)) if self.jitter else None
        indices: Dict[str, UrbanIndex] = {}

        for key, formula in COMPONENT_FORMULAS.items():
            indices[key] = _build(INDEX_DEFINITIONS[key], formula(sample))

        for key, formula in TOTAL_FORMULAS.items():
            definition = INDEX_DEFINITIONS[key]
            total = formula(sample)
            parts = apportion(total, definition.components, rng=rng, jitter=self.jitter)
            indices[key] = _build(definition, parts)

        indices["hwi"] = self._human_wellbeing(indices)
        logger.debug(
            "Composed indices for {:.4f},{:.4f}: {}",
            location.latitude,
            location.longitude,
            {key: index.total_score for key, index in indices.items()},
        )
        return {key: indices[key] for key in INDEX_IDS}

    def _human_wellbeing(self, indices: Mapping[str, UrbanIndex]) -> UrbanIndex:
        specs = hwi_components(self.hwi_weights)
        contributions = [
            weight * health_score(key, indices[key].total_score)
            for key, weight in self.hwi_weights.items()
        ]
        total = int(round(sum(contributions)))
        weights = contributions if sum(contributions) > 0 else None
        parts = apportion(total, specs, weights=weights)
        ranges = {spec.name: (spec.min_points, spec.max_points) for spec in specs}
        return _build(INDEX_DEFINITIONS["hwi"], parts, ranges=ranges)

    def snapshot(self, sample: EnvironmentalSample, place_name: Optional[str] = None) -> CityHealthSnapshot:
        """Compose, classify and summarise one sample into a city health snapshot."""

        location = sample.location
        indices = self.compose(sample, location)
        statuses = {key: classify_index(index) for key, index in indices.items()}
        overall = overall_score(indices)
        return CityHealthSnapshot(
            location=location,
            timestamp=sample.timestamp,
            indices=indices,
            statuses=statuses,
            overall_score=overall,
            health_status=health_status(overall),
            data_quality=sample.quality,
            sample=sample,
            place_name=place_name,
        )


def overall_score(indices: Mapping[str, UrbanIndex]) -> float:
    """Mean of the indices' health-normalised scores, 0-100."""

    return round(mean(health_score(key, index.total_score) for key, index in indices.items()), 1)


def health_status(score: float) -> str:
    for minimum, label in HEALTH_STATUS_THRESHOLDS:
        if score >= minimum:
            return label
    return HEALTH_STATUS_FLOOR


__all__ = [
    "COMPONENT_FORMULAS",
    "IndexComposer",
    "TOTAL_FORMULAS",
    "health_status",
    "overall_score",
]
