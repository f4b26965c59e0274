"""Static definitions of the ten urban health indices.

Targets, directionality, component point ranges, status thresholds and planner
wording all live here so that the composer and classifier read one table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from .models import Directionality, StatusBand

HIGHER = Directionality.HIGHER_IS_BETTER
LOWER = Directionality.LOWER_IS_BETTER


class ClassificationInputInvalid(ValueError):
    """Raised for an index id outside the fixed set or an unusable target."""


@dataclass(frozen=True)
class ComponentSpec:
    name: str
    min_points: int
    max_points: int

    @property
    def span(self) -> int:
        return self.max_points - self.min_points


@dataclass(frozen=True)
class IndexDefinition:
    key: str
    name: str
    category: str
    target: float
    target_label: str
    directionality: Directionality
    components: Tuple[ComponentSpec, ...]
    planner_name: str
    scale: Tuple[int, int] = (0, 100)
    # Lower-is-better indices only: inclusive upper limits per band, checked in order.
    band_limits: Optional[Tuple[Tuple[float, StatusBand], ...]] = None
    # Lower-is-better indices only: progress = (ceiling - score) / span.
    progress_ceiling: Optional[float] = None
    progress_span: Optional[float] = None

    @property
    def component_ranges(self) -> Mapping[str, Tuple[int, int]]:
        return {spec.name: (spec.min_points, spec.max_points) for spec in self.components}


PHYSICAL = "Physical Health & Environmental Quality Indices"
SOCIAL = "Mental Health & Social Wellbeing Indices"
JUSTICE = "Environmental Justice & Equity Indices"
MOBILITY = "Transportation & Mobility Indices"
SAFETY = "Disaster Preparedness & Safety Indices"
WELLBEING = "Comprehensive Well-being Indices"


def _components(*specs: Tuple[str, int, int]) -> Tuple[ComponentSpec, ...]:
    return tuple(ComponentSpec(name, low, high) for name, low, high in specs)


# Component names of the Human Well-being Index, keyed by the index they summarise.
HWI_COMPONENT_NAMES = MappingProxyType(
    {
        "cri": "Climate Resilience",
        "uhvi": "Urban Heat Vulnerability",
        "aqhi": "Air Quality Health",
        "wsi": "Water Security",
        "gea": "Green Equity",
        "scm": "Social Cohesion",
        "ejt": "Environmental Justice",
        "tas": "Transport Accessibility",
        "dpi": "Disaster Preparedness",
    }
)

DEFAULT_HWI_WEIGHTS = MappingProxyType(
    {
        "uhvi": 0.20,
        "aqhi": 0.20,
        "wsi": 0.15,
        "scm": 0.15,
        "tas": 0.15,
        "dpi": 0.15,
    }
)


def hwi_components(weights: Mapping[str, float]) -> Tuple[ComponentSpec, ...]:
    """Component specs for a Human Well-being Index built from ``weights``.

    Each component is worth its normalised weight times 100 points, rounded up.
    """

    normalised = normalise_weights(weights)
    specs = []
    for key, weight in normalised.items():
        ceiling = math.ceil(round(weight * 100, 6))
        specs.append(ComponentSpec(HWI_COMPONENT_NAMES[key], 0, ceiling))
    return tuple(specs)


def normalise_weights(weights: Mapping[str, float]) -> Mapping[str, float]:
    unknown = set(weights) - set(HWI_COMPONENT_NAMES)
    if unknown:
        raise ClassificationInputInvalid(
            f"HWI weights reference unknown indices: {', '.join(sorted(unknown))}"
        )
    positive = {key: float(value) for key, value in weights.items() if float(value) > 0}
    total = sum(positive.values())
    if total <= 0:
        raise ClassificationInputInvalid("HWI weights must contain at least one positive weight")
    return {key: value / total for key, value in positive.items()}


_DEFINITIONS = (
    IndexDefinition(
        key="cri",
        name="Climate Resilience Index (CRI)",
        category=PHYSICAL,
        target=75,
        target_label="Highly Resilient",
        directionality=HIGHER,
        components=_components(
            ("Temperature Adaptation Capacity", 0, 25),
            ("Heat Wave Preparedness", 0, 20),
            ("Flood Risk Management", 0, 20),
            ("Air Quality Resilience", 0, 20),
            ("Green Infrastructure Coverage", 0, 15),
        ),
        planner_name="Climate Adaptation Readiness",
    ),
    IndexDefinition(
        key="uhvi",
        name="Urban Heat Vulnerability Index (UHVI)",
        category=PHYSICAL,
        target=30,
        target_label="Low to Moderate Heat Risk",
        directionality=LOWER,
        components=_components(
            ("Land Surface Temperature", 0, 30),
            ("Air Temperature", 0, 20),
            ("Heat Island Intensity", 0, 25),
            ("Cooling Infrastructure", 0, 15),
            ("Population Vulnerability", 0, 10),
        ),
        planner_name="Heat Risk Assessment for Development",
        band_limits=(
            (15, StatusBand.EXCELLENT),
            (25, StatusBand.GOOD),
            (35, StatusBand.MODERATE),
        ),
        progress_ceiling=30,
        progress_span=30,
    ),
    IndexDefinition(
        key="aqhi",
        name="Air Quality Health Impact (AQHI)",
        category=PHYSICAL,
        target=4,
        target_label="Low to Moderate Health Risk",
        directionality=LOWER,
        components=_components(
            ("PM2.5 Concentration", 1, 3),
            ("NO2 Concentration", 0, 3),
            ("PM10 Concentration", 0, 2),
            ("O3 Concentration", 0, 1),
            ("SO2 Concentration", 0, 1),
        ),
        planner_name="Air Quality Planning Priority",
        scale=(1, 10),
        band_limits=(
            (2, StatusBand.EXCELLENT),
            (3, StatusBand.GOOD),
            (6, StatusBand.MODERATE),
        ),
        progress_ceiling=4,
        progress_span=3,
    ),
    IndexDefinition(
        key="wsi",
        name="Water Security Indicator (WSI)",
        category=PHYSICAL,
        target=70,
        target_label="Water Secure",
        directionality=HIGHER,
        components=_components(
            ("Surface Water Availability", 0, 25),
            ("Groundwater Sustainability", 0, 20),
            ("Water Quality Index", 0, 25),
            ("Access Equity Score", 0, 15),
            ("Climate Resilience", 0, 15),
        ),
        planner_name="Water Infrastructure Capacity",
    ),
    IndexDefinition(
        key="gea",
        name="Green Equity Assessment (GEA)",
        category=SOCIAL,
        target=75,
        target_label="High Equity in Green Access",
        directionality=HIGHER,
        components=_components(
            ("Green Space Distribution", 0, 25),
            ("Park Accessibility", 0, 25),
            ("Quality of Green Infrastructure", 0, 20),
            ("Community Usage Patterns", 0, 15),
            ("Maintenance and Safety", 0, 15),
        ),
        planner_name="Green Space Equity Index",
    ),
    IndexDefinition(
        key="scm",
        name="Social Cohesion Metrics (SCM)",
        category=SOCIAL,
        target=70,
        target_label="Strong Community Cohesion",
        directionality=HIGHER,
        components=_components(
            ("Community Facility Access", 0, 25),
            ("Public Space Connectivity", 0, 20),
            ("Economic Integration", 0, 20),
            ("Cultural Diversity Support", 0, 20),
            ("Safety and Security", 0, 15),
        ),
        planner_name="Community Connectivity Assessment",
    ),
    IndexDefinition(
        key="ejt",
        name="Environmental Justice Tracker (EJT)",
        category=JUSTICE,
        target=80,
        target_label="High Environmental Justice",
        directionality=HIGHER,
        components=_components(
            ("Pollution Burden Equity", 0, 25),
            ("Green Infrastructure Access", 0, 20),
            ("Climate Risk Distribution", 0, 20),
            ("Health Outcome Equity", 0, 20),
            ("Community Voice and Participation", 0, 15),
        ),
        planner_name="Equity Impact Assessment",
    ),
    IndexDefinition(
        key="tas",
        name="Transportation Accessibility Score (TAS)",
        category=MOBILITY,
        target=75,
        target_label="Excellent Transportation Access",
        directionality=HIGHER,
        components=_components(
            ("Public Transit Coverage", 0, 25),
            ("Active Transportation Infrastructure", 0, 25),
            ("Multi-Modal Connectivity", 0, 20),
            ("Affordability and Equity", 0, 15),
            ("Environmental Performance", 0, 15),
        ),
        planner_name="Transit Development Priority",
    ),
    IndexDefinition(
        key="dpi",
        name="Disaster Preparedness Index (DPI)",
        category=SAFETY,
        target=70,
        target_label="Well-Prepared for Disasters",
        directionality=HIGHER,
        components=_components(
            ("Natural Hazard Exposure", 0, 20),
            ("Infrastructure Resilience", 0, 25),
            ("Emergency Response Capacity", 0, 20),
            ("Community Preparedness", 0, 20),
            ("Recovery Resources", 0, 15),
        ),
        planner_name="Emergency Preparedness Assessment",
    ),
    IndexDefinition(
        key="hwi",
        name="Human Well-being Index (HWI)",
        category=WELLBEING,
        target=80,
        target_label="Excellent Human Well-being",
        directionality=HIGHER,
        components=hwi_components(DEFAULT_HWI_WEIGHTS),
        planner_name="Human Well-being Index (HWI)",
    ),
)

INDEX_DEFINITIONS: Mapping[str, IndexDefinition] = MappingProxyType(
    {definition.key: definition for definition in _DEFINITIONS}
)
INDEX_IDS: Tuple[str, ...] = tuple(INDEX_DEFINITIONS)

# Most urgent planning areas first; anything not listed sorts last.
PLANNING_PRIORITY_ORDER: Tuple[str, ...] = (
    "aqhi",
    "ejt",
    "tas",
    "gea",
    "scm",
    "wsi",
    "dpi",
    "cri",
    "uhvi",
)


def get_definition(index_id: str) -> IndexDefinition:
    key = str(index_id).strip().lower()
    try:
        return INDEX_DEFINITIONS[key]
    except KeyError:
        raise ClassificationInputInvalid(
            f"Unknown index id {index_id!r}; expected one of {', '.join(INDEX_IDS)}"
        ) from None


def health_score(index_id: str, score: float) -> float:
    """Map a raw index score onto 0-100 where higher is always healthier."""

    definition = get_definition(index_id)
    low, high = definition.scale
    fraction = (float(score) - low) / (high - low)
    fraction = max(0.0, min(1.0, fraction))
    if definition.directionality is LOWER:
        fraction = 1 - fraction
    return round(fraction * 100, 2)


def planner_name(index_id: str) -> str:
    return get_definition(index_id).planner_name


def order_by_planning_priority(index_ids: Iterable[str]) -> List[str]:
    def rank(key: str) -> int:
        try:
            return PLANNING_PRIORITY_ORDER.index(key)
        except ValueError:
            return len(PLANNING_PRIORITY_ORDER)

    return sorted(index_ids, key=rank)


__all__ = [
    "ClassificationInputInvalid",
    "ComponentSpec",
    "DEFAULT_HWI_WEIGHTS",
    "HWI_COMPONENT_NAMES",
    "INDEX_DEFINITIONS",
    "INDEX_IDS",
    "IndexDefinition",
    "PLANNING_PRIORITY_ORDER",
    "get_definition",
    "health_score",
    "hwi_components",
    "normalise_weights",
    "order_by_planning_priority",
    "planner_name",
]
