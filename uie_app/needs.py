"""Community needs derived from classified index results."""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from statistics import mean
from typing import Dict, Iterable, List, Sequence

from .indices import health_score
from .models import (
    AreaBounds,
    CityHealthSnapshot,
    CommunityNeed,
    Location,
    NeedSeverity,
    StatusBand,
)


@dataclass(frozen=True)
class NeedCategory:
    key: str
    label: str
    index_key: str
    description: str


NEED_CATEGORIES = (
    NeedCategory("food-access", "Food Access", "ejt", "Access to healthy, affordable food"),
    NeedCategory("housing", "Housing", "scm", "Availability and affordability of adequate housing"),
    NeedCategory("transportation", "Transportation", "tas", "Access to reliable and affordable transportation"),
    NeedCategory("pollution", "Environmental Quality", "aqhi", "Air quality issues affecting community health"),
    NeedCategory("healthcare", "Healthcare Access", "hwi", "Access to healthcare facilities and services"),
    NeedCategory("parks", "Green Spaces", "gea", "Access to parks and recreational green spaces"),
    NeedCategory("growth", "Development Pressure", "dpi", "Areas needing infrastructure ahead of growth"),
    NeedCategory("energy", "Energy Access", "cri", "Access to reliable and climate-ready energy"),
    NeedCategory("heat", "Heat Exposure", "uhvi", "Residents exposed to dangerous urban heat"),
    NeedCategory("water", "Water Security", "wsi", "Reliable access to safe water"),
)

SEVERITY_BY_BAND = {
    StatusBand.CRITICAL: NeedSeverity.CRITICAL,
    StatusBand.MODERATE: NeedSeverity.MODERATE,
    StatusBand.GOOD: NeedSeverity.MODERATE,
    StatusBand.EXCELLENT: NeedSeverity.LOW,
}

SEVERITY_RANK = {NeedSeverity.CRITICAL: 0, NeedSeverity.MODERATE: 1, NeedSeverity.LOW: 2}


@dataclass(frozen=True)
class NeedsSummary:
    counts: Dict[str, int]
    mean_score: float
    total: int


def rank(needs: Iterable[CommunityNeed]) -> List[CommunityNeed]:
    """Critical first, then moderate, then low; worse scores first within a level."""

    return sorted(needs, key=lambda need: (SEVERITY_RANK[need.severity], need.score))


def aggregate(snapshots: Iterable[CityHealthSnapshot], include_low: bool = False) -> List[CommunityNeed]:
    """One need per (category, location) from each snapshot's classified indices.

    Needs whose source index is ``excellent`` carry ``low`` severity and are only
    returned when ``include_low`` is set.
    """

    needs = []
    for snapshot in snapshots:
        for category in NEED_CATEGORIES:
            index = snapshot.indices[category.index_key]
            band = snapshot.statuses[category.index_key].band
            severity = SEVERITY_BY_BAND[band]
            if severity is NeedSeverity.LOW and not include_low:
                continue
            needs.append(
                CommunityNeed(
                    category=category.key,
                    label=category.label,
                    severity=severity,
                    score=health_score(category.index_key, index.total_score),
                    location=snapshot.location,
                    source_index=category.index_key,
                    band=band,
                    description=category.description,
                )
            )
    return rank(needs)


def cluster(needs: Iterable[CommunityNeed]) -> List[CommunityNeed]:
    """Collapse needs of the same category into one representative need.

    The representative sits at the centroid of its members, carries their mean
    score and the most severe level and band among them.
    """

    groups: Dict[str, List[CommunityNeed]] = OrderedDict()
    for need in needs:
        groups.setdefault(need.category, []).append(need)

    clustered = []
    for members in groups.values():
        worst = min(members, key=lambda need: (SEVERITY_RANK[need.severity], need.score))
        clustered.append(
            CommunityNeed(
                category=worst.category,
                label=worst.label,
                severity=worst.severity,
                score=round(mean(need.score for need in members), 2),
                location=Location(
                    mean(need.location.latitude for need in members),
                    mean(need.location.longitude for need in members),
                ),
                source_index=worst.source_index,
                band=worst.band,
                cluster_size=sum(need.cluster_size for need in members),
                description=worst.description,
            )
        )
    return rank(clustered)


def summarize(needs: Sequence[CommunityNeed]) -> NeedsSummary:
    counts = {severity.value: 0 for severity in NeedSeverity}
    for need in needs:
        counts[need.severity.value] += 1
    average = round(mean(need.score for need in needs), 2) if needs else 0.0
    return NeedsSummary(counts=counts, mean_score=average, total=len(needs))


def sampling_points(bounds: AreaBounds, count: int = 6) -> List[Location]:
    """Evenly spread ``count`` points over a grid inside ``bounds``."""

    if count <= 0:
        return []
    grid = math.ceil(math.sqrt(count))
    lat_span = bounds.north - bounds.south
    lon_span = bounds.east - bounds.west
    points = []
    for row in range(grid):
        for col in range(grid):
            if len(points) == count:
                return points
            points.append(
                Location(
                    bounds.south + lat_span * (row + 0.5) / grid,
                    bounds.west + lon_span * (col + 0.5) / grid,
                )
            )
    return points


def area_km2(bounds: AreaBounds) -> float:
    """Approximate area of a lat/lon rectangle."""

    mid_lat = math.radians((bounds.north + bounds.south) / 2)
    return abs((bounds.north - bounds.south) * (bounds.east - bounds.west) * 111 * 111 * math.cos(mid_lat))


__all__ = [
    "NEED_CATEGORIES",
    "NeedCategory",
    "NeedsSummary",
    "SEVERITY_BY_BAND",
    "aggregate",
    "area_km2",
    "cluster",
    "rank",
    "sampling_points",
    "summarize",
]
