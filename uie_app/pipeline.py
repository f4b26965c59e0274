"""Entry points used by the presentation layer: one location, or a whole map area."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from loguru import logger

from .classifier import classify
from .composer import IndexComposer
from .config import Settings
from .constants import DEFAULT_USER_AGENT
from .gateway import DataSourceGateway, default_providers
from .geocoding import reverse
from .log import configure_logging
from .models import AreaBounds, CityHealthSnapshot, CommunityNeed, Location
from .needs import NeedsSummary, aggregate, area_km2, cluster, sampling_points, summarize


@dataclass(frozen=True)
class AreaAnalysis:
    bounds: AreaBounds
    snapshots: Sequence[CityHealthSnapshot]
    needs: Sequence[CommunityNeed]
    clusters: Sequence[CommunityNeed]
    summary: NeedsSummary
    area_km2: float

    @property
    def need_density(self) -> float:
        """Needs per square kilometre."""

        return self.summary.total / self.area_km2 if self.area_km2 > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "bounds": {
                "north": self.bounds.north,
                "south": self.bounds.south,
                "east": self.bounds.east,
                "west": self.bounds.west,
            },
            "needs": [need.to_dict() for need in self.needs],
            "clusters": [need.to_dict() for need in self.clusters],
            "summary": {
                "counts": dict(self.summary.counts),
                "mean_score": self.summary.mean_score,
                "total": self.summary.total,
                "area_km2": round(self.area_km2, 2),
                "need_density": round(self.need_density, 4),
            },
        }


class UrbanIndexPipeline:
    """Location in, classified :class:`CityHealthSnapshot` out.

    Each run only reads its own location and returns new values, so runs for
    different locations can execute in parallel.
    """

    def __init__(
        self,
        gateway: Optional[DataSourceGateway] = None,
        composer: Optional[IndexComposer] = None,
        resolve_place: bool = False,
        geocode_timeout: float = 10,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.gateway = gateway or DataSourceGateway()
        self.composer = composer or IndexComposer()
        self.resolve_place = resolve_place
        self.geocode_timeout = geocode_timeout
        self.user_agent = user_agent

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, resolve_place: bool = False) -> "UrbanIndexPipeline":
        settings = settings or Settings.from_env()
        configure_logging(settings.log_level)
        gateway = DataSourceGateway(
            providers=default_providers(settings.provider_timeout, settings.earthengine_credentials),
            timeout=settings.gateway_timeout,
            synthetic_only=settings.offline,
        )
        return cls(
            gateway=gateway,
            resolve_place=resolve_place,
            geocode_timeout=settings.provider_timeout,
            user_agent=settings.nominatim_user_agent,
        )

    def compose_indices(
        self,
        latitude: Union[float, Location],
        longitude: Optional[float] = None,
    ) -> CityHealthSnapshot:
        """Run the full pipeline for one point.

        Raises :class:`InvalidLocation` for out-of-range coordinates; every
        provider problem degrades to synthetic data instead.
        """

        if isinstance(latitude, Location):
            location = latitude
        else:
            location = Location(latitude, longitude)

        sample = self.gateway.fetch_environmental_sample(location)
        place = None
        if self.resolve_place:
            place = reverse(location, timeout=self.geocode_timeout, user_agent=self.user_agent)
        snapshot = self.composer.snapshot(sample, place_name=place)
        logger.info(
            "Snapshot for {:.4f},{:.4f}: overall {} ({}), data quality {}",
            location.latitude,
            location.longitude,
            snapshot.overall_score,
            snapshot.health_status,
            snapshot.data_quality.value,
        )
        return snapshot

    def analyze_area(
        self,
        bounds: AreaBounds,
        points: int = 6,
        max_workers: int = 4,
        include_low: bool = False,
    ) -> AreaAnalysis:
        """Sample ``points`` locations inside ``bounds`` and rank their community needs."""

        locations = sampling_points(bounds, points)
        if locations:
            with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(locations)))) as executor:
                snapshots: List[CityHealthSnapshot] = list(executor.map(self.compose_indices, locations))
        else:
            snapshots = []

        needs = aggregate(snapshots, include_low=include_low)
        analysis = AreaAnalysis(
            bounds=bounds,
            snapshots=tuple(snapshots),
            needs=tuple(needs),
            clusters=tuple(cluster(needs)),
            summary=summarize(needs),
            area_km2=area_km2(bounds),
        )
        logger.info(
            "Area analysis over {} points: {} needs ({} critical)",
            len(snapshots),
            analysis.summary.total,
            analysis.summary.counts["critical"],
        )
        return analysis


def compose_indices(
    latitude: Union[float, Location],
    longitude: Optional[float] = None,
    pipeline: Optional[UrbanIndexPipeline] = None,
) -> CityHealthSnapshot:
    """Convenience wrapper around :meth:`UrbanIndexPipeline.compose_indices`."""

    return (pipeline or UrbanIndexPipeline()).compose_indices(latitude, longitude)


__all__ = [
    "AreaAnalysis",
    "UrbanIndexPipeline",
    "aggregate",
    "classify",
    "compose_indices",
]
