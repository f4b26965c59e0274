"""End-to-end pipeline runs with every provider forced offline."""
from __future__ import annotations

import pytest

from uie_app.config import Settings
from uie_app.gateway import DataSourceGateway
from uie_app.indices import INDEX_IDS
from uie_app.models import AreaBounds, DataQuality, InvalidLocation, Location, NeedSeverity
from uie_app.pipeline import UrbanIndexPipeline, classify, compose_indices
from uie_app.providers import DataProvider, ProviderUnavailable


class OfflineProvider(DataProvider):
    name = "offline"

    def fetch(self, location):
        raise ProviderUnavailable("network disabled for tests")


@pytest.fixture
def pipeline():
    gateway = DataSourceGateway([OfflineProvider(0.1), OfflineProvider(0.1)], timeout=2)
    return UrbanIndexPipeline(gateway=gateway)


def test_dhaka_with_all_providers_down(pipeline):
    snapshot = pipeline.compose_indices(23.8103, 90.4125)

    assert snapshot.data_quality is DataQuality.SYNTHETIC
    assert tuple(snapshot.indices) == INDEX_IDS
    assert all(index.total_score is not None for index in snapshot.indices.values())
    assert 0 <= snapshot.overall_score <= 100
    assert snapshot.to_dict()["data_quality"] == "synthetic"


def test_compose_accepts_location_objects(pipeline):
    location = Location(23.8103, 90.4125)

    by_object = pipeline.compose_indices(location)
    by_floats = compose_indices(23.8103, 90.4125, pipeline=pipeline)

    assert by_object.indices == by_floats.indices
    assert by_object.overall_score == by_floats.overall_score


def test_invalid_location_raises(pipeline):
    with pytest.raises(InvalidLocation):
        pipeline.compose_indices(123.0, 90.0)


def test_classify_is_reexported():
    assert classify("aqhi", 7, 4).band.value == "critical"


def test_area_analysis(pipeline):
    bounds = AreaBounds(north=23.90, south=23.70, east=90.50, west=90.30)

    analysis = pipeline.analyze_area(bounds, points=4, max_workers=2)

    assert len(analysis.snapshots) == 4
    assert len({snapshot.location for snapshot in analysis.snapshots}) == 4
    assert analysis.summary.total == len(analysis.needs)
    assert all(need.severity is not NeedSeverity.LOW for need in analysis.needs)
    assert len({need.category for need in analysis.clusters}) == len(analysis.clusters)
    assert sum(need.cluster_size for need in analysis.clusters) == len(analysis.needs)
    assert analysis.area_km2 > 0
    assert analysis.need_density == pytest.approx(analysis.summary.total / analysis.area_km2)

    payload = analysis.to_dict()
    assert payload["summary"]["total"] == analysis.summary.total


def test_from_settings_in_offline_mode():
    settings = Settings(offline=True, log_level="ERROR")

    pipeline = UrbanIndexPipeline.from_settings(settings)
    snapshot = pipeline.compose_indices(Location(51.5074, -0.1278))

    assert pipeline.gateway.synthetic_only
    assert snapshot.data_quality is DataQuality.SYNTHETIC
    assert snapshot.place_name is None
