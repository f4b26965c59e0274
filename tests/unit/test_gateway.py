"""Tests for the provider fan-out and synthetic fallback."""
from __future__ import annotations

import threading
import time

import pytest

from uie_app.airquality import OpenMeteoAirQualityProvider
from uie_app.constants import SYNTHETIC_RANGES
from uie_app.earthengine import EarthEngineVegetationProvider
from uie_app.gateway import DataSourceGateway, _call_provider
from uie_app.models import SAMPLE_FIELDS, SYNTHETIC_SOURCE, DataQuality, Location
from uie_app.providers import DataProvider, ProviderUnavailable
from uie_app.synthetic import synthetic_value


class StaticProvider(DataProvider):
    def __init__(self, name, values, timeout=1.0):
        super().__init__(timeout)
        self.name = name
        self.values = values
        self.calls = 0

    def fetch(self, location):
        self.calls += 1
        return dict(self.values)


class FailingProvider(DataProvider):
    def __init__(self, name="broken", failures=None, values=None):
        super().__init__(1.0)
        self.name = name
        self.failures = failures
        self.values = values or {}
        self.calls = 0

    def fetch(self, location):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            raise ProviderUnavailable(f"{self.name} is down")
        return dict(self.values)


class HangingProvider(DataProvider):
    name = "hanging"

    def __init__(self, release):
        super().__init__(0.05)
        self.release = release

    def fetch(self, location):
        self.release.wait(5)
        return {"temperature": 99.0}


class ExplodingProvider(DataProvider):
    name = "exploding"

    def fetch(self, location):
        raise KeyError("unexpected payload")


FULL = {
    "temperature": 28.0,
    "precipitation": 3.0,
    "humidity": 70.0,
    "wind_speed": 3.5,
    "air_quality_score": 65.0,
    "vegetation_fraction": 0.3,
    "surface_temperature": 33.0,
    "cloud_cover": 50.0,
}


def test_all_fields_measured(dhaka, fixed_clock):
    gateway = DataSourceGateway([StaticProvider("full", FULL)], clock=fixed_clock)

    sample = gateway.fetch_environmental_sample(dhaka)

    assert sample.quality is DataQuality.MEASURED
    assert sample.values() == FULL
    assert sample.synthetic_fields == ()
    assert sample.timestamp == fixed_clock()
    assert set(sample.sources.values()) == {"full"}


def test_partial_failure_fills_missing_fields(dhaka):
    weather = StaticProvider("weather", {"temperature": 30.0, "humidity": 75.0})
    gateway = DataSourceGateway([weather, FailingProvider("air")])

    sample = gateway.fetch_environmental_sample(dhaka)

    assert sample.quality is DataQuality.ESTIMATED
    assert sample.temperature == 30.0
    assert sample.sources["temperature"] == "weather"
    assert sample.sources["air_quality_score"] == SYNTHETIC_SOURCE
    assert sample.air_quality_score == synthetic_value(dhaka, "air_quality_score")
    assert "temperature" not in sample.synthetic_fields
    assert sample.is_degraded


def test_all_providers_failing_gives_synthetic_sample(dhaka):
    gateway = DataSourceGateway([FailingProvider("a"), FailingProvider("b"), ExplodingProvider()])

    sample = gateway.fetch_environmental_sample(dhaka)

    assert sample.quality is DataQuality.SYNTHETIC
    assert sample.synthetic_fields == SAMPLE_FIELDS


def test_synthetic_sample_is_repeatable(dhaka):
    gateway = DataSourceGateway([FailingProvider()])

    assert gateway.fetch_environmental_sample(dhaka).values() == gateway.fetch_environmental_sample(dhaka).values()


def test_first_provider_wins_per_field(dhaka):
    first = StaticProvider("first", {"temperature": 20.0})
    second = StaticProvider("second", {"temperature": 35.0, "humidity": 40.0})

    sample = DataSourceGateway([first, second]).fetch_environmental_sample(dhaka)

    assert sample.temperature == 20.0
    assert sample.humidity == 40.0
    assert sample.sources["humidity"] == "second"


def test_out_of_range_and_missing_values(dhaka):
    provider = StaticProvider(
        "odd",
        {"humidity": 130.0, "vegetation_fraction": -0.2, "temperature": None, "cloud_cover": float("nan"), "bogus": 1.0},
    )

    sample = DataSourceGateway([provider]).fetch_environmental_sample(dhaka)

    assert sample.humidity == 100.0
    assert sample.vegetation_fraction == 0.0
    assert sample.sources["temperature"] == SYNTHETIC_SOURCE
    assert sample.sources["cloud_cover"] == SYNTHETIC_SOURCE


def test_one_immediate_retry(dhaka):
    flaky = FailingProvider("flaky", failures=1, values={"temperature": 25.0})

    outcome = _call_provider(flaky, dhaka)

    assert outcome.ok
    assert outcome.attempts == 2
    assert flaky.calls == 2


def test_no_more_than_one_retry(dhaka):
    down = FailingProvider("down")

    outcome = _call_provider(down, dhaka)

    assert not outcome.ok
    assert down.calls == 2


def test_hung_provider_is_abandoned(dhaka):
    release = threading.Event()
    fast = StaticProvider("fast", {"temperature": 22.0})
    gateway = DataSourceGateway([HangingProvider(release), fast], timeout=0.2)
    try:
        started = time.monotonic()
        sample = gateway.fetch_environmental_sample(dhaka)
        elapsed = time.monotonic() - started
    finally:
        release.set()

    assert elapsed < 2
    assert sample.temperature == 22.0
    assert sample.quality is DataQuality.ESTIMATED


def test_default_timeout_is_twice_the_slowest_provider():
    gateway = DataSourceGateway([StaticProvider("a", {}, timeout=3), StaticProvider("b", {}, timeout=5)])

    assert gateway.timeout == 10


def test_synthetic_only_skips_providers(dhaka):
    provider = StaticProvider("full", FULL)
    gateway = DataSourceGateway([provider], synthetic_only=True)

    sample = gateway.fetch_environmental_sample(dhaka)

    assert provider.calls == 0
    assert sample.quality is DataQuality.SYNTHETIC


def test_no_providers_configured(dhaka):
    sample = DataSourceGateway([]).fetch_environmental_sample(dhaka)

    assert sample.quality is DataQuality.SYNTHETIC


def test_gather_reports_outcomes(dhaka):
    gateway = DataSourceGateway([StaticProvider("ok", {"temperature": 20.0}), FailingProvider("bad")])

    outcomes = {outcome.name: outcome for outcome in gateway.gather(dhaka)}

    assert outcomes["ok"].ok
    assert outcomes["bad"].error == "bad is down"


@pytest.mark.parametrize("lat, lon", [(0.0, 0.0), (-45.5, 170.2), (89.9, -179.9)])
def test_synthetic_values_stay_in_range(lat, lon):
    location = Location(lat, lon)
    for field in SAMPLE_FIELDS:
        low, high = SYNTHETIC_RANGES[field]
        assert low <= synthetic_value(location, field) <= high


class BuggyProvider(DataProvider):
    name = "buggy"

    def __init__(self, failures=None):
        super().__init__(1.0)
        self.failures = failures
        self.calls = 0

    def fetch(self, location):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            raise AttributeError("'NoneType' object has no attribute 'get'")
        return {"humidity": 55.0}


def test_unexpected_errors_are_retried_once(dhaka):
    buggy = BuggyProvider()

    outcome = _call_provider(buggy, dhaka)

    assert not outcome.ok
    assert outcome.error.startswith("AttributeError")
    assert buggy.calls == 2


def test_unexpected_error_then_success(dhaka):
    buggy = BuggyProvider(failures=1)

    sample = DataSourceGateway([buggy]).fetch_environmental_sample(dhaka)

    assert buggy.calls == 2
    assert sample.sources["humidity"] == "buggy"


def test_null_air_quality_payload_is_a_provider_failure(dhaka, monkeypatch):
    monkeypatch.setattr("uie_app.airquality.get_json", lambda *args, **kwargs: {"hourly": None})

    outcome = _call_provider(OpenMeteoAirQualityProvider(timeout=1), dhaka)

    assert not outcome.ok
    assert outcome.attempts == 2
    assert "no European AQI" in outcome.error


def test_earth_engine_cut_off_at_provider_timeout(dhaka, monkeypatch):
    release = threading.Event()

    def hanging_ndvi(lat, lon):
        release.wait(5)
        return 0.6

    monkeypatch.setattr("uie_app.earthengine.initialise", lambda path: (True, None))
    monkeypatch.setattr("uie_app.earthengine.ee.data.setDeadline", lambda ms: None, raising=False)
    monkeypatch.setattr("uie_app.earthengine.mean_ndvi", hanging_ndvi)
    gateway = DataSourceGateway([EarthEngineVegetationProvider(timeout=0.1)], timeout=5)
    try:
        started = time.monotonic()
        sample = gateway.fetch_environmental_sample(dhaka)
        elapsed = time.monotonic() - started
    finally:
        release.set()

    # Two attempts at 0.1s each, well inside the 5s gateway deadline.
    assert elapsed < 1
    assert sample.sources["vegetation_fraction"] == SYNTHETIC_SOURCE
