"""Tests for the scoring primitives and component apportioning."""
from __future__ import annotations

import random

import pytest

from uie_app.indices import ComponentSpec, INDEX_DEFINITIONS
from uie_app.scoring import apportion, comfort, fraction, points

SPECS = (
    ComponentSpec("a", 0, 25),
    ComponentSpec("b", 0, 25),
    ComponentSpec("c", 0, 20),
    ComponentSpec("d", 0, 15),
    ComponentSpec("e", 0, 15),
)


def test_points_scale_and_clamp():
    assert points(35, 25, 45, 30) == 15
    assert points(10, 25, 45, 30) == 0
    assert points(99, 25, 45, 30) == 30
    assert points(25, 25, 45, 20, invert=True) == 20


def test_fraction_handles_degenerate_range():
    assert fraction(5, 5, 5) == 0


def test_comfort_peaks_at_21_degrees():
    assert comfort(21) == 1
    assert comfort(31) == pytest.approx(0.5)
    assert comfort(-40) == 0


@pytest.mark.parametrize("total", [0, 1, 37, 63, 99, 100])
def test_apportion_sums_exactly(total):
    parts = apportion(total, SPECS)

    assert sum(parts.values()) == total
    for spec in SPECS:
        assert spec.min_points <= parts[spec.name] <= spec.max_points


def test_apportion_is_proportional_without_jitter():
    assert apportion(100, SPECS) == {"a": 25, "b": 25, "c": 20, "d": 15, "e": 15}
    # Flooring leaves 2 points; they go to the component with the most headroom.
    assert apportion(50, SPECS) == {"a": 14, "b": 12, "c": 10, "d": 7, "e": 7}


def test_apportion_respects_minimums():
    specs = INDEX_DEFINITIONS["aqhi"].components

    parts = apportion(1, specs)

    assert parts["PM2.5 Concentration"] == 1
    assert sum(parts.values()) == 1


@pytest.mark.parametrize("seed", range(20))
def test_apportion_with_seeded_jitter(seed):
    first = apportion(71, SPECS, rng=random.Random(seed), jitter=0.15)
    second = apportion(71, SPECS, rng=random.Random(seed), jitter=0.15)

    assert first == second
    assert sum(first.values()) == 71
    for spec in SPECS:
        assert spec.min_points <= first[spec.name] <= spec.max_points


def test_apportion_rejects_unreachable_total():
    with pytest.raises(ValueError):
        apportion(101, SPECS)
    with pytest.raises(ValueError):
        apportion(0, INDEX_DEFINITIONS["aqhi"].components)


def test_apportion_custom_weights():
    parts = apportion(10, SPECS, weights=[1, 0, 0, 0, 0])

    assert parts["a"] == 10
    assert sum(parts.values()) == 10
