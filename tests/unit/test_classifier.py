"""Tests for status classification and readiness labels."""
from __future__ import annotations

import math

import pytest

from uie_app.classifier import action_status, classify
from uie_app.indices import INDEX_DEFINITIONS, ClassificationInputInvalid
from uie_app.models import Directionality, StatusBand

HIGHER_IDS = [key for key, d in INDEX_DEFINITIONS.items() if d.directionality is Directionality.HIGHER_IS_BETTER]


@pytest.mark.parametrize("index_id", HIGHER_IDS)
def test_score_equal_to_target_is_full_progress(index_id):
    target = INDEX_DEFINITIONS[index_id].target
    status = classify(index_id, target, target)

    assert status.progress_pct == 100
    assert status.band in {StatusBand.EXCELLENT, StatusBand.GOOD}


@pytest.mark.parametrize("index_id", HIGHER_IDS)
def test_ninety_five_percent_boundary(index_id):
    target = INDEX_DEFINITIONS[index_id].target

    assert classify(index_id, target * 95 / 100, target).band is StatusBand.EXCELLENT
    assert classify(index_id, target * 94.999 / 100, target).band is StatusBand.GOOD


def test_higher_is_better_bands_and_progress_cap():
    assert classify("cri", 60, 80).band is StatusBand.GOOD
    assert classify("cri", 40, 80).band is StatusBand.MODERATE
    assert classify("cri", 39, 80).band is StatusBand.CRITICAL
    assert classify("cri", 100, 80).progress_pct == 100
    assert classify("cri", 40, 80).progress_pct == pytest.approx(50)


@pytest.mark.parametrize(
    "score, band",
    [(15, StatusBand.EXCELLENT), (16, StatusBand.GOOD), (25, StatusBand.GOOD), (35, StatusBand.MODERATE), (36, StatusBand.CRITICAL)],
)
def test_uhvi_thresholds(score, band):
    assert classify("uhvi", score, 30).band is band


@pytest.mark.parametrize(
    "score, band",
    [(2, StatusBand.EXCELLENT), (3, StatusBand.GOOD), (6, StatusBand.MODERATE), (7, StatusBand.CRITICAL)],
)
def test_aqhi_thresholds(score, band):
    assert classify("aqhi", score, 4).band is band


def test_lower_is_better_progress():
    assert classify("uhvi", 15, 30).progress_pct == pytest.approx(50)
    assert classify("uhvi", 45, 30).progress_pct == 0
    assert classify("aqhi", 1, 4).progress_pct == pytest.approx(100)
    assert classify("aqhi", 4, 4).progress_pct == 0


def test_classification_is_repeatable():
    first = classify("gea", 61, 75)
    second = classify("gea", 61, 75)

    assert first == second


def test_index_id_is_case_insensitive():
    assert classify("UHVI", 10, 30).band is StatusBand.EXCELLENT


@pytest.mark.parametrize(
    "index_id, score, target",
    [("xyz", 10, 50), ("cri", math.nan, 75), ("cri", "high", 75), ("cri", 50, 0)],
)
def test_invalid_inputs_fail_fast(index_id, score, target):
    with pytest.raises(ClassificationInputInvalid):
        classify(index_id, score, target)


@pytest.mark.parametrize(
    "progress, label, band",
    [
        (80, "Implementation Ready", StatusBand.EXCELLENT),
        (79.9, "Policy Development Needed", StatusBand.GOOD),
        (40, "Immediate Planning Required", StatusBand.MODERATE),
        (10, "Critical Action Zone", StatusBand.CRITICAL),
    ],
)
def test_action_status(progress, label, band):
    status = action_status(progress)

    assert status.label == label
    assert status.band is band
    assert status.percentage == progress
