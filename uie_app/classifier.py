"""Status bands and progress percentages for index scores."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .indices import ClassificationInputInvalid, IndexDefinition, get_definition
from .models import Directionality, IndexStatus, StatusBand, UrbanIndex

# Share of target (in percent) needed for each band on higher-is-better indices.
PERCENT_OF_TARGET_BANDS = (
    (95, StatusBand.EXCELLENT),
    (70, StatusBand.GOOD),
    (50, StatusBand.MODERATE),
)

READINESS_LEVELS = (
    (80, "Implementation Ready", "Ready", StatusBand.EXCELLENT),
    (60, "Policy Development Needed", "Policy Needed", StatusBand.GOOD),
    (40, "Immediate Planning Required", "Planning Needed", StatusBand.MODERATE),
)
READINESS_FLOOR = ("Critical Action Zone", "Critical", StatusBand.CRITICAL)


@dataclass(frozen=True)
class ActionStatus:
    label: str
    short_label: str
    band: StatusBand
    percentage: float


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _checked_number(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ClassificationInputInvalid(f"{name} must be numeric, got {value!r}") from None
    if math.isnan(number):
        raise ClassificationInputInvalid(f"{name} must not be NaN")
    return number


def _lower_is_better(definition: IndexDefinition, score: float) -> IndexStatus:
    band = StatusBand.CRITICAL
    for limit, candidate in definition.band_limits or ():
        if score <= limit:
            band = candidate
            break
    ceiling = definition.progress_ceiling
    progress = _clamp01((ceiling - score) / definition.progress_span) * 100
    return IndexStatus(band=band, progress_pct=progress)


def _higher_is_better(score: float, target: float) -> IndexStatus:
    if target <= 0:
        raise ClassificationInputInvalid(f"target must be positive, got {target!r}")
    band = StatusBand.CRITICAL
    # Compare score * 100 against pct * target to keep boundaries exact.
    for pct, candidate in PERCENT_OF_TARGET_BANDS:
        if score * 100 >= pct * target:
            band = candidate
            break
    progress = max(0.0, min(100.0, score / target * 100))
    return IndexStatus(band=band, progress_pct=progress)


def classify(index_id: str, score: float, target: float) -> IndexStatus:
    """Return the status band and progress percentage for one index score.

    Higher-is-better indices are banded by their share of ``target``. The heat
    (UHVI) and air pollution (AQHI) indices use their own absolute thresholds
    and a fixed progress ceiling, so ``target`` is only validated for them.
    """

    definition = get_definition(index_id)
    score = _checked_number("score", score)
    target = _checked_number("target", target)
    if definition.directionality is Directionality.LOWER_IS_BETTER:
        return _lower_is_better(definition, score)
    return _higher_is_better(score, target)


def classify_index(index: UrbanIndex) -> IndexStatus:
    return classify(index.key, index.total_score, index.target)


def action_status(progress_pct: float) -> ActionStatus:
    """Translate progress toward target into an implementation readiness label."""

    percentage = _checked_number("progress_pct", progress_pct)
    for minimum, label, short_label, band in READINESS_LEVELS:
        if percentage >= minimum:
            return ActionStatus(label, short_label, band, percentage)
    label, short_label, band = READINESS_FLOOR
    return ActionStatus(label, short_label, band, percentage)


__all__ = ["ActionStatus", "action_status", "classify", "classify_index"]
