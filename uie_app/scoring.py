"""Scoring primitives shared by the index formulas."""

from __future__ import annotations

import math
import random
from typing import Dict, Optional, Sequence

from .indices import ComponentSpec


def clamp_value(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def _minmax(value: float, minimum: float, maximum: float, invert: bool = False) -> float:
    clamped = clamp_value(value, minimum, maximum)
    score = (clamped - minimum) / (maximum - minimum or 1)
    return 1 - score if invert else score


def fraction(value: float, minimum: float, maximum: float, invert: bool = False) -> float:
    return _minmax(value, minimum, maximum, invert=invert)


def points(value: float, minimum: float, maximum: float, max_points: int, invert: bool = False) -> int:
    """Scale ``value`` linearly onto ``0..max_points`` whole points."""

    return int(round(_minmax(value, minimum, maximum, invert=invert) * max_points))


def comfort(temperature: float) -> float:
    """1.0 at 21 °C, falling linearly to 0.0 twenty degrees either side."""

    return 1 - clamp_value(abs(temperature - 21.0) / 20.0, 0.0, 1.0)


def apportion(
    total: int,
    specs: Sequence[ComponentSpec],
    weights: Optional[Sequence[float]] = None,
    rng: Optional[random.Random] = None,
    jitter: float = 0.0,
) -> Dict[str, int]:
    """Split ``total`` whole points across ``specs`` so the parts add up exactly.

    Every component starts at its minimum. The rest is shared in proportion to
    ``weights`` (default: each component's point span), optionally scaled by a
    ``±jitter`` factor drawn from ``rng``. Shares are floored and clamped to
    each span; whatever is left over goes to the component with the most
    headroom, spilling to the next one only when it is full.
    """

    floor_total = sum(spec.min_points for spec in specs)
    ceiling_total = sum(spec.max_points for spec in specs)
    if not floor_total <= total <= ceiling_total:
        raise ValueError(f"total {total} outside component range {floor_total}-{ceiling_total}")

    spans = [spec.span for spec in specs]
    basis = list(weights) if weights is not None else [float(span) for span in spans]
    if len(basis) != len(specs):
        raise ValueError("weights must match components one to one")
    remaining = total - floor_total
    basis_total = sum(basis)

    extras = []
    for span, weight in zip(spans, basis):
        share = remaining * weight / basis_total if basis_total > 0 else 0.0
        if rng is not None and jitter:
            share *= 1 + rng.uniform(-jitter, jitter)
        extras.append(int(clamp_value(math.floor(share), 0, span)))

    residual = remaining - sum(extras)
    while residual:
        step = 1 if residual > 0 else -1
        if step > 0:
            room = [span - extra for span, extra in zip(spans, extras)]
        else:
            room = list(extras)
        position = max(range(len(specs)), key=lambda i: (room[i], -i))
        moved = min(room[position], abs(residual))
        extras[position] += step * moved
        residual -= step * moved

    return {spec.name: spec.min_points + extra for spec, extra in zip(specs, extras)}


__all__ = ["apportion", "clamp_value", "comfort", "fraction", "points"]
