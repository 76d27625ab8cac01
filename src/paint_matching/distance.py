"""Perceptual color difference (ΔE) and the confidence scale built on it.

Two formulas are supported:

- ``EUCLIDEAN``: CIE76, straight-line distance in Lab. Cheap and coarse,
  useful as a pre-filter.
- ``CIEDE2000``: weights lightness, chroma and hue non-uniformly and
  corrects the blue-region and near-neutral errors of CIE76. This is what
  every user-facing query uses.

CIEDE2000 is not a true metric. ``distance(a, b)`` and ``distance(b, a)``
agree only to within floating point noise (1e-6), so callers must not rely
on exact symmetry. For achromatic colors the hue angle is undefined;
``atan2(0, 0)`` evaluates to 0 and the hue difference term vanishes,
so neutrals never produce NaN.

Reference thresholds (CIEDE2000):
- ΔE <= 2: excellent, hard to tell apart side by side
- ΔE <= 5: good, a close stand-in
- ΔE <= 10: fair, same family but visibly different
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable

import numpy as np
from skimage.color import deltaE_cie76, deltaE_ciede2000

EXCELLENT_MAX_DISTANCE = 2.0
GOOD_MAX_DISTANCE = 5.0
FAIR_MAX_DISTANCE = 10.0

# exp(-(d / falloff)^2): 0.98 at ΔE 1, 0.60 at ΔE 5, 0.13 at ΔE 10.
CONFIDENCE_FALLOFF = 7.0


class MatchingAlgorithm(str, Enum):
    EUCLIDEAN = "euclidean"
    CIEDE2000 = "ciede2000"


class MatchQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def description(self) -> str:
        return _QUALITY_DESCRIPTIONS[self]


_QUALITY_DESCRIPTIONS = {
    MatchQuality.EXCELLENT: "Excellent match",
    MatchQuality.GOOD: "Good match",
    MatchQuality.FAIR: "Fair match",
    MatchQuality.POOR: "Poor match",
}

_DISTANCE_FUNCTIONS: dict[MatchingAlgorithm, Callable[..., np.ndarray]] = {
    MatchingAlgorithm.EUCLIDEAN: deltaE_cie76,
    MatchingAlgorithm.CIEDE2000: deltaE_ciede2000,
}


def resolve_algorithm(algorithm: MatchingAlgorithm | str) -> MatchingAlgorithm:
    try:
        return MatchingAlgorithm(algorithm)
    except ValueError as exc:
        options = ", ".join(item.value for item in MatchingAlgorithm)
        raise ValueError(f"unknown matching algorithm '{algorithm}', use one of: {options}") from exc


def distance(
    lab_a: tuple[float, float, float],
    lab_b: tuple[float, float, float],
    algorithm: MatchingAlgorithm | str = MatchingAlgorithm.CIEDE2000,
) -> float:
    result = distances(lab_a, np.asarray(lab_b, dtype=np.float64).reshape(1, 3), algorithm)
    return float(result[0])


def distances(
    source_lab: tuple[float, float, float],
    candidates_lab: np.ndarray,
    algorithm: MatchingAlgorithm | str = MatchingAlgorithm.CIEDE2000,
) -> np.ndarray:
    """ΔE from one Lab color to each row of an (N, 3) Lab array."""
    delta_e = _DISTANCE_FUNCTIONS[resolve_algorithm(algorithm)]

    source = np.asarray(source_lab, dtype=np.float64).reshape(1, 1, 3)
    candidates = np.asarray(candidates_lab, dtype=np.float64).reshape(1, -1, 3)
    if candidates.shape[1] == 0:
        return np.empty(0, dtype=np.float64)
    if not (np.all(np.isfinite(source)) and np.all(np.isfinite(candidates))):
        raise ValueError("Lab coordinates must be finite numbers")

    source = np.repeat(source, candidates.shape[1], axis=1)
    return np.asarray(delta_e(source, candidates), dtype=np.float64).reshape(-1)


def distance_to_confidence(delta_e: float) -> float:
    if math.isnan(delta_e):
        raise ValueError("distance must be a number")
    d = max(float(delta_e), 0.0)
    return math.exp(-((d / CONFIDENCE_FALLOFF) ** 2))


def classify_distance(delta_e: float) -> MatchQuality:
    if delta_e <= EXCELLENT_MAX_DISTANCE:
        return MatchQuality.EXCELLENT
    if delta_e <= GOOD_MAX_DISTANCE:
        return MatchQuality.GOOD
    if delta_e <= FAIR_MAX_DISTANCE:
        return MatchQuality.FAIR
    return MatchQuality.POOR
