from __future__ import annotations

import math

import numpy as np
import pytest

from paint_matching.distance import (
    EXCELLENT_MAX_DISTANCE,
    FAIR_MAX_DISTANCE,
    GOOD_MAX_DISTANCE,
    MatchingAlgorithm,
    MatchQuality,
    classify_distance,
    distance,
    distance_to_confidence,
    distances,
    resolve_algorithm,
)

SAMPLES = [
    (0.0, 0.0, 0.0),
    (100.0, 0.0, 0.0),
    (50.0, 0.0, 0.0),
    (53.24, 80.09, 67.20),
    (32.30, 79.19, -107.86),
    (87.73, -86.18, 83.18),
    (18.03, 7.99, -16.98),
]


@pytest.mark.parametrize("algorithm", list(MatchingAlgorithm))
@pytest.mark.parametrize("lab", SAMPLES)
def test_distance_to_itself_is_zero(algorithm, lab):
    assert distance(lab, lab, algorithm) == 0.0


@pytest.mark.parametrize("algorithm", list(MatchingAlgorithm))
def test_distance_is_symmetric_within_tolerance(algorithm):
    for first in SAMPLES:
        for second in SAMPLES:
            forward = distance(first, second, algorithm)
            backward = distance(second, first, algorithm)
            assert forward >= 0.0
            assert forward == pytest.approx(backward, abs=1e-6)


def test_euclidean_is_plain_lab_distance():
    assert distance((50.0, 0.0, 0.0), (53.0, 4.0, 0.0), MatchingAlgorithm.EUCLIDEAN) == pytest.approx(5.0)


def test_ciede2000_matches_published_reference_pair():
    # First pair of the Sharma, Wu and Dalal CIEDE2000 test data.
    result = distance((50.0, 2.6772, -79.7751), (50.0, 0.0, -82.7485), MatchingAlgorithm.CIEDE2000)
    assert result == pytest.approx(2.0425, abs=1e-4)


def test_ciede2000_handles_achromatic_colors_without_nan():
    result = distance((50.0, 0.0, 0.0), (60.0, 0.0, 0.0))
    assert math.isfinite(result)
    assert result > 0.0

    mixed = distance((50.0, 0.0, 0.0), (50.0, 10.0, 0.0))
    assert math.isfinite(mixed)
    assert mixed > 0.0


def test_ciede2000_is_the_default_algorithm():
    first, second = (40.0, 20.0, -10.0), (45.0, 10.0, 5.0)
    assert distance(first, second) == distance(first, second, MatchingAlgorithm.CIEDE2000)
    assert distance(first, second) != distance(first, second, MatchingAlgorithm.EUCLIDEAN)


def test_distances_vectorised_matches_scalar():
    candidates = np.asarray(SAMPLES)
    vector = distances((40.0, 20.0, -10.0), candidates)

    assert vector.shape == (len(SAMPLES),)
    for lab, value in zip(SAMPLES, vector):
        assert value == pytest.approx(distance((40.0, 20.0, -10.0), lab))


def test_distances_with_no_candidates_is_empty():
    assert distances((50.0, 0.0, 0.0), np.empty((0, 3))).shape == (0,)


def test_distances_rejects_non_finite_lab():
    with pytest.raises(ValueError):
        distance((float("nan"), 0.0, 0.0), (50.0, 0.0, 0.0))


def test_resolve_algorithm_accepts_names():
    assert resolve_algorithm("ciede2000") is MatchingAlgorithm.CIEDE2000
    assert resolve_algorithm(MatchingAlgorithm.EUCLIDEAN) is MatchingAlgorithm.EUCLIDEAN
    with pytest.raises(ValueError):
        resolve_algorithm("cie94")


def test_confidence_is_monotonic_and_bounded():
    values = [distance_to_confidence(d) for d in np.linspace(0.0, 200.0, 2001)]

    assert values[0] == 1.0
    assert all(0.0 <= value <= 1.0 for value in values)
    assert all(later <= earlier for earlier, later in zip(values, values[1:]))


def test_confidence_curve_landmarks():
    assert distance_to_confidence(1.0) > 0.95
    assert 0.0 < distance_to_confidence(10.0) < 0.2
    assert distance_to_confidence(-1.0) == 1.0
    with pytest.raises(ValueError):
        distance_to_confidence(float("nan"))


def test_quality_tiers_use_fixed_thresholds():
    assert classify_distance(0.0) is MatchQuality.EXCELLENT
    assert classify_distance(EXCELLENT_MAX_DISTANCE) is MatchQuality.EXCELLENT
    assert classify_distance(3.0) is MatchQuality.GOOD
    assert classify_distance(GOOD_MAX_DISTANCE) is MatchQuality.GOOD
    assert classify_distance(7.5) is MatchQuality.FAIR
    assert classify_distance(FAIR_MAX_DISTANCE) is MatchQuality.FAIR
    assert classify_distance(10.01) is MatchQuality.POOR
    assert MatchQuality.GOOD.description == "Good match"
