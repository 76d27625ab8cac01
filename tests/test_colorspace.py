from __future__ import annotations

import itertools

import numpy as np
import pytest

from paint_matching.colorspace import (
    ColorFormatError,
    hex_to_lab,
    hex_to_rgb,
    lab_array_to_rgb,
    lab_to_hex,
    lab_to_rgb,
    rgb_array_to_lab,
    rgb_to_hex,
    rgb_to_lab,
)
from paint_matching.models import CatalogPaint


def test_hex_to_rgb_parses_both_cases():
    assert hex_to_rgb("#FF8000") == (255, 128, 0)
    assert hex_to_rgb("#ff8000") == (255, 128, 0)


@pytest.mark.parametrize(
    "value",
    ["FF8000", "#FFF", "#GG0000", "#FF00001", " #FF0000", "#FF0000\n", "", None],
)
def test_hex_to_rgb_rejects_malformed_input(value):
    with pytest.raises(ColorFormatError):
        hex_to_rgb(value)


def test_color_format_error_is_a_value_error():
    with pytest.raises(ValueError):
        hex_to_rgb("red")


def test_rgb_to_hex_rounds_half_up_and_clamps():
    assert rgb_to_hex(255, 0, 0) == "#FF0000"
    assert rgb_to_hex(127.5, -3, 300) == "#8000FF"
    assert rgb_to_hex(126.5, 0.49, 254.5) == "#7F00FF"


def test_rgb_to_lab_reference_points():
    assert rgb_to_lab(0, 0, 0) == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)

    white = rgb_to_lab(255, 255, 255)
    assert white[0] == pytest.approx(100.0, abs=1e-3)
    assert white[1] == pytest.approx(0.0, abs=1e-2)
    assert white[2] == pytest.approx(0.0, abs=1e-2)

    red = rgb_to_lab(255, 0, 0)
    assert red[0] == pytest.approx(53.24, abs=0.1)
    assert red[1] == pytest.approx(80.09, abs=0.2)
    assert red[2] == pytest.approx(67.20, abs=0.2)


def test_gray_has_no_chroma():
    l_star, a_star, b_star = hex_to_lab("#808080")
    assert 50.0 < l_star < 56.0
    assert abs(a_star) < 1e-2
    assert abs(b_star) < 1e-2


def test_lab_round_trip_reproduces_rgb_grid():
    values = list(range(0, 256, 15)) + [1, 254, 255]
    grid = np.asarray(list(itertools.product(values, repeat=3)), dtype=np.float64)

    recovered = np.floor(lab_array_to_rgb(rgb_array_to_lab(grid)) + 0.5)

    assert np.max(np.abs(recovered - grid)) <= 1.0


@pytest.mark.parametrize(
    "hex_value",
    ["#000000", "#FFFFFF", "#FF0000", "#00FF00", "#0000FF", "#9A1115", "#1E3A5F", "#FDB825"],
)
def test_hex_round_trip_through_lab(hex_value):
    rgb = hex_to_rgb(hex_value)
    recovered = hex_to_rgb(rgb_to_hex(*lab_to_rgb(*rgb_to_lab(*rgb))))

    assert all(abs(a - b) <= 1 for a, b in zip(rgb, recovered))
    assert lab_to_hex(*hex_to_lab(hex_value)) == hex_value


@pytest.mark.filterwarnings("ignore")
def test_lab_to_rgb_clamps_out_of_gamut_colors():
    rgb = lab_to_rgb(50.0, 120.0, -120.0)

    assert all(isinstance(channel, int) for channel in rgb)
    assert all(0 <= channel <= 255 for channel in rgb)


def test_batch_conversions_accept_empty_input():
    assert rgb_array_to_lab(np.empty((0, 3))).shape == (0, 3)
    assert lab_array_to_rgb(np.empty((0, 3))).shape == (0, 3)


@pytest.mark.parametrize("lab", [(float("nan"), 0.0, 0.0), (50.0, float("inf"), 0.0)])
def test_non_finite_lab_is_rejected(lab):
    with pytest.raises(ColorFormatError):
        lab_to_rgb(*lab)
    with pytest.raises(ColorFormatError):
        CatalogPaint.from_lab("bad", "Bad", "Test", lab)
