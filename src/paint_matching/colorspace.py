from __future__ import annotations

import math
import re

import numpy as np
from skimage import color as skcolor

RGB = tuple[int, int, int]
LAB = tuple[float, float, float]

_HEX_PATTERN = re.compile(r"#[0-9A-Fa-f]{6}")


class ColorFormatError(ValueError):
    pass


def hex_to_rgb(value: str) -> RGB:
    if not isinstance(value, str) or not _HEX_PATTERN.fullmatch(value):
        raise ColorFormatError(f"invalid hex color {value!r}, expected '#RRGGBB'")

    return (
        int(value[1:3], 16),
        int(value[3:5], 16),
        int(value[5:7], 16),
    )


def rgb_to_hex(red: float, green: float, blue: float) -> str:
    r, g, b = round_channels(np.array([red, green, blue], dtype=np.float64))
    return f"#{r:02X}{g:02X}{b:02X}"


def round_channels(channels: np.ndarray) -> RGB:
    # Half-up rounding; np.round would send 127.5 to 128 but 126.5 to 126.
    clipped = np.clip(np.floor(np.asarray(channels, dtype=np.float64) + 0.5), 0, 255)
    values = clipped.astype(np.int64).reshape(3)
    return int(values[0]), int(values[1]), int(values[2])


def rgb_to_lab(red: int, green: int, blue: int) -> LAB:
    lab = rgb_array_to_lab(np.array([[red, green, blue]], dtype=np.float64))[0]
    return float(lab[0]), float(lab[1]), float(lab[2])


def lab_to_rgb(l_star: float, a_star: float, b_star: float) -> RGB:
    if not all(math.isfinite(value) for value in (l_star, a_star, b_star)):
        raise ColorFormatError(f"invalid Lab color {(l_star, a_star, b_star)!r}, values must be finite")
    rgb = lab_array_to_rgb(np.array([[l_star, a_star, b_star]], dtype=np.float64))
    return round_channels(rgb[0])


def hex_to_lab(value: str) -> LAB:
    return rgb_to_lab(*hex_to_rgb(value))


def lab_to_hex(l_star: float, a_star: float, b_star: float) -> str:
    return rgb_to_hex(*lab_to_rgb(l_star, a_star, b_star))


def rgb_array_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert an (N, 3) array of 0-255 sRGB values to (N, 3) Lab (D65, 2°).

    Channels may be fractional, which is what blended colors look like
    before they are rounded for display.
    """
    rgb_arr = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    if rgb_arr.shape[0] == 0:
        return np.empty((0, 3), dtype=np.float64)
    normalized = np.clip(rgb_arr, 0.0, 255.0) / 255.0
    return skcolor.rgb2lab(normalized.reshape(-1, 1, 3)).reshape(-1, 3)


def lab_array_to_rgb(lab: np.ndarray) -> np.ndarray:
    """Convert an (N, 3) Lab array to unrounded 0-255 sRGB, clipped to gamut."""
    lab_arr = np.asarray(lab, dtype=np.float64).reshape(-1, 3)
    if lab_arr.shape[0] == 0:
        return np.empty((0, 3), dtype=np.float64)
    rgb = skcolor.lab2rgb(lab_arr.reshape(-1, 1, 3)).reshape(-1, 3)
    return np.clip(rgb * 255.0, 0.0, 255.0)
