"""Approximate color of a paint blend.

Blending is a percentage-weighted average of the 8-bit sRGB channels.
Real pigments mix subtractively; the RGB average is an engineering
approximation that stays predictable and cheap enough to evaluate for
tens of thousands of candidate splits. Averaging in Lab was rejected
because it produces implausible hues for pigment mixtures.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from .colorspace import rgb_to_hex, rgb_to_lab, round_channels
from .models import CatalogPaint, ColorSample


def blend(components: Iterable[tuple[ColorSample | CatalogPaint, float]]) -> ColorSample:
    """Blend ``(color, percentage)`` pairs into a single color.

    Percentages are normalised by their sum, so ``[(a, 1), (b, 1)]`` and
    ``[(a, 50), (b, 50)]`` give the same result. A component carrying all of
    the weight is returned unchanged, Lab included.
    """
    pairs = [(_as_sample(color), float(percentage)) for color, percentage in components]
    if not pairs:
        raise ValueError("blend needs at least one component")

    for _, percentage in pairs:
        if not math.isfinite(percentage) or percentage < 0.0:
            raise ValueError(f"blend percentages must be finite and >= 0, got {percentage}")

    total = sum(percentage for _, percentage in pairs)
    if total <= 0.0:
        raise ValueError("blend percentages must not all be zero")

    weighted = [(sample, percentage) for sample, percentage in pairs if percentage > 0.0]
    if len(weighted) == 1:
        return weighted[0][0]

    rgb = np.asarray([sample.rgb for sample, _ in weighted], dtype=np.float64)
    weights = np.asarray([percentage for _, percentage in weighted], dtype=np.float64)
    mixed = blend_rgb_batch(rgb, weights.reshape(1, -1))[0]

    red, green, blue = round_channels(mixed)
    return ColorSample(
        lab=rgb_to_lab(red, green, blue),
        hex=rgb_to_hex(red, green, blue),
        rgb=(red, green, blue),
    )


def blend_rgb_batch(rgb: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Blend k colors under m weightings at once.

    Args:
        rgb: (k, 3) array of 0-255 channels
        weights: (m, k) array of non-negative weights, rows need not sum to 1

    Returns:
        (m, 3) array of unrounded blended channels
    """
    rgb_arr = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    weight_arr = np.asarray(weights, dtype=np.float64).reshape(-1, rgb_arr.shape[0])
    totals = weight_arr.sum(axis=1, keepdims=True)
    if np.any(totals <= 0.0):
        raise ValueError("every weighting must have a positive total")
    return (weight_arr / totals) @ rgb_arr


def _as_sample(color: ColorSample | CatalogPaint) -> ColorSample:
    if isinstance(color, CatalogPaint):
        return ColorSample.from_paint(color)
    return color
