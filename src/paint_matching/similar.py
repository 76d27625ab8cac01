from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from .distance import (
    MatchingAlgorithm,
    classify_distance,
    distance_to_confidence,
    distances,
    resolve_algorithm,
)
from .models import CatalogPaint, ColorSample, PaintFilters, PaintMatch

logger = logging.getLogger(__name__)

# Paint types that fill the same practical role and may stand in for each other.
TYPE_EQUIVALENCE_GROUPS: tuple[frozenset[str], ...] = (frozenset({"base", "layer"}),)


def normalize_type(paint_type: str | None) -> str:
    normalized = (paint_type or "").strip().lower()
    for group in TYPE_EQUIVALENCE_GROUPS:
        if normalized in group:
            return min(group)
    return normalized


def types_compatible(first: str | None, second: str | None) -> bool:
    return normalize_type(first) == normalize_type(second)


def filter_catalog(
    source: CatalogPaint | ColorSample,
    catalog: Iterable[CatalogPaint],
    filters: PaintFilters | None = None,
) -> list[CatalogPaint]:
    """Catalog entries eligible for a query about ``source``.

    The source paint itself is never eligible. Type and finish filters only
    apply when the source carries a classification, i.e. is a catalog paint.
    """
    filters = filters or PaintFilters()
    source_id = source.stable_id
    source_type = source.type if isinstance(source, CatalogPaint) else None
    source_finish = source.finish if isinstance(source, CatalogPaint) else None

    eligible: list[CatalogPaint] = []
    for paint in catalog:
        if source_id is not None and paint.stable_id == source_id:
            continue
        if filters.brands and paint.brand not in filters.brands:
            continue
        if filters.require_same_type and source_type is not None:
            if not types_compatible(source_type, paint.type):
                continue
        if filters.require_same_finish and source_finish is not None:
            if paint.finish.strip().lower() != source_finish.strip().lower():
                continue
        eligible.append(paint)
    return eligible


def catalog_lab_array(paints: list[CatalogPaint]) -> np.ndarray:
    return np.asarray([paint.lab for paint in paints], dtype=np.float64).reshape(-1, 3)


def find_matches(
    source: CatalogPaint | ColorSample,
    catalog: Iterable[CatalogPaint],
    filters: PaintFilters | None = None,
    algorithm: MatchingAlgorithm = MatchingAlgorithm.CIEDE2000,
    limit: int = 50,
) -> list[PaintMatch]:
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    algorithm = resolve_algorithm(algorithm)

    candidates = filter_catalog(source, catalog, filters)
    logger.debug("ranking %d candidates with %s", len(candidates), algorithm.value)
    if not candidates:
        return []

    scores = distances(source.lab, catalog_lab_array(candidates), algorithm)
    ranked = sorted(
        zip(candidates, scores.tolist()),
        key=lambda item: (item[1], item[0].stable_id),
    )

    return [
        PaintMatch(
            paint=paint,
            distance=score,
            confidence=distance_to_confidence(score),
            algorithm=algorithm,
            quality=classify_distance(score),
        )
        for paint, score in ranked[:limit]
    ]
