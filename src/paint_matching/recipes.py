"""Search for catalog paint blends that approximate a target color.

The search is a bounded approximation, not an exhaustive one:

1. Shortlist: the ``shortlist_size`` single paints closest to the target,
   plus the lightest and darkest eligible paints so that tinting and
   shading toward the target stays possible.
2. Every 2..``max_components`` combination drawn from the shortlist is
   scored over a discrete grid of percentage splits (multiples of
   ``percentage_step``, each part at least ``min_percentage``). The best
   split per combination survives.
3. Survivors are turned into recipes, near duplicates are dropped, and
   the rest is ranked by confidence.

Splits below ``PRACTICAL_MIN_PERCENTAGE`` are kept but flagged
``is_practical=False``; they are never rounded up.
"""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, Sequence

import numpy as np

from .colorspace import rgb_array_to_lab
from .distance import (
    MatchingAlgorithm,
    distance,
    distance_to_confidence,
    distances,
    resolve_algorithm,
)
from .mixing import blend, blend_rgb_batch
from .models import (
    MAX_COMPONENTS_LIMIT,
    CatalogPaint,
    ColorSample,
    MixComponent,
    PaintFilters,
    PaintMixRecipe,
)
from .similar import catalog_lab_array, filter_catalog

logger = logging.getLogger(__name__)

PRACTICAL_MIN_PERCENTAGE = 5.0
DEFAULT_PERCENTAGE_STEP = 5.0
DEFAULT_SHORTLIST_SIZE = 12
MIN_PERCENTAGE_STEP = 1.0


class SearchCancelled(RuntimeError):
    pass


@dataclass(frozen=True)
class _BestSplit:
    paints: tuple[CatalogPaint, ...]
    percentages: tuple[float, ...]
    distance: float


def find_recipes(
    target: CatalogPaint | ColorSample,
    catalog: Iterable[CatalogPaint],
    filters: PaintFilters | None = None,
    algorithm: MatchingAlgorithm = MatchingAlgorithm.CIEDE2000,
    max_components: int = 3,
    min_percentage: float = 5.0,
    max_results: int = 6,
    *,
    percentage_step: float = DEFAULT_PERCENTAGE_STEP,
    shortlist_size: int = DEFAULT_SHORTLIST_SIZE,
    workers: int = 1,
    cancel_event: threading.Event | None = None,
) -> list[PaintMixRecipe]:
    algorithm = resolve_algorithm(algorithm)
    _validate_parameters(max_components, min_percentage, max_results, percentage_step, shortlist_size, workers)

    eligible = _unique_by_stable_id(filter_catalog(target, catalog, filters))
    if len(eligible) < 2:
        logger.debug("recipe search skipped, %d eligible paints", len(eligible))
        return []

    shortlist = build_shortlist(target, eligible, algorithm, shortlist_size)
    split_grids = {
        parts: percentage_splits(parts, min_percentage, percentage_step)
        for parts in range(2, max_components + 1)
    }
    jobs = [
        combo
        for parts, grid in split_grids.items()
        if grid.shape[0] > 0
        for combo in combinations(shortlist, parts)
    ]
    logger.debug(
        "recipe search over %d combinations from a shortlist of %d (of %d eligible)",
        len(jobs),
        len(shortlist),
        len(eligible),
    )

    if workers > 1 and len(jobs) > 1:
        shards = [jobs[index::workers] for index in range(workers)]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(_search_shard, shard, split_grids, target.lab, algorithm, cancel_event)
                for shard in shards
            ]
            best_splits = [split for future in futures for split in future.result()]
    else:
        best_splits = _search_shard(jobs, split_grids, target.lab, algorithm, cancel_event)

    recipes = [_to_recipe(split, target, algorithm) for split in best_splits]
    return rank_recipes(deduplicate_recipes(recipes))[:max_results]


def build_shortlist(
    target: CatalogPaint | ColorSample,
    eligible: Sequence[CatalogPaint],
    algorithm: MatchingAlgorithm,
    size: int = DEFAULT_SHORTLIST_SIZE,
) -> list[CatalogPaint]:
    scores = distances(target.lab, catalog_lab_array(list(eligible)), algorithm)
    order = sorted(range(len(eligible)), key=lambda idx: (scores[idx], eligible[idx].stable_id))
    shortlist = [eligible[idx] for idx in order[:size]]

    lightest = max(eligible, key=lambda paint: (paint.lab_l, paint.stable_id))
    darkest = min(eligible, key=lambda paint: (paint.lab_l, paint.stable_id))
    chosen = {paint.stable_id for paint in shortlist}
    for anchor in (lightest, darkest):
        if anchor.stable_id not in chosen:
            shortlist.append(anchor)
            chosen.add(anchor.stable_id)
    return shortlist


def percentage_splits(parts: int, min_percentage: float, step: float) -> np.ndarray:
    """All ways to split 100% into ``parts`` multiples of ``step``.

    Every part is at least ``min_percentage`` (and at least one step).
    Steps finer than ``MIN_PERCENTAGE_STEP`` are rejected to keep the grid
    small enough to enumerate.
    Returns an (m, parts) array, empty when no split is possible.
    """
    if not step >= MIN_PERCENTAGE_STEP:
        raise ValueError(f"percentage step must be at least {MIN_PERCENTAGE_STEP}, got {step}")
    units = round(100.0 / step)
    if units < 1 or abs(units * step - 100.0) > 1e-9:
        raise ValueError(f"percentage step must divide 100 evenly, got {step}")

    min_units = max(1, math.ceil(min_percentage / step - 1e-9))
    spare = units - parts * min_units
    if spare < 0:
        return np.empty((0, parts), dtype=np.float64)

    # Stars and bars over the spare units.
    rows = []
    for bars in combinations(range(spare + parts - 1), parts - 1):
        edges = (-1, *bars, spare + parts - 1)
        rows.append([edges[i + 1] - edges[i] - 1 + min_units for i in range(parts)])
    return np.asarray(rows, dtype=np.float64) * step


def deduplicate_recipes(recipes: Iterable[PaintMixRecipe]) -> list[PaintMixRecipe]:
    """Drop recipes that are color-equivalent to a better one.

    Two recipes are equivalent when they use the same set of paints, or when
    they produce the same resulting color and one paint set contains the
    other (a third paint added at a trace amount).
    """
    best_by_set: dict[frozenset[str], PaintMixRecipe] = {}
    for recipe in recipes:
        key = recipe.component_ids
        current = best_by_set.get(key)
        if current is None or _rank_key(recipe) < _rank_key(current):
            best_by_set[key] = recipe

    kept: list[PaintMixRecipe] = []
    for recipe in rank_recipes(best_by_set.values()):
        if any(
            other.resulting_hex == recipe.resulting_hex
            and (other.component_ids <= recipe.component_ids or recipe.component_ids <= other.component_ids)
            for other in kept
        ):
            continue
        kept.append(recipe)
    return kept


def rank_recipes(recipes: Iterable[PaintMixRecipe]) -> list[PaintMixRecipe]:
    return sorted(recipes, key=_rank_key)


def _rank_key(recipe: PaintMixRecipe) -> tuple[float, float, int, tuple[str, ...]]:
    return (
        -recipe.confidence,
        recipe.distance,
        len(recipe.components),
        tuple(sorted(recipe.component_ids)),
    )


def _search_shard(
    jobs: Sequence[tuple[CatalogPaint, ...]],
    split_grids: dict[int, np.ndarray],
    target_lab: tuple[float, float, float],
    algorithm: MatchingAlgorithm,
    cancel_event: threading.Event | None,
) -> list[_BestSplit]:
    results: list[_BestSplit] = []
    for paints in jobs:
        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelled("recipe search was cancelled")

        grid = split_grids[len(paints)]
        rgb = np.asarray([paint.rgb for paint in paints], dtype=np.float64)
        mixed_lab = rgb_array_to_lab(blend_rgb_batch(rgb, grid))
        scores = distances(target_lab, mixed_lab, algorithm)
        best = int(np.argmin(scores))
        results.append(
            _BestSplit(
                paints=tuple(paints),
                percentages=tuple(float(value) for value in grid[best]),
                distance=float(scores[best]),
            )
        )
    return results


def _to_recipe(
    split: _BestSplit,
    target: CatalogPaint | ColorSample,
    algorithm: MatchingAlgorithm,
) -> PaintMixRecipe:
    ordered = sorted(
        zip(split.paints, split.percentages),
        key=lambda item: (-item[1], item[0].stable_id),
    )
    result = blend(ordered)
    result_distance = distance(target.lab, result.lab, algorithm)

    components = tuple(MixComponent.from_paint(paint, percentage) for paint, percentage in ordered)

    return PaintMixRecipe(
        components=components,
        confidence=distance_to_confidence(result_distance),
        distance=result_distance,
        algorithm=algorithm,
        is_practical=all(c.percentage >= PRACTICAL_MIN_PERCENTAGE for c in components),
        resulting_hex=result.hex,
        resulting_lab=result.lab,
    )


def _unique_by_stable_id(paints: Iterable[CatalogPaint]) -> list[CatalogPaint]:
    seen: set[str] = set()
    unique: list[CatalogPaint] = []
    for paint in paints:
        if paint.stable_id in seen:
            continue
        seen.add(paint.stable_id)
        unique.append(paint)
    return unique


def _validate_parameters(
    max_components: int,
    min_percentage: float,
    max_results: int,
    percentage_step: float,
    shortlist_size: int,
    workers: int,
) -> None:
    if not 2 <= max_components <= MAX_COMPONENTS_LIMIT:
        raise ValueError(f"max_components must be within 2-{MAX_COMPONENTS_LIMIT}, got {max_components}")
    if not math.isfinite(min_percentage) or not 0.0 < min_percentage < 100.0:
        raise ValueError(f"min_percentage must be within (0, 100), got {min_percentage}")
    if max_results <= 0:
        raise ValueError(f"max_results must be positive, got {max_results}")
    if not percentage_step >= MIN_PERCENTAGE_STEP:
        raise ValueError(f"percentage_step must be at least {MIN_PERCENTAGE_STEP}, got {percentage_step}")
    if shortlist_size < 2:
        raise ValueError(f"shortlist_size must be at least 2, got {shortlist_size}")
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")
