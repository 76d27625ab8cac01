from __future__ import annotations

import logging
import threading
from pathlib import Path

from .catalog import CatalogSnapshot, load_catalog
from .config import MatchingSettings
from .distance import MatchingAlgorithm
from .models import CatalogPaint, ColorSample, PaintFilters, PaintMatch, PaintMixRecipe
from .recipes import find_recipes
from .similar import find_matches

logger = logging.getLogger(__name__)


class PaintMatchingService:
    def __init__(
        self,
        catalog: CatalogSnapshot,
        settings: MatchingSettings | None = None,
    ) -> None:
        self.catalog = catalog
        self.settings = settings or MatchingSettings()

    @classmethod
    def from_path(
        cls,
        catalog_path: str | Path | None = None,
        settings: MatchingSettings | None = None,
    ) -> PaintMatchingService:
        settings = settings or MatchingSettings()
        result = load_catalog(catalog_path or settings.catalog_path)
        for error in result.errors:
            logger.warning("catalog: %s", error)
        return cls(result.snapshot(), settings)

    def resolve_source(
        self,
        stable_id: str | None = None,
        hex: str | None = None,
    ) -> CatalogPaint | ColorSample:
        if stable_id:
            paint = self.catalog.find_by_stable_id(stable_id)
            if paint is None:
                raise LookupError(f"unknown paint stable_id '{stable_id}'")
            return paint
        if hex:
            return ColorSample.from_hex(hex)
        raise ValueError("provide either a paint stable_id or a hex color")

    def find_similar_paints(
        self,
        source_paint: CatalogPaint | ColorSample,
        target_brands: set[str] | None = None,
        algorithm: MatchingAlgorithm = MatchingAlgorithm.CIEDE2000,
        require_same_type: bool = False,
        require_same_finish: bool = False,
        limit: int | None = None,
    ) -> list[PaintMatch]:
        filters = PaintFilters.create(
            brands=target_brands,
            require_same_type=require_same_type,
            require_same_finish=require_same_finish,
        )
        return find_matches(
            source_paint,
            self.catalog,
            filters=filters,
            algorithm=algorithm,
            limit=limit if limit is not None else self.settings.default_limit,
        )

    def find_mixing_recipes(
        self,
        target_paint: CatalogPaint | ColorSample,
        source_brands: set[str] | None = None,
        algorithm: MatchingAlgorithm = MatchingAlgorithm.CIEDE2000,
        require_same_type: bool = False,
        max_components: int | None = None,
        min_percentage: float | None = None,
        max_results: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[PaintMixRecipe]:
        settings = self.settings
        filters = PaintFilters.create(brands=source_brands, require_same_type=require_same_type)
        return find_recipes(
            target_paint,
            self.catalog,
            filters=filters,
            algorithm=algorithm,
            max_components=max_components if max_components is not None else settings.default_max_components,
            min_percentage=min_percentage if min_percentage is not None else settings.default_min_percentage,
            max_results=max_results if max_results is not None else settings.default_max_results,
            percentage_step=settings.percentage_step,
            shortlist_size=settings.shortlist_size,
            workers=settings.workers,
            cancel_event=cancel_event,
        )
