from .catalog import CatalogLoadResult, CatalogSnapshot, CatalogValidationError, load_catalog
from .colorspace import ColorFormatError
from .distance import MatchingAlgorithm, MatchQuality
from .models import (
    CatalogPaint,
    ColorSample,
    MixComponent,
    PaintFilters,
    PaintMatch,
    PaintMixRecipe,
    RecipeValidationError,
)
from .recipes import SearchCancelled, find_recipes
from .service import PaintMatchingService
from .similar import find_matches

__all__ = [
    "CatalogLoadResult",
    "CatalogPaint",
    "CatalogSnapshot",
    "CatalogValidationError",
    "ColorFormatError",
    "ColorSample",
    "MatchQuality",
    "MatchingAlgorithm",
    "MixComponent",
    "PaintFilters",
    "PaintMatch",
    "PaintMatchingService",
    "PaintMixRecipe",
    "RecipeValidationError",
    "SearchCancelled",
    "find_matches",
    "find_recipes",
    "load_catalog",
]
