from __future__ import annotations

import threading

import pytest

from paint_matching.colorspace import ColorFormatError
from paint_matching.config import MatchingSettings
from paint_matching.distance import MatchingAlgorithm
from paint_matching.models import CatalogPaint, ColorSample
from paint_matching.recipes import SearchCancelled
from paint_matching.service import PaintMatchingService

MEPHISTON_RED = "citadel-base-mephiston-red"


@pytest.fixture(scope="module")
def service():
    return PaintMatchingService.from_path()


def test_cross_brand_equivalents_for_a_catalog_paint(service):
    source = service.resolve_source(stable_id=MEPHISTON_RED)

    matches = service.find_similar_paints(source, target_brands={"Vallejo"}, limit=3)

    assert isinstance(source, CatalogPaint)
    assert len(matches) == 3
    assert all(match.paint.brand == "Vallejo" for match in matches)
    assert matches[0].paint.stable_id in {"vallejo-model-color-flat-red", "vallejo-game-color-bloody-red"}
    assert MEPHISTON_RED not in {match.paint.stable_id for match in matches}


def test_default_limit_comes_from_settings():
    service = PaintMatchingService.from_path(settings=MatchingSettings(default_limit=4))

    matches = service.find_similar_paints(service.resolve_source(hex="#808080"))

    assert len(matches) == 4


def test_same_type_and_finish_on_a_metallic(service):
    source = service.resolve_source(stable_id="citadel-base-leadbelcher")

    matches = service.find_similar_paints(source, require_same_finish=True)

    assert [match.paint.stable_id for match in matches] == ["vallejo-game-color-silver"]


def test_mixing_recipes_for_a_custom_color(service):
    target = service.resolve_source(hex="#D96A6A")

    recipes = service.find_mixing_recipes(target, algorithm=MatchingAlgorithm.EUCLIDEAN)

    assert isinstance(target, ColorSample)
    assert 0 < len(recipes) <= 6
    assert all(2 <= len(recipe.components) <= 3 for recipe in recipes)
    assert all(recipe.algorithm is MatchingAlgorithm.EUCLIDEAN for recipe in recipes)


def test_mixing_recipes_respect_source_brands(service):
    target = service.resolve_source(stable_id=MEPHISTON_RED)

    recipes = service.find_mixing_recipes(target, source_brands={"Army Painter"}, max_components=2, max_results=3)

    assert 0 < len(recipes) <= 3
    for recipe in recipes:
        assert {component.brand for component in recipe.components} == {"Army Painter"}


def test_cancelled_recipe_search(service):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(SearchCancelled):
        service.find_mixing_recipes(service.resolve_source(hex="#D96A6A"), cancel_event=cancel)


def test_resolve_source_errors(service):
    with pytest.raises(LookupError):
        service.resolve_source(stable_id="no-such-paint")
    with pytest.raises(ColorFormatError):
        service.resolve_source(hex="red")
    with pytest.raises(ValueError):
        service.resolve_source()


def test_settings_from_environment_mapping():
    settings = MatchingSettings.from_env(
        {
            "PAINT_MATCHING_DEFAULT_LIMIT": "10",
            "PAINT_MATCHING_DEFAULT_MIN_PERCENTAGE": "2.5",
            "PAINT_MATCHING_WORKERS": " 4 ",
            "PAINT_MATCHING_CATALOG_PATH": "/data/paints",
            "PAINT_MATCHING_SHORTLIST_SIZE": "",
            "UNRELATED": "x",
        }
    )

    assert settings.default_limit == 10
    assert settings.default_min_percentage == 2.5
    assert settings.workers == 4
    assert settings.catalog_path == "/data/paints"
    assert settings.shortlist_size == 12


def test_settings_reject_malformed_numbers():
    with pytest.raises(ValueError, match="PAINT_MATCHING_WORKERS"):
        MatchingSettings.from_env({"PAINT_MATCHING_WORKERS": "many"})
