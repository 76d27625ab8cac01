from __future__ import annotations

from functools import lru_cache

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from .config import MatchingSettings
from .distance import MatchingAlgorithm
from .models import CatalogPaint, ColorSample
from .service import PaintMatchingService


class SourceFields(BaseModel):
    paint_id: str | None = Field(default=None, description="Stable id of a catalog paint")
    hex: str | None = Field(default=None, description="Custom color as '#RRGGBB'")
    brands: list[str] | None = Field(default=None, description="Restrict results to these brands")
    algorithm: MatchingAlgorithm = Field(
        default=MatchingAlgorithm.CIEDE2000, description="Color difference formula"
    )
    require_same_type: bool = Field(
        default=False, description="Only compatible paint types (Base and Layer are compatible)"
    )


class MatchRequest(SourceFields):
    require_same_finish: bool = Field(default=False, description="Only the same finish")
    limit: int = Field(default=50, ge=1, le=500, description="Maximum matches to return")


class RecipeRequest(SourceFields):
    max_components: int = Field(default=3, ge=2, le=4, description="Paints per recipe")
    min_percentage: float = Field(
        default=5.0, gt=0.0, lt=100.0, description="Smallest share of any paint"
    )
    max_results: int = Field(default=6, ge=1, le=50, description="Maximum recipes to return")


class PaintItem(BaseModel):
    stable_id: str
    name: str
    brand: str
    line: str | None
    code: str | None
    hex: str
    type: str
    finish: str


class MatchItem(BaseModel):
    paint: PaintItem
    distance: float
    confidence: float
    quality: str
    quality_description: str


class MatchResponse(BaseModel):
    source_hex: str
    algorithm: str
    matches: list[MatchItem]


class ComponentItem(BaseModel):
    stable_id: str
    name: str
    brand: str
    hex: str
    percentage: float


class RecipeItem(BaseModel):
    components: list[ComponentItem]
    confidence: float
    distance: float
    is_practical: bool
    resulting_hex: str


class RecipeResponse(BaseModel):
    target_hex: str
    algorithm: str
    recipes: list[RecipeItem]


class BrandsResponse(BaseModel):
    brands: list[str]


app = FastAPI(
    title="Paint Matching API",
    version="1.0.0",
    description="Find cross-brand paint equivalents and mixing recipes for a color.",
)


@lru_cache(maxsize=1)
def _build_service() -> PaintMatchingService:
    return PaintMatchingService.from_path(settings=MatchingSettings.from_env())


def _resolve_source(service: PaintMatchingService, payload: SourceFields) -> CatalogPaint | ColorSample:
    try:
        return service.resolve_source(stable_id=payload.paint_id, hex=payload.hex)
    except (LookupError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"invalid_source: {exc}") from exc


def _paint_item(paint: CatalogPaint) -> PaintItem:
    return PaintItem(
        stable_id=paint.stable_id,
        name=paint.name,
        brand=paint.brand,
        line=paint.line,
        code=paint.code,
        hex=paint.hex,
        type=paint.type,
        finish=paint.finish,
    )


@app.get("/brands", response_model=BrandsResponse)
async def list_brands() -> BrandsResponse:
    service = await run_in_threadpool(_build_service)
    return BrandsResponse(brands=service.catalog.brands())


@app.post("/matches", response_model=MatchResponse)
async def find_matches(payload: MatchRequest) -> MatchResponse:
    service = await run_in_threadpool(_build_service)
    source = _resolve_source(service, payload)
    try:
        matches = await run_in_threadpool(
            service.find_similar_paints,
            source,
            set(payload.brands) if payload.brands else None,
            payload.algorithm,
            payload.require_same_type,
            payload.require_same_finish,
            payload.limit,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"failed_to_find_matches: {exc}") from exc

    return MatchResponse(
        source_hex=source.hex,
        algorithm=payload.algorithm.value,
        matches=[
            MatchItem(
                paint=_paint_item(match.paint),
                distance=float(match.distance),
                confidence=float(match.confidence),
                quality=match.quality.value,
                quality_description=match.quality_description,
            )
            for match in matches
        ],
    )


@app.post("/recipes", response_model=RecipeResponse)
async def find_recipes(payload: RecipeRequest) -> RecipeResponse:
    service = await run_in_threadpool(_build_service)
    source = _resolve_source(service, payload)
    try:
        recipes = await run_in_threadpool(
            service.find_mixing_recipes,
            source,
            set(payload.brands) if payload.brands else None,
            payload.algorithm,
            payload.require_same_type,
            payload.max_components,
            payload.min_percentage,
            payload.max_results,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"failed_to_find_recipes: {exc}") from exc

    return RecipeResponse(
        target_hex=source.hex,
        algorithm=payload.algorithm.value,
        recipes=[
            RecipeItem(
                components=[ComponentItem(**component.to_dict()) for component in recipe.components],
                confidence=float(recipe.confidence),
                distance=float(recipe.distance),
                is_practical=recipe.is_practical,
                resulting_hex=recipe.resulting_hex,
            )
            for recipe in recipes
        ],
    )
