from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from .colorspace import LAB, RGB, hex_to_rgb, lab_to_rgb, rgb_to_hex, rgb_to_lab
from .distance import MatchingAlgorithm, MatchQuality

PERCENTAGE_TOLERANCE = 1e-6
MAX_COMPONENTS_LIMIT = 4


class RecipeValidationError(ValueError):
    pass


@dataclass(frozen=True)
class CatalogPaint:
    stable_id: str
    name: str
    brand: str
    hex: str
    red: int
    green: int
    blue: int
    lab_l: float
    lab_a: float
    lab_b: float
    type: str = "Unknown"
    finish: str = "Unknown"
    line: str | None = None
    line_variant: str | None = None
    code: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_hex(cls, stable_id: str, name: str, brand: str, hex: str, **extra: Any) -> CatalogPaint:
        red, green, blue = hex_to_rgb(hex)
        lab_l, lab_a, lab_b = rgb_to_lab(red, green, blue)
        return cls(
            stable_id=stable_id,
            name=name,
            brand=brand,
            hex=rgb_to_hex(red, green, blue),
            red=red,
            green=green,
            blue=blue,
            lab_l=lab_l,
            lab_a=lab_a,
            lab_b=lab_b,
            **extra,
        )

    @classmethod
    def from_lab(cls, stable_id: str, name: str, brand: str, lab: LAB, **extra: Any) -> CatalogPaint:
        red, green, blue = lab_to_rgb(*lab)
        return cls(
            stable_id=stable_id,
            name=name,
            brand=brand,
            hex=rgb_to_hex(red, green, blue),
            red=red,
            green=green,
            blue=blue,
            lab_l=float(lab[0]),
            lab_a=float(lab[1]),
            lab_b=float(lab[2]),
            **extra,
        )

    @property
    def lab(self) -> LAB:
        return (self.lab_l, self.lab_a, self.lab_b)

    @property
    def rgb(self) -> RGB:
        return (self.red, self.green, self.blue)

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "stable_id": self.stable_id,
            "name": self.name,
            "brand": self.brand,
            "line": self.line,
            "line_variant": self.line_variant,
            "code": self.code,
            "hex": self.hex,
            "rgb": list(self.rgb),
            "lab": [float(v) for v in self.lab],
            "type": self.type,
            "finish": self.finish,
            "tags": sorted(self.tags),
        }


@dataclass(frozen=True)
class ColorSample:
    """A query color that may not exist in the catalog (custom or mixed paint)."""

    lab: LAB
    hex: str
    rgb: RGB
    stable_id: str | None = None

    @classmethod
    def from_hex(cls, value: str, stable_id: str | None = None) -> ColorSample:
        return cls.from_rgb(hex_to_rgb(value), stable_id=stable_id)

    @classmethod
    def from_rgb(cls, rgb: RGB, stable_id: str | None = None) -> ColorSample:
        red, green, blue = (int(channel) for channel in rgb)
        for channel in (red, green, blue):
            if not 0 <= channel <= 255:
                raise ValueError(f"rgb channels must be within 0-255, got {rgb}")
        return cls(
            lab=rgb_to_lab(red, green, blue),
            hex=rgb_to_hex(red, green, blue),
            rgb=(red, green, blue),
            stable_id=stable_id,
        )

    @classmethod
    def from_lab(cls, lab: LAB, stable_id: str | None = None) -> ColorSample:
        rgb = lab_to_rgb(*lab)
        return cls(
            lab=(float(lab[0]), float(lab[1]), float(lab[2])),
            hex=rgb_to_hex(*rgb),
            rgb=rgb,
            stable_id=stable_id,
        )

    @classmethod
    def from_paint(cls, paint: CatalogPaint) -> ColorSample:
        return cls(lab=paint.lab, hex=paint.hex, rgb=paint.rgb, stable_id=paint.stable_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hex": self.hex,
            "rgb": list(self.rgb),
            "lab": [float(v) for v in self.lab],
            "stable_id": self.stable_id,
        }


@dataclass(frozen=True)
class PaintFilters:
    brands: frozenset[str] | None = None
    require_same_type: bool = False
    require_same_finish: bool = False

    @classmethod
    def create(
        cls,
        brands: set[str] | frozenset[str] | list[str] | None = None,
        require_same_type: bool = False,
        require_same_finish: bool = False,
    ) -> PaintFilters:
        return cls(
            brands=frozenset(brands) if brands else None,
            require_same_type=require_same_type,
            require_same_finish=require_same_finish,
        )


@dataclass(frozen=True)
class PaintMatch:
    paint: CatalogPaint
    distance: float
    confidence: float
    algorithm: MatchingAlgorithm
    quality: MatchQuality

    @property
    def is_excellent_match(self) -> bool:
        return self.quality is MatchQuality.EXCELLENT

    @property
    def is_good_match(self) -> bool:
        return self.quality in (MatchQuality.EXCELLENT, MatchQuality.GOOD)

    @property
    def quality_description(self) -> str:
        return self.quality.description

    def to_dict(self) -> dict[str, Any]:
        return {
            "paint": self.paint.to_dict(),
            "distance": float(self.distance),
            "confidence": float(self.confidence),
            "algorithm": self.algorithm.value,
            "quality": self.quality.value,
            "quality_description": self.quality_description,
        }


@dataclass(frozen=True)
class MixComponent:
    stable_id: str
    name: str
    brand: str
    hex: str
    percentage: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.percentage) or not 0.0 < self.percentage <= 100.0:
            raise RecipeValidationError(
                f"component percentage must be within (0, 100], got {self.percentage}"
            )

    @classmethod
    def from_paint(cls, paint: CatalogPaint, percentage: float) -> MixComponent:
        return cls(
            stable_id=paint.stable_id,
            name=paint.name,
            brand=paint.brand,
            hex=paint.hex,
            percentage=float(percentage),
        )

    @property
    def percentage_formatted(self) -> str:
        if float(self.percentage).is_integer():
            return f"{int(self.percentage)}%"
        return f"{self.percentage:.1f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "stable_id": self.stable_id,
            "name": self.name,
            "brand": self.brand,
            "hex": self.hex,
            "percentage": float(self.percentage),
        }


@dataclass(frozen=True)
class PaintMixRecipe:
    components: tuple[MixComponent, ...]
    confidence: float
    distance: float
    algorithm: MatchingAlgorithm
    is_practical: bool
    resulting_hex: str
    resulting_lab: LAB

    def __post_init__(self) -> None:
        validate_components(self.components)

    @property
    def component_ids(self) -> frozenset[str]:
        return frozenset(component.stable_id for component in self.components)

    def to_dict(self) -> dict[str, Any]:
        return {
            "components": [component.to_dict() for component in self.components],
            "confidence": float(self.confidence),
            "distance": float(self.distance),
            "algorithm": self.algorithm.value,
            "is_practical": self.is_practical,
            "resulting_hex": self.resulting_hex,
            "resulting_lab": [float(v) for v in self.resulting_lab],
        }


def validate_components(components: tuple[MixComponent, ...] | list[MixComponent]) -> None:
    if not 2 <= len(components) <= MAX_COMPONENTS_LIMIT:
        raise RecipeValidationError(
            f"a recipe needs 2-{MAX_COMPONENTS_LIMIT} components, got {len(components)}"
        )

    ids = [component.stable_id for component in components]
    if len(set(ids)) != len(ids):
        raise RecipeValidationError(f"recipe repeats a paint: {ids}")

    total = sum(component.percentage for component in components)
    if abs(total - 100.0) > PERCENTAGE_TOLERANCE:
        raise RecipeValidationError(f"component percentages must sum to 100, got {total}")
