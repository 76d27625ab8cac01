from __future__ import annotations

import csv
import difflib
import json
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .colorspace import ColorFormatError, hex_to_rgb, lab_to_rgb, rgb_to_hex, rgb_to_lab
from .models import CatalogPaint

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".json")
DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "sample_catalog.json"

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


class CatalogValidationError(ValueError):
    pass


class CatalogSnapshot:
    """Read-only view over a fixed list of catalog paints.

    Queries receive a snapshot instead of reaching for shared state; a
    reloaded catalog is a new snapshot.
    """

    def __init__(self, paints: Iterable[CatalogPaint]) -> None:
        self._paints = tuple(paints)
        self._by_id: dict[str, CatalogPaint] = {}
        for paint in self._paints:
            self._by_id.setdefault(paint.stable_id, paint)

    def __len__(self) -> int:
        return len(self._paints)

    def __iter__(self) -> Iterator[CatalogPaint]:
        return iter(self._paints)

    def all_paints(self) -> tuple[CatalogPaint, ...]:
        return self._paints

    def brands(self) -> list[str]:
        return sorted({paint.brand for paint in self._paints})

    def find_by_stable_id(self, stable_id: str) -> CatalogPaint | None:
        return self._by_id.get(stable_id)

    def filter_by_brands(self, brands: Iterable[str] | None) -> CatalogSnapshot:
        allowed = set(brands or ())
        if not allowed:
            return self
        return CatalogSnapshot(paint for paint in self._paints if paint.brand in allowed)

    def search_by_name(self, query: str, limit: int = 10, cutoff: float = 0.6) -> list[CatalogPaint]:
        """Fuzzy lookup on paint name, "brand name" and code.

        Substring hits rank first, then close spellings above ``cutoff``.
        """
        needle = query.strip().lower()
        if not needle or limit <= 0:
            return []

        scored: list[tuple[float, str, CatalogPaint]] = []
        for paint in self._paints:
            haystacks = [paint.name.lower(), paint.display_name.lower()]
            if paint.code:
                haystacks.append(paint.code.lower())

            if any(needle in text for text in haystacks):
                score = 2.0 if paint.name.lower() == needle else 1.0 + 1.0 / (1 + len(paint.name))
            else:
                score = max(difflib.SequenceMatcher(None, needle, text).ratio() for text in haystacks)
                if score < cutoff:
                    continue
            scored.append((score, paint.stable_id, paint))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [paint for _, _, paint in scored[:limit]]


@dataclass(frozen=True)
class CatalogLoadResult:
    paints: list[CatalogPaint]
    errors: list[str]

    @property
    def has_any_paints(self) -> bool:
        return bool(self.paints)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def is_full_success(self) -> bool:
        return bool(self.paints) and not self.errors

    @property
    def is_complete_failure(self) -> bool:
        return not self.paints

    def snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(self.paints)


def load_catalog(path_like: str | Path | None = None) -> CatalogLoadResult:
    """Load a catalog file, or every catalog file in a directory.

    A single file must load cleanly. In a directory, files are read in name
    order and a broken file is recorded in ``errors`` without stopping the
    rest; the file stem is the default brand for its records.
    """
    path = Path(path_like) if path_like is not None else DEFAULT_CATALOG_PATH
    if not path.exists():
        raise CatalogValidationError(f"catalog path does not exist: {path}")

    if path.is_file():
        paints, errors = _merge_unique([], _load_catalog_file(path))
        logger.info("loaded %d paints from %s", len(paints), path)
        return CatalogLoadResult(paints=paints, errors=errors)

    files = sorted(p for p in path.iterdir() if p.suffix.lower() in SUPPORTED_SUFFIXES)
    if not files:
        logger.warning("no catalog files found in %s", path)
        return CatalogLoadResult(paints=[], errors=[f"no catalog files found in {path}"])

    paints: list[CatalogPaint] = []
    errors: list[str] = []
    for file_path in files:
        try:
            loaded = _load_catalog_file(file_path, default_brand=file_path.stem)
        except (OSError, CatalogValidationError, json.JSONDecodeError, csv.Error) as exc:
            message = f"failed to load {file_path.name}: {exc}"
            logger.warning(message)
            errors.append(message)
            continue
        paints, duplicate_errors = _merge_unique(paints, loaded)
        errors.extend(duplicate_errors)
        logger.debug("loaded %d paints from %s", len(loaded), file_path.name)

    if not paints:
        logger.error("failed to load any paints, all %d files failed", len(files))
    elif errors:
        logger.warning("loaded %d paints with %d errors", len(paints), len(errors))
    else:
        logger.info("loaded %d paints from %d files", len(paints), len(files))
    return CatalogLoadResult(paints=paints, errors=errors)


def build_catalog_paint(
    raw_entry: dict[str, object],
    location: str,
    default_brand: str | None = None,
) -> CatalogPaint:
    normalized: dict[str, object] = {
        str(key).strip().lower(): value
        for key, value in raw_entry.items()
        if key is not None
    }

    name = _as_clean_str(normalized.get("name"))
    if not name:
        raise CatalogValidationError(f"{location}: missing required field 'name'")

    brand = _as_clean_str(normalized.get("brand")) or default_brand
    if not brand:
        raise CatalogValidationError(f"{location}: missing required field 'brand'")

    line = _as_clean_str(normalized.get("line"))
    extra = {
        "line": line,
        "line_variant": _as_clean_str(normalized.get("line_variant")),
        "code": _as_clean_str(normalized.get("code")),
        "type": _as_clean_str(normalized.get("type")) or "Unknown",
        "finish": _as_clean_str(normalized.get("finish")) or "Unknown",
        "tags": _parse_tags(normalized.get("tags")),
    }
    stable_id = _as_clean_str(normalized.get("stable_id")) or _slugify(brand, line, name)

    hex_value = _as_clean_str(normalized.get("hex"))
    if hex_value:
        try:
            rgb = hex_to_rgb(hex_value)
        except ColorFormatError as exc:
            raise CatalogValidationError(f"{location}: {exc}") from exc
        lab = _lab_from_record(normalized, location) or rgb_to_lab(*rgb)
    else:
        lab = _lab_from_record(normalized, location)
        if lab is None:
            raise CatalogValidationError(
                f"{location}: provide either 'hex' or numeric 'l','a','b' values"
            )
        rgb = lab_to_rgb(*lab)

    return CatalogPaint(
        stable_id=stable_id,
        name=name,
        brand=brand,
        hex=rgb_to_hex(*rgb),
        red=rgb[0],
        green=rgb[1],
        blue=rgb[2],
        lab_l=lab[0],
        lab_a=lab[1],
        lab_b=lab[2],
        **extra,
    )


def _load_catalog_file(path: Path, default_brand: str | None = None) -> list[CatalogPaint]:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        entries = _load_csv(path, default_brand)
    elif suffix == ".json":
        entries = _load_json(path, default_brand)
    else:
        raise CatalogValidationError(
            f"unsupported catalog format '{path.suffix}'. Use .csv or .json"
        )
    return entries


def _load_csv(path: Path, default_brand: str | None) -> list[CatalogPaint]:
    with path.open("r", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise CatalogValidationError(f"catalog csv has no header: {path}")

        return [
            build_catalog_paint(row, f"{path}:{idx}", default_brand)
            for idx, row in enumerate(reader, start=2)
        ]


def _load_json(path: Path, default_brand: str | None) -> list[CatalogPaint]:
    payload = json.loads(path.read_text(encoding="utf-8"))

    if isinstance(payload, dict):
        if "paints" not in payload or not isinstance(payload["paints"], list):
            raise CatalogValidationError(
                f"json catalog at {path} must be a list or include a 'paints' list"
            )
        records = payload["paints"]
        default_brand = _as_clean_str(payload.get("brand")) or default_brand
    elif isinstance(payload, list):
        records = payload
    else:
        raise CatalogValidationError(
            f"json catalog at {path} must be a list or object with 'paints'"
        )

    entries: list[CatalogPaint] = []
    for idx, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise CatalogValidationError(
                f"invalid catalog entry at {path}:{idx} (expected object)"
            )
        entries.append(build_catalog_paint(record, f"{path}:{idx}", default_brand))
    return entries


def _merge_unique(
    existing: list[CatalogPaint], incoming: list[CatalogPaint]
) -> tuple[list[CatalogPaint], list[str]]:
    seen = {paint.stable_id for paint in existing}
    merged = list(existing)
    errors: list[str] = []
    for paint in incoming:
        if paint.stable_id in seen:
            errors.append(f"duplicate stable_id '{paint.stable_id}' ignored ({paint.display_name})")
            continue
        seen.add(paint.stable_id)
        merged.append(paint)
    return merged, errors


def _lab_from_record(normalized: dict[str, object], location: str) -> tuple[float, float, float] | None:
    l_raw = normalized.get("l")
    a_raw = normalized.get("a")
    b_raw = normalized.get("b")
    if all(_as_clean_str(value) is None for value in (l_raw, a_raw, b_raw)):
        return None

    try:
        lab = (float(l_raw), float(a_raw), float(b_raw))
    except (TypeError, ValueError) as exc:
        raise CatalogValidationError(
            f"{location}: invalid Lab values, expected numeric l/a/b"
        ) from exc
    if not all(math.isfinite(value) for value in lab):
        raise CatalogValidationError(f"{location}: Lab values must be finite, got {lab}")
    return lab


def _parse_tags(value: object) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items = value.replace(";", ",").split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = [str(item) for item in value]
    else:
        items = [str(value)]
    return frozenset(item.strip() for item in items if item.strip())


def _slugify(*parts: str | None) -> str:
    text = "-".join(part for part in parts if part)
    return _SLUG_PATTERN.sub("-", text.lower()).strip("-")


def _as_clean_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None
