"""Runtime settings for the matching engine.

Values come from ``PAINT_MATCHING_*`` environment variables (a ``.env``
file in the working directory is honoured) and fall back to the defaults
below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping

from dotenv import load_dotenv

ENV_PREFIX = "PAINT_MATCHING_"


@dataclass(frozen=True)
class MatchingSettings:
    catalog_path: str | None = None

    # Similar paints
    default_limit: int = 50

    # Mixing recipes
    default_max_results: int = 6
    default_max_components: int = 3
    default_min_percentage: float = 5.0
    percentage_step: float = 5.0
    shortlist_size: int = 12
    workers: int = 1

    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MatchingSettings:
        if environ is None:
            load_dotenv()
            environ = os.environ

        overrides: dict[str, object] = {}
        for item in fields(cls):
            raw = environ.get(ENV_PREFIX + item.name.upper())
            if raw is None or not raw.strip():
                continue
            try:
                overrides[item.name] = _coerce(raw.strip(), item.type)
            except ValueError as exc:
                raise ValueError(f"invalid value for {ENV_PREFIX}{item.name.upper()}: {raw!r}") from exc
        return cls(**overrides)


def _coerce(raw: str, annotation: object) -> object:
    # Annotations are strings under postponed evaluation.
    kind = str(annotation)
    if kind == "int":
        return int(raw)
    if kind == "float":
        return float(raw)
    return raw
