from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .config import MatchingSettings
from .distance import MatchingAlgorithm
from .models import CatalogPaint, ColorSample
from .service import PaintMatchingService


def _add_source_arguments(parser: argparse.ArgumentParser, role: str) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--paint-id", help=f"Stable id of the catalog paint to use as {role}.")
    source.add_argument("--hex", help=f"Custom color to use as {role}, as '#RRGGBB'.")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--brand",
        action="append",
        default=None,
        help="Restrict results to this brand. Repeat for several brands.",
    )
    parser.add_argument(
        "--algorithm",
        choices=[item.value for item in MatchingAlgorithm],
        default=MatchingAlgorithm.CIEDE2000.value,
        help="Color difference formula (default: ciede2000).",
    )
    parser.add_argument(
        "--same-type",
        action="store_true",
        help="Only use paints of a compatible type (Base and Layer count as compatible).",
    )
    parser.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paint-matching",
        description="Find cross-brand paint equivalents and mixing recipes.",
    )
    parser.add_argument(
        "--catalog",
        default=None,
        help="Catalog file (.csv/.json) or directory. Defaults to the bundled sample catalog.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    match = subparsers.add_parser("match", help="Rank catalog paints closest to a color.")
    _add_source_arguments(match, "the source")
    _add_common_arguments(match)
    match.add_argument(
        "--same-finish",
        action="store_true",
        help="Only use paints with the same finish as the source.",
    )
    match.add_argument("--limit", type=int, default=None, help="Maximum matches to return.")

    mix = subparsers.add_parser("mix", help="Search mixing recipes that approximate a color.")
    _add_source_arguments(mix, "the target")
    _add_common_arguments(mix)
    mix.add_argument(
        "--max-components",
        type=int,
        default=None,
        help="Maximum number of paints per recipe (2-4).",
    )
    mix.add_argument(
        "--min-percentage",
        type=float,
        default=None,
        help="Smallest share any paint may have in a recipe.",
    )
    mix.add_argument("--max-results", type=int, default=None, help="Maximum recipes to return.")

    subparsers.add_parser("brands", help="List the brands present in the catalog.")

    return parser


def _write_payload(payload: object, out: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if out:
        output_path = Path(out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = MatchingSettings.from_env()
        level = (args.log_level or settings.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {level!r}")
        logging.basicConfig(
            level=level,
            format="%(levelname)s %(name)s: %(message)s",
        )
        service = PaintMatchingService.from_path(args.catalog, settings=settings)
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "brands":
        _write_payload({"brands": service.catalog.brands()}, None)
        return

    try:
        source = service.resolve_source(stable_id=args.paint_id, hex=args.hex)
    except (LookupError, ValueError) as exc:
        parser.error(str(exc))

    brands = set(args.brand) if args.brand else None

    try:
        _run_query(service, args, source, brands)
    except ValueError as exc:
        parser.error(str(exc))


def _run_query(
    service: PaintMatchingService,
    args: argparse.Namespace,
    source: CatalogPaint | ColorSample,
    brands: set[str] | None,
) -> None:
    if args.command == "match":
        matches = service.find_similar_paints(
            source,
            target_brands=brands,
            algorithm=MatchingAlgorithm(args.algorithm),
            require_same_type=args.same_type,
            require_same_finish=args.same_finish,
            limit=args.limit,
        )
        payload = {
            "source": source.to_dict(),
            "matches": [match.to_dict() for match in matches],
        }
        _write_payload(payload, args.out)
        return

    if args.command == "mix":
        recipes = service.find_mixing_recipes(
            source,
            source_brands=brands,
            algorithm=MatchingAlgorithm(args.algorithm),
            require_same_type=args.same_type,
            max_components=args.max_components,
            min_percentage=args.min_percentage,
            max_results=args.max_results,
        )
        payload = {
            "target": source.to_dict(),
            "recipes": [recipe.to_dict() for recipe in recipes],
        }
        _write_payload(payload, args.out)


if __name__ == "__main__":
    main()
