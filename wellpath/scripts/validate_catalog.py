#!/usr/bin/env python3
"""Validate an instrument catalog file before deploying it.

Runs the same checks the assessment service runs at startup and reports
every problem found, not just the first.

Usage:
    python -m wellpath.scripts.validate_catalog
    python -m wellpath.scripts.validate_catalog path/to/instruments.json
    python -m wellpath.scripts.validate_catalog --list
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from wellpath.services.assessment_service.catalog import (
    InstrumentCatalog,
    find_catalog_problems,
    parse_instruments,
)
from wellpath.services.assessment_service.config import resolve_instruments_path
from wellpath.services.assessment_service.errors import CatalogConfigurationError

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """Set up argument parser."""
    parser = argparse.ArgumentParser(
        description="Validate a Wellpath instrument catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "path", nargs="?",
        help="Catalog JSON file (default: WELLPATH_INSTRUMENTS_PATH or the bundled catalog)"
    )
    parser.add_argument(
        "--list", action="store_true",
        help="Print each instrument with its question count and score bands"
    )
    return parser


def validate(path: Optional[str]) -> List[str]:
    """Return every problem in the catalog at path; empty when valid."""
    catalog_path = resolve_instruments_path(path)
    try:
        with open(catalog_path, encoding="utf-8") as f:
            data = json.load(f)
        instruments = parse_instruments(data)
    except (OSError, ValueError, CatalogConfigurationError) as e:
        return [str(e)]
    return find_catalog_problems(instruments)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = setup_parser()
    args = parser.parse_args(argv)
    catalog_path = resolve_instruments_path(args.path)

    problems = validate(args.path)
    if problems:
        print(f"{catalog_path}: {len(problems)} problem(s)")
        for problem in problems:
            print(f"  - {problem}")
        return 1

    catalog = InstrumentCatalog.from_file(args.path)
    print(f"{catalog_path}: OK ({len(catalog)} instruments)")

    if args.list:
        for instrument in catalog.list():
            bands = ", ".join(
                f"{r.label} {r.min}-{r.max}" for r in instrument.scoring.ranges
            )
            print(f"  {instrument.id:<8} {len(instrument.questions):>3} questions  [{bands}]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
