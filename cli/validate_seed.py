"""Validate the logic expressions stored in the seed option catalog.

Usage:
  python -m cli.validate_seed
  python -m cli.validate_seed --seed data/seed
  GOLFSCORE_SEED_PATH=/path/to/seed python -m cli.validate_seed --verbose

Exits 0 when every expression is valid, 1 otherwise.
"""

from __future__ import annotations

import argparse
import logging
import sys

from golfscore.game.catalog import default_seed_path
from golfscore.scoring.seed_validator import validate_seed


def run(seed_path: str) -> int:
    result = validate_seed(seed_path)
    if result.valid:
        print(
            f"Seed valid: {result.expressions_checked} expression(s) "
            f"in {result.files_checked} file(s)"
        )
        return 0

    print(f"Seed has {len(result.errors)} error(s):")
    for error in result.errors:
        print(f"  - {error}")
    return 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate seed option expressions")
    parser.add_argument("--seed", default=default_seed_path(), help="Seed directory (contains options/)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    sys.exit(run(args.seed))


if __name__ == "__main__":
    main()
