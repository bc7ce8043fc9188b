from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy import inspect

from bootstrap import (
    MIGRATION_MARKER_KEY,
    clear_bootstrap_marker,
    has_bootstrap_marker,
    run_bootstrap_migrations,
    set_bootstrap_marker,
)
from database import Base, engine

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create tables and seed symposium data.")
    parser.add_argument("--force", action="store_true", help="Bootstrap even when the marker is already set.")
    parser.add_argument(
        "--reset-marker",
        action="store_true",
        help=f"Remove `{MIGRATION_MARKER_KEY}` so the next run bootstraps again.",
    )
    parser.add_argument("--check", action="store_true", help="Report missing tables and marker state, then exit.")
    return parser.parse_args(argv)


def missing_tables() -> list:
    existing = set(inspect(engine).get_table_names())
    return [table.name for table in Base.metadata.sorted_tables if table.name not in existing]


def main(argv=None) -> int:
    args = parse_args(argv)

    if args.check:
        missing = missing_tables()
        if missing:
            logger.info("Missing tables: %s", ", ".join(missing))
        else:
            logger.info("All tables present.")
        marker = "system_config" not in missing and has_bootstrap_marker()
        logger.info("Bootstrap marker present: %s", marker)
        return 1 if missing else 0

    if args.reset_marker:
        if "system_config" not in missing_tables() and clear_bootstrap_marker():
            logger.info("Removed bootstrap marker.")
        else:
            logger.info("Bootstrap marker was not set.")
        return 0

    if not args.force and "system_config" not in missing_tables() and has_bootstrap_marker():
        logger.info("Already bootstrapped; pass --force to run again.")
        return 0

    run_bootstrap_migrations()
    set_bootstrap_marker()
    logger.info("Bootstrap finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
