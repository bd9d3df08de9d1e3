"""CLI entrypoint for scheduled fixture refreshes."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from datetime import datetime

from pub_fixtures.db import Base, SessionLocal, engine
from pub_fixtures.ingestion.sync import refresh_fixtures
from pub_fixtures.settings import PipelineConfig, get_or_create_settings, snapshot_settings


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Refresh upcoming TV fixtures from TheSportsDB.",
    )
    parser.add_argument(
        "--days",
        type=int,
        help="Override the number of days to fetch, starting today.",
    )
    parser.add_argument(
        "--max",
        type=int,
        dest="max_fixtures",
        help="Override the maximum number of fixtures to store.",
    )
    parser.add_argument(
        "--start",
        type=str,
        help="First day of the window in YYYY-MM-DD format (default: today, UTC).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the whole pipeline but do not write to the database.",
    )
    return parser.parse_args()


def _apply_overrides(config: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    overrides = {}
    if args.days is not None:
        overrides["days_to_fetch"] = args.days
    if args.max_fixtures is not None:
        overrides["max_fixtures"] = args.max_fixtures
    if not overrides:
        return config
    return dataclasses.replace(config, **overrides)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    args = _parse_args()
    start_day = datetime.strptime(args.start, "%Y-%m-%d").date() if args.start else None

    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        config = _apply_overrides(snapshot_settings(get_or_create_settings(db)), args)

    result = refresh_fixtures(config, start_day=start_day, dry_run=args.dry_run)
    if not result.ok:
        logging.error("Refresh failed: state=%s error=%s", result.state.value, result.error)
        raise SystemExit(1)

    logging.info(
        "Done: count=%s days_fetched=%s days_failed=%s candidates=%s lookups=%s lookups_failed=%s",
        result.count,
        len(result.days_fetched),
        len(result.days_failed),
        result.candidates,
        result.lookups,
        result.lookups_failed,
    )


if __name__ == "__main__":
    main()
