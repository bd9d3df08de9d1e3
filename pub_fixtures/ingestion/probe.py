"""Quick probe of one day's TheSportsDB TV listing."""

from __future__ import annotations

import argparse
import logging
from collections import Counter
from datetime import date, datetime, timezone

from pub_fixtures.db import Base, SessionLocal, engine
from pub_fixtures.ingestion.channels import classify
from pub_fixtures.ingestion.filters import FixtureFilter
from pub_fixtures.ingestion.sportsdb_client import DayFetchFailure, fetch_tv_day
from pub_fixtures.settings import get_or_create_settings, snapshot_settings


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch one day of TV listings and report what would survive filtering.",
    )
    parser.add_argument(
        "--date",
        type=str,
        default="today",
        help="Date in YYYY-MM-DD format (default: today).",
    )
    return parser.parse_args()


def _resolve_date(raw: str) -> date:
    cleaned = raw.strip().lower()
    if cleaned == "today":
        return datetime.now(timezone.utc).date()
    try:
        return datetime.strptime(cleaned, "%Y-%m-%d").date()
    except ValueError as exc:
        raise SystemExit(f"Invalid --date {raw!r}; expected YYYY-MM-DD") from exc


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _parse_args()
    target_date = _resolve_date(args.date)

    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        config = snapshot_settings(get_or_create_settings(db))
    if not config.api_key:
        logging.error("THE_SPORTS_DB_API_KEY is not configured")
        raise SystemExit(1)

    payload = fetch_tv_day(
        target_date,
        config.api_key,
        base_url=config.base_url,
        timeout=config.request_timeout_seconds,
    )
    if isinstance(payload, DayFetchFailure):
        logging.error("SportsDB error: %s (status=%s)", payload.error, payload.status)
        raise SystemExit(1)

    channels = Counter(classify(entry.channel, entry.title).display_name for entry in payload)
    fixture_filter = FixtureFilter(keep_unparsed_start_times=config.keep_unparsed_start_times)
    candidates = fixture_filter.filter(
        payload,
        datetime.now(timezone.utc),
        config.allowed_countries,
        config.allowed_channels,
    )

    logging.info("Fetched %s listings for date=%s", len(payload), target_date)
    for name, count in channels.most_common(15):
        logging.info("  %-30s %s", name, count)
    logging.info("Would keep %s fixtures: %s", len(candidates), fixture_filter.stats)


if __name__ == "__main__":
    main()
