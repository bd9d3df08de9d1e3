"""Refresh upcoming fixtures from TheSportsDB into the local database."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable

from pub_fixtures.db import SessionLocal
from pub_fixtures.errors import ConfigurationError, PipelineError, RefreshInProgressError, StorageError
from pub_fixtures.ingestion.enrichment import enrich_fixtures
from pub_fixtures.ingestion.filters import FilterStats, FixtureFilter
from pub_fixtures.ingestion.ranking import rank_fixtures
from pub_fixtures.ingestion.schema import RawBroadcastEntry
from pub_fixtures.ingestion.sportsdb_client import DayFetchFailure, fetch_tv_day, iter_window
from pub_fixtures.ingestion.store import replace_all
from pub_fixtures.settings import PipelineConfig

logger = logging.getLogger(__name__)

# Only one refresh may touch the fixture table at a time in this process.
_RUN_LOCK = threading.Lock()


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FILTERING = "filtering"
    ENRICHING = "enriching"
    RANKING = "ranking"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RefreshResult:
    state: PipelineState = PipelineState.IDLE
    count: int = 0
    timestamp: str | None = None
    days_fetched: list[str] = field(default_factory=list)
    days_failed: list[str] = field(default_factory=list)
    entries_seen: int = 0
    candidates: int = 0
    lookups: int = 0
    lookups_failed: int = 0
    filter_stats: FilterStats | None = None
    dry_run: bool = False
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE


def _transition(result: RefreshResult, state: PipelineState) -> None:
    logger.debug("Refresh state %s -> %s", result.state.value, state.value)
    result.state = state


def _fail(result: RefreshResult, exc: PipelineError) -> RefreshResult:
    result.error = exc
    result.timestamp = datetime.now(timezone.utc).isoformat()
    _transition(result, PipelineState.FAILED)
    return result


def _fetch_window(
    config: PipelineConfig,
    start_day: date,
    result: RefreshResult,
    sleep: Callable[[float], None],
) -> list[RawBroadcastEntry]:
    days = list(iter_window(start_day, config.days_to_fetch))
    entries: list[RawBroadcastEntry] = []

    for index, day in enumerate(days):
        is_last = index == len(days) - 1
        logger.info("Fetching TV listings day=%s (%s/%s)", day, index + 1, len(days))
        payload = fetch_tv_day(
            day,
            config.api_key,
            base_url=config.base_url,
            timeout=config.request_timeout_seconds,
        )
        if isinstance(payload, DayFetchFailure):
            result.days_failed.append(day.isoformat())
            logger.error(
                "Skipping day=%s status=%s error=%s",
                day,
                payload.status,
                payload.error,
            )
            if not is_last and config.day_delay_seconds:
                sleep(config.day_delay_seconds)
            continue

        result.days_fetched.append(day.isoformat())
        entries.extend(payload)
        logger.info("Fetched %s listings for day=%s", len(payload), day)
        if index < config.polite_days and not is_last and config.day_delay_seconds:
            sleep(config.day_delay_seconds)

    return entries


def _run(
    config: PipelineConfig,
    *,
    session_factory,
    now: datetime,
    start_day: date,
    sleep: Callable[[float], None],
    dry_run: bool,
) -> RefreshResult:
    result = RefreshResult(dry_run=dry_run)

    try:
        config.validate()
    except ConfigurationError as exc:
        logger.error("Refresh aborted before fetching: %s", exc)
        return _fail(result, exc)

    _transition(result, PipelineState.FETCHING)
    entries = _fetch_window(config, start_day, result, sleep)
    result.entries_seen = len(entries)

    _transition(result, PipelineState.FILTERING)
    fixture_filter = FixtureFilter(keep_unparsed_start_times=config.keep_unparsed_start_times)
    candidates = fixture_filter.filter(
        entries,
        now,
        config.allowed_countries,
        config.allowed_channels,
    )
    result.filter_stats = fixture_filter.stats
    result.candidates = len(candidates)
    logger.info(
        "Filtered listings: seen=%s accepted=%s wrong_country=%s duplicates=%s past=%s "
        "disallowed_channel=%s unparsed_time=%s",
        fixture_filter.stats.seen,
        fixture_filter.stats.accepted,
        fixture_filter.stats.wrong_country,
        fixture_filter.stats.duplicates,
        fixture_filter.stats.past,
        fixture_filter.stats.disallowed_channel,
        fixture_filter.stats.unparsed_time,
    )

    _transition(result, PipelineState.ENRICHING)
    outcome = enrich_fixtures(
        candidates,
        config.api_key,
        base_url=config.base_url,
        timeout=config.request_timeout_seconds,
        delay_seconds=config.lookup_delay_seconds,
        sleep=sleep,
    )
    result.lookups = outcome.looked_up
    result.lookups_failed = len(outcome.failed)
    if outcome.failed:
        logger.warning(
            "Event lookups without details: %s/%s (event_ids=%s)",
            len(outcome.failed),
            outcome.looked_up,
            ",".join(failure.event_id for failure in outcome.failed),
        )

    _transition(result, PipelineState.RANKING)
    ranked = rank_fixtures(outcome.fixtures, config.max_fixtures)

    _transition(result, PipelineState.PERSISTING)
    if dry_run:
        result.count = len(ranked)
        logger.info("Dry run: would store %s fixtures", len(ranked))
    else:
        try:
            with session_factory() as db:
                result.count = replace_all(db, ranked)
        except StorageError as exc:
            logger.error("Refresh failed while persisting: %s", exc)
            return _fail(result, exc)

    result.timestamp = datetime.now(timezone.utc).isoformat()
    _transition(result, PipelineState.DONE)
    return result


def refresh_fixtures(
    config: PipelineConfig,
    *,
    session_factory=SessionLocal,
    now: datetime | None = None,
    start_day: date | None = None,
    sleep: Callable[[float], None] = time.sleep,
    dry_run: bool = False,
) -> RefreshResult:
    """Fetch, filter, enrich, rank and store the upcoming fixture window.

    Recoverable upstream failures only reduce the count. The result is
    FAILED for configuration or storage errors, or when another refresh
    is already running.
    """

    if not _RUN_LOCK.acquire(blocking=False):
        logger.warning("Refresh requested while another refresh is running")
        return _fail(RefreshResult(dry_run=dry_run), RefreshInProgressError("refresh already running"))

    try:
        run_now = now or datetime.now(timezone.utc)
        if run_now.tzinfo is None:
            run_now = run_now.replace(tzinfo=timezone.utc)
        run_day = start_day or run_now.astimezone(timezone.utc).date()
        logger.info("Starting fixtures refresh day=%s days=%s", run_day, config.days_to_fetch)
        result = _run(
            config,
            session_factory=session_factory,
            now=run_now,
            start_day=run_day,
            sleep=sleep,
            dry_run=dry_run,
        )
    finally:
        _RUN_LOCK.release()

    if result.ok:
        logger.info(
            "Fixtures refresh done: count=%s days_fetched=%s days_failed=%s lookups_failed=%s",
            result.count,
            len(result.days_fetched),
            len(result.days_failed),
            result.lookups_failed,
        )
    return result
