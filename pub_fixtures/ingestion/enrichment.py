"""Fill league/sport/country from the per-event lookup."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from pub_fixtures.ingestion.schema import EnrichedFixture, EventDetails, FixtureCandidate
from pub_fixtures.ingestion.sportsdb_client import LookupFailure, lookup_event

logger = logging.getLogger(__name__)
DEFAULT_LOOKUP_DELAY_SECONDS = 0.25


@dataclass
class EnrichmentOutcome:
    fixtures: list[EnrichedFixture]
    looked_up: int = 0
    failed: list[LookupFailure] = field(default_factory=list)


def distinct_event_ids(candidates: Iterable[FixtureCandidate]) -> list[str]:
    """Real upstream event ids in first-seen order; synthetic ids are skipped."""
    ids: list[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        if candidate.synthetic_event_id or candidate.event_id in seen:
            continue
        seen.add(candidate.event_id)
        ids.append(candidate.event_id)
    return ids


def merge_event_details(
    candidates: Iterable[FixtureCandidate],
    details_by_event: Mapping[str, EventDetails],
) -> list[EnrichedFixture]:
    """Overlay lookup values onto candidates. Null lookup values never overwrite."""
    merged: list[EnrichedFixture] = []
    for candidate in candidates:
        values = {name: getattr(candidate, name) for name in FixtureCandidate.model_fields}
        values["country"] = getattr(candidate, "country", None)
        details = details_by_event.get(candidate.event_id)
        if details is not None:
            if details.league is not None:
                values["league"] = details.league
            if details.sport is not None:
                values["sport"] = details.sport
            if details.country is not None:
                values["country"] = details.country
        merged.append(EnrichedFixture(**values))
    return merged


def enrich_fixtures(
    candidates: list[FixtureCandidate],
    api_key: str,
    *,
    base_url: str | None = None,
    timeout: float | None = None,
    delay_seconds: float = DEFAULT_LOOKUP_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> EnrichmentOutcome:
    """Look up each distinct event once, sequentially, then merge."""

    event_ids = distinct_event_ids(candidates)
    details_by_event: dict[str, EventDetails] = {}
    failed: list[LookupFailure] = []

    logger.info(
        "Enriching %s fixtures via %s event lookups",
        len(candidates),
        len(event_ids),
    )
    for index, event_id in enumerate(event_ids):
        if index and delay_seconds:
            sleep(delay_seconds)
        result = lookup_event(event_id, api_key, base_url=base_url, timeout=timeout)
        if isinstance(result, LookupFailure):
            failed.append(result)
            continue
        details_by_event[event_id] = result

    return EnrichmentOutcome(
        fixtures=merge_event_details(candidates, details_by_event),
        looked_up=len(event_ids),
        failed=failed,
    )
