"""Identity, dedup and policy filtering for raw TV listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from pub_fixtures.ingestion.channels import classify
from pub_fixtures.ingestion.schema import FixtureCandidate, RawBroadcastEntry

logger = logging.getLogger(__name__)


@dataclass
class FilterStats:
    seen: int = 0
    wrong_country: int = 0
    duplicates: int = 0
    past: int = 0
    unparsed_time: int = 0
    disallowed_channel: int = 0
    accepted: int = 0


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_iso(value: str) -> datetime | None:
    cleaned = value.strip().replace(" ", "T", 1)
    if not cleaned:
        return None
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return _ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None


def parse_start_time(
    date_event: str | None,
    time_value: str | None,
    timestamp: str | None,
) -> datetime | None:
    """Combined timestamp first, then date + time, then the bare date."""
    if timestamp:
        parsed = _parse_iso(timestamp)
        if parsed is not None:
            return parsed
    if date_event and time_value:
        parsed = _parse_iso(f"{date_event.strip()}T{time_value.strip()}")
        if parsed is not None:
            return parsed
    if date_event:
        return _parse_iso(date_event)
    return None


def resolve_event_id(entry: RawBroadcastEntry) -> tuple[str, bool]:
    if entry.event_id:
        return entry.event_id, False
    if entry.id:
        return entry.id, False
    return f"{entry.title}-{entry.date_event}-{entry.time}", True


def composite_identity(event_id: str, raw_channel: str | None, raw_country: str | None) -> str:
    return f"{event_id}-{raw_channel or ''}-{raw_country or ''}"


class FixtureFilter:
    """Turns raw listings into fixture candidates for a single refresh run.

    Holds the set of composite identities already emitted, so the same
    instance must be used for every day of one run and never shared
    between runs.
    """

    def __init__(self, *, keep_unparsed_start_times: bool = True) -> None:
        self.keep_unparsed_start_times = keep_unparsed_start_times
        self.stats = FilterStats()
        self._seen: set[str] = set()

    def reset(self) -> None:
        self.stats = FilterStats()
        self._seen.clear()

    def filter(
        self,
        entries: Iterable[RawBroadcastEntry],
        now: datetime,
        allowed_countries: frozenset[str] | set[str],
        allowed_channels: frozenset[str] | set[str],
    ) -> list[FixtureCandidate]:
        now_utc = _ensure_utc(now)
        candidates: list[FixtureCandidate] = []

        for entry in entries:
            self.stats.seen += 1

            broadcast_country = (entry.country or "").strip()
            if broadcast_country not in allowed_countries:
                self.stats.wrong_country += 1
                continue

            start_time = parse_start_time(entry.date_event, entry.time, entry.timestamp)

            event_id, synthetic = resolve_event_id(entry)
            external_id = composite_identity(event_id, entry.channel, entry.country)
            if external_id in self._seen:
                self.stats.duplicates += 1
                continue

            if start_time is None:
                self.stats.unparsed_time += 1
                if not self.keep_unparsed_start_times:
                    logger.info("Dropped listing with unparseable start external_id=%s", external_id)
                    continue
                logger.warning(
                    "Unparseable start time external_id=%s date=%s time=%s timestamp=%s; "
                    "keeping with epoch fallback",
                    external_id,
                    entry.date_event,
                    entry.time,
                    entry.timestamp,
                )
            elif start_time < now_utc:
                self.stats.past += 1
                continue

            # Past listings never claim an identity; channel rejects do.
            self._seen.add(external_id)

            channel = classify(entry.channel, entry.title)
            if channel.display_name not in allowed_channels:
                self.stats.disallowed_channel += 1
                continue

            thumbnail = (entry.thumbnail or "").strip()
            candidates.append(
                FixtureCandidate(
                    external_id=external_id,
                    event_id=event_id,
                    synthetic_event_id=synthetic,
                    name=entry.title,
                    image_url=thumbnail or None,
                    start_time_utc=start_time,
                    channel=channel,
                    broadcast_country=broadcast_country,
                    sport=(entry.sport or "").strip() or None,
                    league=(entry.league or "").strip() or None,
                )
            )
            self.stats.accepted += 1

        return candidates
