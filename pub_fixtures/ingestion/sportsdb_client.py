"""TheSportsDB V2 HTTP client for TV listings and event lookups.

Both calls return a value on failure instead of raising, so callers decide
whether to skip the day/event. Nothing here retries.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterator

import requests
from pydantic import ValidationError

from pub_fixtures.ingestion.schema import EventDetails, RawBroadcastEntry

logger = logging.getLogger(__name__)
SPORTSDB_BASE_URL = os.getenv(
    "SPORTSDB_BASE_URL", "https://www.thesportsdb.com/api/v2/json"
).rstrip("/")
DEFAULT_CONNECT_TIMEOUT_SECONDS = 5
DEFAULT_READ_TIMEOUT_SECONDS = 15
DEFAULT_USER_AGENT = "pub-fixtures/1.0"
MAX_BODY_SNIPPET = 300


@dataclass(frozen=True)
class DayFetchFailure:
    day: date
    error: str
    status: int | None = None
    body: str | None = None


@dataclass(frozen=True)
class LookupFailure:
    event_id: str
    error: str
    status: int | None = None


def iter_window(start: date, days: int) -> Iterator[date]:
    for offset in range(days):
        yield start + timedelta(days=offset)


def _headers(api_key: str) -> dict[str, str]:
    return {
        "X-API-KEY": api_key,
        "Accept": "application/json",
        "User-Agent": DEFAULT_USER_AGENT,
    }


def _timeout(read_timeout: float | None) -> tuple[float, float]:
    return (DEFAULT_CONNECT_TIMEOUT_SECONDS, read_timeout or DEFAULT_READ_TIMEOUT_SECONDS)


def _get_json(url: str, api_key: str, timeout: float | None) -> tuple[Any, int | None, str | None]:
    """Return (payload, status, error). payload is None whenever error is set."""
    try:
        response = requests.get(url, headers=_headers(api_key), timeout=_timeout(timeout))
    except requests.Timeout as exc:
        return None, None, f"timeout: {exc}"
    except requests.RequestException as exc:
        return None, None, f"request failed: {exc}"

    text = response.text or ""
    if response.status_code >= 400:
        return None, response.status_code, f"non-2xx response body={text[:MAX_BODY_SNIPPET]}"
    if not text.strip():
        return None, response.status_code, "empty response body"
    try:
        return response.json(), response.status_code, None
    except ValueError:
        return None, response.status_code, f"invalid JSON body={text[:MAX_BODY_SNIPPET]}"


def build_tv_day_url(day: date, base_url: str | None = None) -> str:
    return f"{(base_url or SPORTSDB_BASE_URL).rstrip('/')}/filter/tv/day/{day.isoformat()}"


def build_lookup_url(event_id: str, base_url: str | None = None) -> str:
    return f"{(base_url or SPORTSDB_BASE_URL).rstrip('/')}/lookup/event/{event_id}"


def parse_tv_listing(payload: Any) -> list[RawBroadcastEntry] | None:
    """Parse a /filter/tv/day body. Returns None when the shape is wrong."""
    if not isinstance(payload, dict) or "filter" not in payload:
        return None
    items = payload["filter"]
    if items is None:
        return []
    if not isinstance(items, list):
        return None

    entries: list[RawBroadcastEntry] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(RawBroadcastEntry.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed TV listing item id=%s: %s", item.get("idEvent"), exc)
    return entries


def fetch_tv_day(
    day: date,
    api_key: str,
    *,
    base_url: str | None = None,
    timeout: float | None = None,
) -> list[RawBroadcastEntry] | DayFetchFailure:
    """Fetch every TV listing for one calendar day."""

    url = build_tv_day_url(day, base_url)
    payload, status, error = _get_json(url, api_key, timeout)
    if error:
        logger.warning("TV listing fetch failed day=%s status=%s error=%s", day, status, error)
        return DayFetchFailure(day=day, error=error, status=status)

    entries = parse_tv_listing(payload)
    if entries is None:
        snippet = str(payload)[:MAX_BODY_SNIPPET]
        logger.warning("TV listing day=%s has unexpected shape body=%s", day, snippet)
        return DayFetchFailure(day=day, error="unexpected response shape", status=status, body=snippet)
    return entries


def parse_event_lookup(payload: Any) -> EventDetails | None:
    if not isinstance(payload, dict):
        return None
    items = payload.get("lookup")
    if not isinstance(items, list) or not items:
        return None
    first = items[0]
    if not isinstance(first, dict):
        return None
    return EventDetails(
        league=first.get("strLeague"),
        sport=first.get("strSport"),
        country=first.get("strCountry"),
    )


def lookup_event(
    event_id: str,
    api_key: str,
    *,
    base_url: str | None = None,
    timeout: float | None = None,
) -> EventDetails | LookupFailure:
    """Fetch league, sport and country for one event."""

    url = build_lookup_url(event_id, base_url)
    payload, status, error = _get_json(url, api_key, timeout)
    if error:
        logger.warning("Event lookup failed event_id=%s status=%s error=%s", event_id, status, error)
        return LookupFailure(event_id=event_id, error=error, status=status)

    details = parse_event_lookup(payload)
    if details is None:
        logger.info("Event lookup returned no details event_id=%s", event_id)
        return LookupFailure(event_id=event_id, error="no lookup result", status=status)
    return details
