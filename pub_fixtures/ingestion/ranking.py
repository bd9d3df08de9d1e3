"""Order fixtures by start time and cap how many are stored."""

from __future__ import annotations

from typing import Sequence, TypeVar

from pub_fixtures.ingestion.schema import FixtureCandidate

DEFAULT_MAX_FIXTURES = 250

FixtureT = TypeVar("FixtureT", bound=FixtureCandidate)


def rank_fixtures(fixtures: Sequence[FixtureT], max_count: int = DEFAULT_MAX_FIXTURES) -> list[FixtureT]:
    """Earliest first, keeping at most ``max_count``. Ties keep input order."""
    if max_count < 0:
        raise ValueError("max_count must be >= 0")
    ordered = sorted(fixtures, key=lambda fixture: fixture.sort_instant)
    return ordered[:max_count]
