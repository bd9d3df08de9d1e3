from __future__ import annotations

import unittest
from datetime import timedelta
from unittest.mock import patch

from pub_fixtures.ingestion.enrichment import distinct_event_ids, enrich_fixtures, merge_event_details
from pub_fixtures.ingestion.filters import FixtureFilter
from pub_fixtures.ingestion.ranking import rank_fixtures
from pub_fixtures.ingestion.schema import EventDetails
from pub_fixtures.ingestion.sportsdb_client import LookupFailure
from tests._support import CHANNELS, NOW, UK, raw_entry


def _candidates(*entries):
    return FixtureFilter().filter(list(entries), NOW, UK, CHANNELS)


class EnrichmentTests(unittest.TestCase):
    def test_one_lookup_per_distinct_event_with_delay_between(self) -> None:
        candidates = _candidates(
            raw_entry("1001", channel="Sky Sports Main Event"),
            raw_entry("1001", channel="Sky Sports Football"),
            raw_entry("1002", channel="TNT Sports 1"),
        )
        sleeps: list[float] = []

        with patch(
            "pub_fixtures.ingestion.enrichment.lookup_event",
            return_value=EventDetails(league="EPL", sport="Soccer", country="England"),
        ) as mock_lookup:
            outcome = enrich_fixtures(candidates, "key", delay_seconds=0.25, sleep=sleeps.append)

        self.assertEqual(["1001", "1002"], [call.args[0] for call in mock_lookup.call_args_list])
        self.assertEqual([0.25], sleeps)
        self.assertEqual(2, outcome.looked_up)
        self.assertEqual(["EPL"] * 3, [fixture.league for fixture in outcome.fixtures])
        self.assertEqual(["England"] * 3, [fixture.country for fixture in outcome.fixtures])

    def test_null_league_keeps_base_value(self) -> None:
        candidates = _candidates(raw_entry("1001", league="Base League", sport="Base Sport"))

        with patch(
            "pub_fixtures.ingestion.enrichment.lookup_event",
            return_value=EventDetails(league=None, sport="Football"),
        ):
            outcome = enrich_fixtures(candidates, "key", delay_seconds=0)

        fixture = outcome.fixtures[0]
        self.assertEqual("Base League", fixture.league)
        self.assertEqual("Football", fixture.sport)
        self.assertIsNone(fixture.country)

    def test_failed_lookup_leaves_fixture_untouched(self) -> None:
        candidates = _candidates(raw_entry("1001", sport="Soccer"), raw_entry("1002", channel="BBC One"))

        def _lookup(event_id, *_args, **_kwargs):
            if event_id == "1001":
                return LookupFailure(event_id=event_id, error="non-2xx response", status=500)
            return EventDetails(league="Six Nations", sport="Rugby", country="France")

        with patch("pub_fixtures.ingestion.enrichment.lookup_event", side_effect=_lookup):
            outcome = enrich_fixtures(candidates, "key", delay_seconds=0)

        self.assertEqual(["1001"], [failure.event_id for failure in outcome.failed])
        self.assertEqual("Soccer", outcome.fixtures[0].sport)
        self.assertEqual("Rugby", outcome.fixtures[1].sport)
        self.assertEqual(2, len(outcome.fixtures))

    def test_synthetic_ids_are_not_looked_up(self) -> None:
        candidates = _candidates(raw_entry(None, title="Mystery"), raw_entry("1001"))

        self.assertEqual(["1001"], distinct_event_ids(candidates))

    def test_merge_is_idempotent(self) -> None:
        candidates = _candidates(raw_entry("1001", league="Base"), raw_entry("1002", channel="ITV1"))
        details = {"1001": EventDetails(league=None, sport="Soccer", country="England")}

        first = merge_event_details(candidates, details)
        second = merge_event_details(candidates, details)
        reapplied = merge_event_details(first, details)

        self.assertEqual(first, second)
        self.assertEqual(first, reapplied)
        self.assertEqual("Base", first[0].league)


class RankFixturesTests(unittest.TestCase):
    def test_keeps_earliest_up_to_max(self) -> None:
        base = NOW + timedelta(hours=1)
        entries = [
            raw_entry(str(index), timestamp=(base + timedelta(minutes=(299 - index))).isoformat())
            for index in range(300)
        ]
        candidates = _candidates(*entries)

        ranked = rank_fixtures(candidates, 250)

        self.assertEqual(250, len(ranked))
        starts = [fixture.sort_instant for fixture in ranked]
        self.assertEqual(sorted(starts), starts)
        self.assertEqual(base, starts[0])
        self.assertEqual("299", ranked[0].event_id)
        self.assertNotIn("0", {fixture.event_id for fixture in ranked})

    def test_ties_keep_input_order(self) -> None:
        candidates = _candidates(
            raw_entry("b", channel="Sky Sports Arena"),
            raw_entry("a", channel="Sky Sports Arena"),
        )

        self.assertEqual(["b", "a"], [fixture.event_id for fixture in rank_fixtures(candidates)])

    def test_unparsed_start_sorts_first(self) -> None:
        candidates = _candidates(
            raw_entry("timed"),
            raw_entry("untimed", timestamp=None, date_event=None, time=None),
        )

        self.assertEqual("untimed", rank_fixtures(candidates)[0].event_id)

    def test_negative_max_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            rank_fixtures([], -1)


if __name__ == "__main__":
    unittest.main()
