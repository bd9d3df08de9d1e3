from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from pub_fixtures.db import get_db
from pub_fixtures.errors import ConfigurationError, RefreshInProgressError, StorageError
from pub_fixtures.ingestion.enrichment import merge_event_details
from pub_fixtures.ingestion.filters import FixtureFilter
from pub_fixtures.ingestion.store import replace_all
from pub_fixtures.ingestion.sync import PipelineState, RefreshResult
from pub_fixtures.main import app
from pub_fixtures.models import AppSettings
from tests._support import CHANNELS, NOW, UK, make_session_factory, raw_entry

AUTH = {"Authorization": "Bearer cron-secret"}


class _ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()

        def _override_db():
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _override_db
        self.addCleanup(app.dependency_overrides.clear)

        env_patch = patch.dict(os.environ, {"CRON_SECRET": "cron-secret"})
        env_patch.start()
        self.addCleanup(env_patch.stop)
        self.client = TestClient(app)


class CronRefreshTests(_ApiTestCase):
    def test_rejects_missing_bearer(self) -> None:
        with patch("pub_fixtures.main._run_refresh") as mock_run:
            response = self.client.get("/api/cron/refresh-fixtures")

        self.assertEqual(401, response.status_code)
        self.assertEqual({"error": "Unauthorized"}, response.json())
        mock_run.assert_not_called()

    def test_rejects_wrong_bearer(self) -> None:
        response = self.client.get(
            "/api/cron/refresh-fixtures",
            headers={"Authorization": "Bearer nope"},
        )

        self.assertEqual(401, response.status_code)

    def test_success_reports_count_and_timestamp(self) -> None:
        result = RefreshResult(state=PipelineState.DONE, count=42, timestamp="2026-10-17T12:00:00+00:00")
        with patch("pub_fixtures.main._run_refresh", return_value=result):
            response = self.client.post("/api/cron/refresh-fixtures", headers=AUTH)

        self.assertEqual(200, response.status_code)
        self.assertEqual(
            {"message": "Fixtures refreshed", "count": 42, "timestamp": "2026-10-17T12:00:00+00:00"},
            response.json(),
        )

    def test_configuration_error_is_4xx(self) -> None:
        result = RefreshResult(
            state=PipelineState.FAILED,
            error=ConfigurationError("THE_SPORTS_DB_API_KEY is required for the V2 API (premium)"),
        )
        with patch("pub_fixtures.main._run_refresh", return_value=result):
            response = self.client.get("/api/cron/refresh-fixtures", headers=AUTH)

        self.assertEqual(400, response.status_code)
        body = response.json()
        self.assertEqual("Invalid configuration", body["error"])
        self.assertIn("THE_SPORTS_DB_API_KEY", body["detail"])

    def test_storage_error_is_5xx(self) -> None:
        result = RefreshResult(state=PipelineState.FAILED, error=StorageError("disk I/O error"))
        with patch("pub_fixtures.main._run_refresh", return_value=result):
            response = self.client.get("/api/cron/refresh-fixtures", headers=AUTH)

        self.assertEqual(500, response.status_code)
        self.assertEqual({"error": "Failed to store fixtures", "detail": "disk I/O error"}, response.json())

    def test_overlapping_refresh_is_409(self) -> None:
        result = RefreshResult(state=PipelineState.FAILED, error=RefreshInProgressError("refresh already running"))
        with patch("pub_fixtures.main._run_refresh", return_value=result):
            response = self.client.get("/api/cron/refresh-fixtures", headers=AUTH)

        self.assertEqual(409, response.status_code)

    def test_unexpected_crash_is_5xx(self) -> None:
        with patch("pub_fixtures.main._run_refresh", side_effect=RuntimeError("boom")):
            response = self.client.get("/api/cron/refresh-fixtures", headers=AUTH)

        self.assertEqual(500, response.status_code)
        self.assertEqual({"error": "Failed to refresh fixtures", "detail": "boom"}, response.json())

    def test_missing_cron_secret_is_config_error(self) -> None:
        with patch.dict(os.environ, {"CRON_SECRET": ""}):
            response = self.client.get("/api/cron/refresh-fixtures", headers=AUTH)

        self.assertEqual(400, response.status_code)


class FixturesReadTests(_ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        candidates = FixtureFilter().filter(
            [
                raw_entry("late", timestamp="2026-10-20T20:00:00"),
                raw_entry("early", timestamp="2026-10-18T12:30:00", channel="BBC One"),
            ],
            NOW,
            UK,
            CHANNELS,
        )
        with self.session_factory() as db:
            replace_all(db, merge_event_details(candidates, {}))

    def test_upcoming_is_ordered_by_start(self) -> None:
        response = self.client.get("/api/fixtures/upcoming")

        self.assertEqual(200, response.status_code)
        body = response.json()
        self.assertEqual(2, body["count"])
        self.assertEqual(["early", "late"], [fixture["event_id"] for fixture in body["fixtures"]])
        self.assertEqual("/vibe/terrestrial-tv", body["fixtures"][0]["channel_link"])

    def test_upcoming_channel_filter(self) -> None:
        response = self.client.get("/api/fixtures/upcoming", params={"channel": "Sky Sports"})

        self.assertEqual(["late"], [fixture["event_id"] for fixture in response.json()["fixtures"]])

    def test_clear_fixtures(self) -> None:
        response = self.client.post("/api/cron/clear-fixtures", headers=AUTH)

        self.assertEqual(200, response.status_code)
        self.assertEqual("Fixtures cleared", response.json()["message"])
        self.assertEqual(2, response.json()["count"])
        self.assertEqual(0, self.client.get("/api/fixtures/upcoming").json()["count"])


class SettingsApiTests(_ApiTestCase):
    def test_defaults_are_created_on_first_read(self) -> None:
        with patch.dict(os.environ, {"THE_SPORTS_DB_API_KEY": ""}):
            response = self.client.get("/api/settings", headers=AUTH)

        self.assertEqual(200, response.status_code)
        body = response.json()
        self.assertFalse(body["has_api_key"])
        self.assertEqual(14, body["days_to_fetch"])
        self.assertEqual(250, body["max_fixtures"])
        self.assertEqual(["United Kingdom", "UK"], body["allowed_countries"])

    def test_update_encrypts_key_and_applies_tunables(self) -> None:
        response = self.client.put(
            "/api/settings",
            headers=AUTH,
            json={
                "sportsdb_api_key": "plain-key",
                "days_to_fetch": 7,
                "allowed_channels": ["Sky Sports", " TNT Sports "],
            },
        )

        self.assertEqual(200, response.status_code)
        body = response.json()
        self.assertTrue(body["has_api_key"])
        self.assertEqual(7, body["days_to_fetch"])
        self.assertEqual(["Sky Sports", "TNT Sports"], body["allowed_channels"])
        with self.session_factory() as db:
            stored = db.query(AppSettings).one()
        self.assertNotEqual("plain-key", stored.sportsdb_api_key_enc)
        self.assertNotIn("plain-key", response.text)

    def test_rejects_invalid_values(self) -> None:
        response = self.client.put("/api/settings", headers=AUTH, json={"days_to_fetch": 0})

        self.assertEqual(422, response.status_code)

    def test_requires_bearer(self) -> None:
        self.assertEqual(401, self.client.get("/api/settings").status_code)


if __name__ == "__main__":
    unittest.main()
