from __future__ import annotations

from datetime import datetime, timezone
import asyncio
import hmac
import logging
import os

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from pub_fixtures.db import Base, SessionLocal, engine, get_db
from pub_fixtures.errors import StorageError
from pub_fixtures.ingestion.store import clear_all, list_upcoming
from pub_fixtures.ingestion.sync import RefreshResult, refresh_fixtures
from pub_fixtures.log_buffer import get_buffer_handler, install_buffer_handler
from pub_fixtures.models import AppSettings
from pub_fixtures.schemas import (
    FixtureOut,
    RefreshResponse,
    SettingsOut,
    SettingsUpdate,
    UpcomingFixturesResponse,
)
from pub_fixtures.settings import (
    encrypt_api_key,
    get_cron_secret,
    get_or_create_settings,
    snapshot_settings,
    split_csv,
)

app = FastAPI(title="Pub Fixtures")
logger = logging.getLogger(__name__)
_auto_refresh_task: asyncio.Task | None = None
_auto_refresh_stop: asyncio.Event | None = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    body: dict[str, str] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def _check_cron_auth(request: Request) -> JSONResponse | None:
    """Bearer pre-check shared by the cron and settings endpoints."""
    secret = get_cron_secret()
    if not secret:
        logger.error("CRON_SECRET is not configured; rejecting %s", request.url.path)
        return _error(400, "CRON_SECRET is not configured")
    provided = request.headers.get("authorization") or ""
    if not hmac.compare_digest(provided.encode("utf-8"), f"Bearer {secret}".encode("utf-8")):
        return _error(401, "Unauthorized")
    return None


def _run_refresh() -> RefreshResult:
    with SessionLocal() as db:
        config = snapshot_settings(get_or_create_settings(db))
    return refresh_fixtures(config)


def _settings_out(settings: AppSettings) -> SettingsOut:
    return SettingsOut(
        has_api_key=bool(settings.sportsdb_api_key_enc) or bool(os.getenv("THE_SPORTS_DB_API_KEY")),
        days_to_fetch=settings.days_to_fetch,
        max_fixtures=settings.max_fixtures,
        lookup_delay_ms=settings.lookup_delay_ms,
        day_delay_ms=settings.day_delay_ms,
        polite_days=settings.polite_days,
        request_timeout_seconds=settings.request_timeout_seconds,
        allowed_countries=split_csv(settings.allowed_countries),
        allowed_channels=split_csv(settings.allowed_channels),
        keep_unparsed_start_times=settings.keep_unparsed_start_times,
        updated_at_utc=settings.updated_at_utc,
    )


async def _auto_refresh_loop(interval_minutes: int) -> None:
    logger.info("Auto-refresh enabled: interval=%s minutes", interval_minutes)
    while _auto_refresh_stop and not _auto_refresh_stop.is_set():
        try:
            result = await asyncio.to_thread(_run_refresh)
            if not result.ok:
                logger.error(
                    "Auto-refresh failed: state=%s error=%s",
                    result.state.value,
                    result.error,
                )
        except Exception:
            logger.exception("Auto-refresh failed.")
        try:
            await asyncio.wait_for(
                _auto_refresh_stop.wait(),
                timeout=interval_minutes * 60,
            )
        except asyncio.TimeoutError:
            continue


@app.on_event("startup")
async def start_auto_refresh() -> None:
    global _auto_refresh_task, _auto_refresh_stop
    install_buffer_handler()
    Base.metadata.create_all(bind=engine)
    interval_minutes = int(os.getenv("AUTO_REFRESH_INTERVAL_MINUTES", "0"))
    if interval_minutes < 1:
        logger.info("Auto-refresh disabled; relying on the cron endpoint")
        return
    _auto_refresh_stop = asyncio.Event()
    _auto_refresh_task = asyncio.create_task(_auto_refresh_loop(interval_minutes))


@app.on_event("shutdown")
async def stop_auto_refresh() -> None:
    global _auto_refresh_task, _auto_refresh_stop
    if _auto_refresh_stop:
        _auto_refresh_stop.set()
    if _auto_refresh_task:
        await _auto_refresh_task
    _auto_refresh_task = None
    _auto_refresh_stop = None


@app.api_route("/api/cron/refresh-fixtures", methods=["GET", "POST"], response_model=RefreshResponse)
def cron_refresh_fixtures(request: Request):
    denied = _check_cron_auth(request)
    if denied:
        return denied

    try:
        result = _run_refresh()
    except Exception as exc:
        logger.exception("Fixtures refresh crashed.")
        return _error(500, "Failed to refresh fixtures", str(exc))

    if not result.ok:
        exc = result.error
        status_code = exc.status_code if exc else 500
        label = exc.label if exc else "Failed to refresh fixtures"
        return _error(status_code, label, str(exc) if exc else None)

    return RefreshResponse(
        message="Fixtures refreshed",
        count=result.count,
        timestamp=result.timestamp or _now_iso(),
    )


@app.api_route("/api/cron/clear-fixtures", methods=["GET", "POST"], response_model=RefreshResponse)
def cron_clear_fixtures(request: Request, db: Session = Depends(get_db)):
    denied = _check_cron_auth(request)
    if denied:
        return denied
    try:
        deleted = clear_all(db)
    except StorageError as exc:
        return _error(500, "Failed to clear fixtures", str(exc))
    return RefreshResponse(message="Fixtures cleared", count=deleted, timestamp=_now_iso())


@app.get("/api/fixtures/upcoming", response_model=UpcomingFixturesResponse)
def api_upcoming_fixtures(
    limit: int | None = None,
    channel: str | None = None,
    db: Session = Depends(get_db),
):
    if limit is not None and limit < 1:
        return _error(400, "limit must be >= 1")
    rows = list_upcoming(db, limit=limit, channel_name=(channel or "").strip() or None)
    return UpcomingFixturesResponse(
        fixtures=[FixtureOut.model_validate(row) for row in rows],
        count=len(rows),
    )


@app.get("/api/settings", response_model=SettingsOut)
def api_get_settings(request: Request, db: Session = Depends(get_db)):
    denied = _check_cron_auth(request)
    if denied:
        return denied
    return _settings_out(get_or_create_settings(db))


@app.put("/api/settings", response_model=SettingsOut)
def api_update_settings(payload: SettingsUpdate, request: Request, db: Session = Depends(get_db)):
    denied = _check_cron_auth(request)
    if denied:
        return denied

    settings = get_or_create_settings(db)
    updates = payload.model_dump(exclude_unset=True)

    api_key = (updates.pop("sportsdb_api_key", None) or "").strip()
    if api_key:
        settings.sportsdb_api_key_enc = encrypt_api_key(api_key)
    for key in ("allowed_countries", "allowed_channels"):
        if key in updates:
            values = [value.strip() for value in updates.pop(key) or [] if value.strip()]
            if not values:
                return _error(400, f"{key} must not be empty")
            setattr(settings, key, ",".join(values))
    for key, value in updates.items():
        if value is not None:
            setattr(settings, key, value)

    settings.updated_at_utc = datetime.now(timezone.utc)
    db.commit()
    logger.info("Settings updated fields=%s", ",".join(sorted(payload.model_fields_set)))
    return _settings_out(settings)


@app.get("/api/logs")
def api_logs(limit: int = 100, level: str | None = None):
    handler = get_buffer_handler()
    return {"entries": handler.entries(limit=limit, min_level=level)}
