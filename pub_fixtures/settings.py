from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from cryptography.fernet import Fernet, InvalidToken

from pub_fixtures.errors import ConfigurationError
from pub_fixtures.models import AppSettings

logger = logging.getLogger(__name__)
_FERNET: Fernet | None = None

DEFAULT_ALLOWED_COUNTRIES = ("United Kingdom", "UK")
DEFAULT_ALLOWED_CHANNELS = (
    "Sky Sports",
    "TNT Sports",
    "Amazon Prime",
    "BBC",
    "ITV",
    "Terrestrial TV",
)
DEFAULT_SPORTSDB_BASE_URL = "https://www.thesportsdb.com/api/v2/json"


@dataclass(frozen=True)
class PipelineConfig:
    api_key: str | None
    base_url: str
    days_to_fetch: int
    max_fixtures: int
    lookup_delay_seconds: float
    day_delay_seconds: float
    polite_days: int
    request_timeout_seconds: float
    allowed_countries: frozenset[str]
    allowed_channels: frozenset[str]
    keep_unparsed_start_times: bool = True

    def validate(self) -> None:
        """Raise ConfigurationError before any network call is made."""
        if not self.api_key:
            raise ConfigurationError(
                "THE_SPORTS_DB_API_KEY is required for the V2 API (premium)"
            )
        if not self.base_url:
            raise ConfigurationError("SportsDB base URL is empty")
        if self.days_to_fetch < 1:
            raise ConfigurationError("days_to_fetch must be >= 1")
        if self.max_fixtures < 1:
            raise ConfigurationError("max_fixtures must be >= 1")
        if self.lookup_delay_seconds < 0 or self.day_delay_seconds < 0:
            raise ConfigurationError("delays must be >= 0")
        if self.polite_days < 0:
            raise ConfigurationError("polite_days must be >= 0")
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError("request_timeout_seconds must be > 0")
        if not self.allowed_countries:
            raise ConfigurationError("allowed_countries is empty")
        if not self.allowed_channels:
            raise ConfigurationError("allowed_channels is empty")


def split_csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _default_settings() -> AppSettings:
    return AppSettings(
        id=1,
        sportsdb_api_key_enc=None,
        days_to_fetch=14,
        max_fixtures=250,
        lookup_delay_ms=250,
        day_delay_ms=1000,
        polite_days=6,
        request_timeout_seconds=15,
        allowed_countries=",".join(DEFAULT_ALLOWED_COUNTRIES),
        allowed_channels=",".join(DEFAULT_ALLOWED_CHANNELS),
        keep_unparsed_start_times=True,
        updated_at_utc=datetime.now(timezone.utc),
    )


def get_or_create_settings(db) -> AppSettings:
    settings = db.query(AppSettings).filter(AppSettings.id == 1).one_or_none()
    if settings:
        return settings
    settings = _default_settings()
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def resolve_api_key(settings: AppSettings) -> str | None:
    env_key = (os.getenv("THE_SPORTS_DB_API_KEY") or "").strip()
    if env_key:
        return env_key
    return decrypt_api_key(settings.sportsdb_api_key_enc)


def snapshot_settings(settings: AppSettings) -> PipelineConfig:
    base_url = os.getenv("SPORTSDB_BASE_URL", DEFAULT_SPORTSDB_BASE_URL)
    return PipelineConfig(
        api_key=resolve_api_key(settings),
        base_url=base_url.strip().rstrip("/"),
        days_to_fetch=settings.days_to_fetch,
        max_fixtures=settings.max_fixtures,
        lookup_delay_seconds=settings.lookup_delay_ms / 1000,
        day_delay_seconds=settings.day_delay_ms / 1000,
        polite_days=settings.polite_days,
        request_timeout_seconds=float(settings.request_timeout_seconds),
        allowed_countries=frozenset(split_csv(settings.allowed_countries)),
        allowed_channels=frozenset(split_csv(settings.allowed_channels)),
        keep_unparsed_start_times=bool(settings.keep_unparsed_start_times),
    )


def get_cron_secret() -> str | None:
    secret = (os.getenv("CRON_SECRET") or "").strip()
    return secret or None


def get_fernet() -> Fernet:
    global _FERNET
    if _FERNET is not None:
        return _FERNET
    secret = (os.getenv("APP_SECRET_KEY") or "").strip()
    if not secret:
        secret = Fernet.generate_key().decode("utf-8")
        logger.warning(
            "APP_SECRET_KEY missing. Generated a temporary key: %s. "
            "Set APP_SECRET_KEY to this value to persist decryption.",
            secret,
        )
    _FERNET = Fernet(secret.encode("utf-8"))
    return _FERNET


def encrypt_api_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    fernet = get_fernet()
    return fernet.encrypt(api_key.encode("utf-8")).decode("utf-8")


def decrypt_api_key(encrypted: str | None) -> str | None:
    if not encrypted:
        return None
    fernet = get_fernet()
    try:
        return fernet.decrypt(encrypted.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.error("Failed to decrypt SportsDB API key. Check APP_SECRET_KEY.")
        return None
