from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class FixtureOut(BaseModel):
    id: int
    external_id: str
    event_id: str
    name: Optional[str]
    sport: Optional[str]
    league: Optional[str]
    image_url: Optional[str]
    starting_at: datetime
    channel_slug: Optional[str]
    channel_name: str
    channel_link: str
    broadcast_country: str
    country: Optional[str]

    class Config:
        from_attributes = True


class UpcomingFixturesResponse(BaseModel):
    fixtures: list[FixtureOut]
    count: int


class RefreshResponse(BaseModel):
    message: str
    count: int
    timestamp: str


class SettingsOut(BaseModel):
    has_api_key: bool
    days_to_fetch: int
    max_fixtures: int
    lookup_delay_ms: int
    day_delay_ms: int
    polite_days: int
    request_timeout_seconds: int
    allowed_countries: list[str]
    allowed_channels: list[str]
    keep_unparsed_start_times: bool
    updated_at_utc: Optional[datetime]


class SettingsUpdate(BaseModel):
    sportsdb_api_key: Optional[str] = None
    days_to_fetch: Optional[int] = Field(default=None, ge=1, le=31)
    max_fixtures: Optional[int] = Field(default=None, ge=1)
    lookup_delay_ms: Optional[int] = Field(default=None, ge=0)
    day_delay_ms: Optional[int] = Field(default=None, ge=0)
    polite_days: Optional[int] = Field(default=None, ge=0)
    request_timeout_seconds: Optional[int] = Field(default=None, ge=1)
    allowed_countries: Optional[list[str]] = None
    allowed_channels: Optional[list[str]] = None
    keep_unparsed_start_times: Optional[bool] = None
