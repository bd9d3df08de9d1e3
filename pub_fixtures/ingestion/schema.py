"""Internal data contract for fixture ingestion."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pub_fixtures.ingestion.channels import ChannelMatch

# Sort and persist position for listings whose start time could not be parsed.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RawBroadcastEntry(BaseModel):
    """One row of a day's TV listing, as returned by /filter/tv/day."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    event_id: Optional[str] = Field(default=None, alias="idEvent")
    title: Optional[str] = Field(default=None, alias="strEvent")
    thumbnail: Optional[str] = Field(default=None, alias="strEventThumb")
    date_event: Optional[str] = Field(default=None, alias="dateEvent")
    time: Optional[str] = Field(default=None, alias="strTime")
    timestamp: Optional[str] = Field(default=None, alias="strTimeStamp")
    channel: Optional[str] = Field(default=None, alias="strChannel")
    country: Optional[str] = Field(default=None, alias="strCountry")
    sport: Optional[str] = Field(default=None, alias="strSport")
    league: Optional[str] = Field(default=None, alias="strLeague")

    @field_validator("id", "event_id", "date_event", "time", "timestamp", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)


class FixtureCandidate(BaseModel):
    """A listing that survived the country, dedup, time and channel filters."""

    model_config = ConfigDict(frozen=True)

    external_id: str
    event_id: str
    synthetic_event_id: bool = False
    name: Optional[str] = None
    image_url: Optional[str] = None
    start_time_utc: Optional[datetime] = None
    channel: ChannelMatch
    broadcast_country: str
    sport: Optional[str] = None
    league: Optional[str] = None

    @property
    def sort_instant(self) -> datetime:
        return self.start_time_utc or EPOCH


class EnrichedFixture(FixtureCandidate):
    country: Optional[str] = None


class EventDetails(BaseModel):
    """The fields we take from /lookup/event."""

    league: Optional[str] = None
    sport: Optional[str] = None
    country: Optional[str] = None

    @field_validator("league", "sport", "country", mode="before")
    @classmethod
    def _trim(cls, value: Any) -> Optional[str]:
        return _blank_to_none(value)
