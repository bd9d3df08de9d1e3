from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from .db import Base


class UpcomingFixture(Base):
    __tablename__ = "upcoming_fixtures"

    id = Column(Integer, primary_key=True, index=True)

    # Composite identity: event id + raw channel label + raw country label
    external_id = Column(String, nullable=False, unique=True)
    event_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    sport = Column(String, nullable=True)
    league = Column(String, nullable=True)
    image_url = Column(Text, nullable=True)
    starting_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Canonical channel
    channel_slug = Column(String, nullable=True)
    channel_name = Column(String, nullable=False, default="")
    channel_link = Column(String, nullable=False, default="")

    broadcast_country = Column(String, nullable=False, default="")
    country = Column(String, nullable=True)                # from the event lookup
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, default=1)
    sportsdb_api_key_enc = Column(Text, nullable=True)
    days_to_fetch = Column(Integer, nullable=False, default=14)
    max_fixtures = Column(Integer, nullable=False, default=250)
    lookup_delay_ms = Column(Integer, nullable=False, default=250)
    day_delay_ms = Column(Integer, nullable=False, default=1000)
    polite_days = Column(Integer, nullable=False, default=6)
    request_timeout_seconds = Column(Integer, nullable=False, default=15)
    allowed_countries = Column(Text, nullable=False, default="")   # comma-separated
    allowed_channels = Column(Text, nullable=False, default="")    # comma-separated
    keep_unparsed_start_times = Column(Boolean, nullable=False, default=True)
    updated_at_utc = Column(DateTime(timezone=True), nullable=True)
