"""Replace-the-world persistence for upcoming fixtures."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pub_fixtures.errors import StorageError
from pub_fixtures.ingestion.schema import EnrichedFixture
from pub_fixtures.models import UpcomingFixture

logger = logging.getLogger(__name__)


def _to_row(fixture: EnrichedFixture) -> UpcomingFixture:
    return UpcomingFixture(
        external_id=fixture.external_id,
        event_id=fixture.event_id,
        name=fixture.name,
        sport=fixture.sport,
        league=fixture.league,
        image_url=fixture.image_url,
        starting_at=fixture.sort_instant,
        channel_slug=fixture.channel.slug,
        channel_name=fixture.channel.display_name,
        channel_link=fixture.channel.link,
        broadcast_country=fixture.broadcast_country,
        country=fixture.country,
    )


def replace_all(db: Session, fixtures: Iterable[EnrichedFixture]) -> int:
    """Delete every stored fixture and insert ``fixtures`` in one transaction.

    An empty ``fixtures`` leaves the table empty. On any database error the
    transaction is rolled back, the previous set stays in place, and
    StorageError is raised.
    """

    rows = [_to_row(fixture) for fixture in fixtures]
    try:
        deleted = db.query(UpcomingFixture).delete(synchronize_session=False)
        db.add_all(rows)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed replacing upcoming fixtures (new_count=%s)", len(rows))
        raise StorageError(str(exc)) from exc

    logger.info("Replaced upcoming fixtures deleted=%s inserted=%s", deleted, len(rows))
    return len(rows)


def clear_all(db: Session) -> int:
    try:
        deleted = db.query(UpcomingFixture).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed clearing upcoming fixtures")
        raise StorageError(str(exc)) from exc
    logger.info("Cleared upcoming fixtures deleted=%s", deleted)
    return deleted


def list_upcoming(
    db: Session,
    limit: int | None = None,
    channel_name: str | None = None,
) -> list[UpcomingFixture]:
    query = db.query(UpcomingFixture)
    if channel_name:
        query = query.filter(UpcomingFixture.channel_name == channel_name)
    query = query.order_by(UpcomingFixture.starting_at.asc(), UpcomingFixture.id.asc())
    if limit:
        query = query.limit(limit)
    return query.all()
