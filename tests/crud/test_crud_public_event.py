import pytest
from datetime import date

from sqlalchemy.exc import IntegrityError

from app.crud import crud_public_event


def _event(db, source_booking_id, artist_id="artist_1", **fields):
    return crud_public_event.create(
        db,
        source_booking_id=source_booking_id,
        artist_id=artist_id,
        organizer_id="organizer_1",
        published_by="organizer_1",
        **fields,
    )


def test_one_listing_per_booking(db_session):
    _event(db_session, "bkg_1")
    db_session.commit()

    _event(db_session, "bkg_1")
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_list_events_newest_date_first_and_by_artist(db_session):
    _event(db_session, "bkg_1", event_date=date(2026, 1, 1))
    _event(db_session, "bkg_2", event_date=date(2026, 6, 1))
    _event(db_session, "bkg_3", artist_id="artist_2", event_date=date(2026, 3, 1))
    db_session.commit()

    result = crud_public_event.list_events(db_session)
    by_artist = crud_public_event.list_events(db_session, artist_id="artist_1")

    assert [e.source_booking_id for e in result["events"]] == ["bkg_2", "bkg_3", "bkg_1"]
    assert by_artist["pagination"]["total_count"] == 2
