from app.crud import crud_booking_history
from tests.utils.booking import FULL_TERMS, SENDER, create_booking


def test_archive_copies_only_non_sensitive_fields(db_session):
    booking = create_booking(db_session, **FULL_TERMS)

    entry = crud_booking_history.archive(
        db_session,
        booking=booking,
        status="deleted",
        previous_status="pending",
        archived_by=SENDER,
        reason="Duplicate",
    )
    db_session.commit()

    assert entry.id.startswith("bhi_")
    assert entry.booking_id == booking.id
    assert entry.title == "Jazz Night"
    assert entry.venue == "Blue Room"
    assert entry.audience_estimate == 200
    assert entry.deletion_reason == "Duplicate"
    assert entry.deleted_at is not None
    for column in ("personal_message", "tech_spec", "hospitality_rider", "artist_fee"):
        assert not hasattr(entry, column)


def test_get_by_booking_id_missing(db_session):
    assert crud_booking_history.get_by_booking_id(db_session, "bkg_missing") is None
