import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from app.crud import crud_booking, crud_booking_change, crud_booking_history, crud_public_event
from app.models.booking_history import BookingHistory
from app.schemas.booking import BookingCreate, BookingUpdate, ConceptSeed, ContactInfo
from app.services.booking import lifecycle
from app.services.booking.approval import confirm
from app.services.booking.errors import (
    BookingNotFound,
    BookingValidationError,
    InvalidStatus,
    Unauthorized,
)
from app.services.booking.negotiation import update_booking
from app.utils.kafka_helpers import BookingNotification
from tests.utils.booking import (
    FULL_TERMS,
    OUTSIDER,
    RECEIVER,
    SENDER,
    create_allowed_booking,
    create_approved_booking,
    create_booking,
    create_published_booking,
)

SENSITIVE_COLUMNS = (
    "artist_fee",
    "door_percentage",
    "pricing_mode",
    "ticket_price",
    "personal_message",
    "tech_spec",
    "hospitality_rider",
    "sender_contact_info",
    "receiver_contact_info",
)


# --- create ---

def test_create_starts_pending_with_snapshotted_contacts(db_session, profiles, notifier):
    booking = lifecycle.create_booking(
        db_session,
        sender_id=SENDER,
        data=BookingCreate(receiver_id=RECEIVER, title="Jazz Night", artist_fee=Decimal("5000")),
        profiles=profiles,
        notifier=notifier,
    )

    assert booking.status == "pending"
    assert booking.sender_confirmed is False and booking.receiver_confirmed is False
    assert booking.pricing_mode == "fixed_fee"
    assert booking.version == 1
    assert booking.sender_contact_info == {"email": f"{SENDER}@example.com", "phone": "+15550100"}
    assert booking.receiver_contact_info["email"] == f"{RECEIVER}@example.com"
    notifier.notify.assert_called_once_with(
        RECEIVER, BookingNotification.REQUESTED, booking.id, None
    )


def test_contact_snapshot_is_not_live_linked(db_session, profiles):
    booking = lifecycle.create_booking(
        db_session,
        sender_id=SENDER,
        data=BookingCreate(receiver_id=RECEIVER, title="Jazz Night"),
        profiles=profiles,
        notifier=MagicMock(),
    )
    profiles.get_contact_info.side_effect = lambda user_id: ContactInfo(email="new@example.com")

    booking = lifecycle.allow(
        db_session, booking_id=booking.id, actor_id=RECEIVER, notifier=MagicMock()
    )

    assert booking.sender_contact_info["email"] == f"{SENDER}@example.com"
    assert profiles.get_contact_info.call_count == 2


def test_sender_cannot_book_themselves(db_session, profiles):
    with pytest.raises(BookingValidationError) as exc_info:
        lifecycle.create_booking(
            db_session,
            sender_id=SENDER,
            data=BookingCreate(receiver_id=SENDER, title="Solo"),
            profiles=profiles,
            notifier=MagicMock(),
        )
    assert exc_info.value.field == "receiver_id"


def test_title_is_required_without_concept(db_session, profiles):
    with pytest.raises(BookingValidationError) as exc_info:
        lifecycle.create_booking(
            db_session,
            sender_id=SENDER,
            data=BookingCreate(receiver_id=RECEIVER),
            profiles=profiles,
            notifier=MagicMock(),
        )
    assert exc_info.value.field == "title"


def test_create_seeds_from_concept_by_value(db_session, profiles, concepts):
    concepts.get_concept.return_value = ConceptSeed(
        title="Trio Evening",
        description="Piano trio",
        price=Decimal("1200"),
        expected_audience=80,
        tech_spec_ref="Grand piano",
        hospitality_rider_ref="Water",
    )

    booking = lifecycle.create_booking(
        db_session,
        sender_id=SENDER,
        data=BookingCreate(
            receiver_id=RECEIVER, selected_concept_id="cpt_1", description="Our own text"
        ),
        profiles=profiles,
        concepts=concepts,
        notifier=MagicMock(),
    )

    assert booking.title == "Trio Evening"
    assert booking.description == "Our own text"
    assert booking.audience_estimate == 80
    assert booking.pricing_mode == "fixed_fee"
    assert booking.artist_fee == Decimal("1200")
    assert booking.tech_spec == "Grand piano"
    assert booking.concept_ids == ["cpt_1"]


def test_unknown_concept_is_not_found(db_session, profiles, concepts):
    with pytest.raises(BookingNotFound) as exc_info:
        lifecycle.create_booking(
            db_session,
            sender_id=SENDER,
            data=BookingCreate(receiver_id=RECEIVER, selected_concept_id="cpt_missing"),
            profiles=profiles,
            concepts=concepts,
            notifier=MagicMock(),
        )
    assert exc_info.value.context["resource"] == "concept"


# --- allow / reject ---

def test_receiver_allows_negotiation(db_session, notifier):
    booking = create_booking(db_session)

    booking = lifecycle.allow(
        db_session, booking_id=booking.id, actor_id=RECEIVER, notifier=notifier
    )

    assert booking.status == "allowed"
    notifier.notify.assert_called_once_with(
        SENDER, BookingNotification.ALLOWED, booking.id, None
    )


def test_sender_cannot_allow_own_request(db_session):
    booking = create_booking(db_session)

    with pytest.raises(Unauthorized):
        lifecycle.allow(db_session, booking_id=booking.id, actor_id=SENDER, notifier=MagicMock())


def test_allow_twice_is_invalid(db_session):
    booking = create_allowed_booking(db_session)

    with pytest.raises(InvalidStatus):
        lifecycle.allow(db_session, booking_id=booking.id, actor_id=RECEIVER, notifier=MagicMock())


def test_reject_archives_as_cancelled_with_reason(db_session, notifier):
    booking = create_booking(db_session, **FULL_TERMS)
    booking_id = booking.id

    entry = lifecycle.reject(
        db_session, booking_id=booking_id, actor_id=RECEIVER, reason=" Fully booked ", notifier=notifier
    )

    assert entry.status == "cancelled"
    assert entry.previous_status == "pending"
    assert entry.deletion_reason == "Fully booked"
    assert crud_booking.get(db_session, booking_id) is None
    assert notifier.notify.call_args.args[:2] == (SENDER, BookingNotification.REJECTED)


def test_reject_after_allow_is_invalid(db_session):
    booking = create_allowed_booking(db_session)

    with pytest.raises(InvalidStatus):
        lifecycle.reject(
            db_session, booking_id=booking.id, actor_id=RECEIVER, reason="No", notifier=MagicMock()
        )


# --- cancel / soft delete ---

def test_history_never_carries_sensitive_fields(db_session):
    for column in SENSITIVE_COLUMNS:
        assert column not in BookingHistory.__table__.columns


def test_cancel_scrubs_and_archives(db_session):
    booking = create_approved_booking(db_session, {"title": True}, **FULL_TERMS)
    booking_id = booking.id

    entry = lifecycle.cancel(
        db_session, booking_id=booking_id, actor_id=SENDER, reason="Venue closed", notifier=MagicMock()
    )

    assert entry.status == "cancelled"
    assert entry.previous_status == "approved_by_both"
    assert entry.venue == "Blue Room"
    assert entry.archived_by == SENDER
    assert crud_booking.get(db_session, booking_id) is None
    assert crud_booking_change.get_changes_for_booking(db_session, booking_id) == []


def test_write_after_cancel_observes_cancelled(db_session):
    booking = create_allowed_booking(db_session)
    booking_id = booking.id
    lifecycle.cancel(db_session, booking_id=booking_id, actor_id=RECEIVER, notifier=MagicMock())

    with pytest.raises(InvalidStatus) as exc_info:
        confirm(
            db_session,
            booking_id=booking_id,
            actor_id=SENDER,
            public_field_settings={},
            has_read_agreement=True,
            notifier=MagicMock(),
        )
    assert exc_info.value.status == "cancelled"

    with pytest.raises(InvalidStatus):
        update_booking(
            db_session,
            booking_id=booking_id,
            actor_id=SENDER,
            changes=BookingUpdate(venue="Elsewhere"),
            notifier=MagicMock(),
        )


def test_published_booking_cannot_be_cancelled(db_session):
    booking, _ = create_published_booking(db_session, {"title": True})

    with pytest.raises(InvalidStatus):
        lifecycle.cancel(db_session, booking_id=booking.id, actor_id=SENDER, notifier=MagicMock())


def test_soft_delete_keeps_public_listing(db_session):
    booking, event = create_published_booking(db_session, {"title": True})
    booking_id = booking.id

    entry = lifecycle.soft_delete(
        db_session, booking_id=booking_id, actor_id=RECEIVER, reason="Tidy up", notifier=MagicMock()
    )

    assert entry.status == "deleted"
    assert entry.previous_status == "upcoming"
    assert crud_public_event.get(db_session, event.id) is not None


def test_outsider_cannot_soft_delete(db_session):
    booking = create_booking(db_session)

    with pytest.raises(Unauthorized):
        lifecycle.soft_delete(db_session, booking_id=booking.id, actor_id=OUTSIDER, notifier=MagicMock())


# --- complete ---

def test_party_marks_published_booking_completed(db_session):
    booking, _ = create_published_booking(db_session, {"title": True})

    booking = lifecycle.complete(
        db_session, booking_id=booking.id, actor_id=RECEIVER, notifier=MagicMock()
    )

    assert booking.status == "completed"
    assert booking.completed_at is not None


def test_unpublished_booking_cannot_be_completed(db_session):
    booking = create_approved_booking(db_session)

    with pytest.raises(InvalidStatus):
        lifecycle.complete(db_session, booking_id=booking.id, actor_id=SENDER, notifier=MagicMock())


def test_completion_sweep_marks_past_events(db_session, notifier):
    past, _ = create_published_booking(db_session, {"title": True}, event_date=date(2026, 3, 1))
    multi_day, _ = create_published_booking(
        db_session, {"title": True}, event_date=date(2026, 3, 1), end_date=date(2026, 3, 20)
    )
    future, _ = create_published_booking(db_session, {"title": True}, event_date=date(2026, 4, 1))

    completed = lifecycle.complete_past_events(
        db_session, today=date(2026, 3, 10), notifier=notifier
    )

    assert completed == [past.id]
    db_session.expire_all()
    assert crud_booking.get(db_session, past.id).status == "completed"
    assert crud_booking.get(db_session, multi_day.id).status == "upcoming"
    assert crud_booking.get(db_session, future.id).status == "upcoming"
    assert notifier.notify.call_count == 2


def test_completion_sweep_with_nothing_due(db_session):
    assert lifecycle.complete_past_events(db_session, today=date(2026, 1, 1)) == []


# --- hard delete ---

def test_hard_delete_live_booking(db_session):
    booking = create_allowed_booking(db_session)
    booking_id = booking.id

    lifecycle.hard_delete(db_session, booking_id=booking_id, actor_id=SENDER, notifier=MagicMock())

    assert crud_booking.get(db_session, booking_id) is None
    assert crud_booking_history.get_by_booking_id(db_session, booking_id) is None


def test_hard_delete_history_entry(db_session):
    booking = create_booking(db_session)
    booking_id = booking.id
    lifecycle.cancel(db_session, booking_id=booking_id, actor_id=SENDER, notifier=MagicMock())

    lifecycle.hard_delete(db_session, booking_id=booking_id, actor_id=RECEIVER, notifier=MagicMock())

    assert crud_booking_history.get_by_booking_id(db_session, booking_id) is None


def test_hard_delete_by_outsider_is_unauthorized(db_session):
    booking = create_booking(db_session)
    booking_id = booking.id
    lifecycle.cancel(db_session, booking_id=booking_id, actor_id=SENDER, notifier=MagicMock())

    with pytest.raises(Unauthorized):
        lifecycle.hard_delete(db_session, booking_id=booking_id, actor_id=OUTSIDER, notifier=MagicMock())


def test_hard_delete_unknown_booking(db_session):
    with pytest.raises(BookingNotFound):
        lifecycle.hard_delete(db_session, booking_id="bkg_missing", actor_id=SENDER, notifier=MagicMock())


def test_history_listing_for_party(db_session):
    for _ in range(3):
        booking = create_booking(db_session)
        lifecycle.cancel(db_session, booking_id=booking.id, actor_id=SENDER, notifier=MagicMock())

    result = lifecycle.list_history(db_session, user_id=RECEIVER, page_size=2)

    assert len(result["entries"]) == 2
    assert result["pagination"]["total_count"] == 3
    assert result["pagination"]["total_pages"] == 2
    assert lifecycle.list_history(db_session, user_id=OUTSIDER)["entries"] == []
