import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy import text

from app.crud import crud_booking, crud_booking_audit_log, crud_booking_change
from app.schemas.booking import BookingUpdate
from app.services.booking.errors import (
    BookingValidationError,
    ConcurrentModification,
    InvalidStatus,
    Unauthorized,
)
from app.services.booking.negotiation import (
    acknowledge_changes,
    list_changes,
    resolve_pricing,
    update_booking,
)
from app.utils.kafka_helpers import BookingNotification
from tests.utils.booking import (
    OUTSIDER,
    RECEIVER,
    SENDER,
    confirm,
    create_allowed_booking,
    create_approved_booking,
    create_booking,
    create_published_booking,
)


def _edit(db, booking, actor_id, notifier=None, **changes):
    return update_booking(
        db,
        booking_id=booking.id,
        actor_id=actor_id,
        changes=BookingUpdate(**changes),
        notifier=notifier or MagicMock(),
    )


def test_receiver_edit_while_pending_allows_negotiation(db_session):
    booking = create_booking(db_session)
    notifier = MagicMock()

    booking = _edit(db_session, booking, RECEIVER, notifier, venue="Blue Room")

    assert booking.status == "allowed"
    assert booking.venue == "Blue Room"
    assert booking.allowed_at is not None
    notifier.notify.assert_called_once()
    assert notifier.notify.call_args.args[:2] == (SENDER, BookingNotification.ALLOWED)


def test_sender_edit_while_pending_stays_pending(db_session):
    booking = create_booking(db_session)

    booking = _edit(db_session, booking, SENDER, venue="Blue Room")

    assert booking.status == "pending"


@pytest.mark.parametrize("first_confirmer", [SENDER, RECEIVER])
def test_edit_after_single_confirmation_resets_approval(db_session, first_confirmer):
    booking = create_allowed_booking(db_session)
    booking = confirm(db_session, booking, first_confirmer, {"title": True})

    booking = _edit(db_session, booking, RECEIVER, audience_estimate=300)

    assert booking.status == "allowed"
    assert booking.sender_confirmed is False
    assert booking.receiver_confirmed is False
    assert booking.sender_read_agreement is False
    assert booking.public_visibility_settings == {}
    assert booking.is_public_after_approval is False
    assert booking.agreement_summary is None


def test_edit_after_both_confirmed_resets_and_notifies(db_session):
    booking = create_approved_booking(db_session, {"title": True})
    notifier = MagicMock()

    booking = _edit(db_session, booking, RECEIVER, notifier, audience_estimate=50)

    assert booking.status == "allowed"
    assert not booking.sender_confirmed and not booking.receiver_confirmed
    assert booking.approved_at is None
    event_type = notifier.notify.call_args.args[1]
    assert event_type == BookingNotification.APPROVALS_RESET

    actions = [e.action for e in crud_booking_audit_log.get_audit_log_for_booking(db_session, booking.id)]
    assert "approvals_reset" in actions


def test_noop_edit_keeps_approvals_and_version(db_session):
    booking = create_approved_booking(db_session, venue="Blue Room")
    version = booking.version

    booking = _edit(db_session, booking, SENDER, venue="Blue Room")

    assert not db_session.in_transaction()
    assert booking.status == "approved_by_both"
    assert booking.version == version
    assert crud_booking_change.get_changes_for_booking(db_session, booking.id) == []


def test_outsider_cannot_edit(db_session):
    booking = create_allowed_booking(db_session)

    with pytest.raises(Unauthorized):
        _edit(db_session, booking, OUTSIDER, venue="Elsewhere")


def test_published_booking_is_frozen(db_session):
    booking, _ = create_published_booking(db_session)

    with pytest.raises(InvalidStatus) as exc_info:
        _edit(db_session, booking, SENDER, venue="Elsewhere")
    assert exc_info.value.status == "upcoming"


def test_stale_expected_version_is_rejected(db_session):
    booking = create_allowed_booking(db_session)

    with pytest.raises(ConcurrentModification):
        _edit(db_session, booking, SENDER, venue="Elsewhere", expected_version=booking.version - 1)


def test_concurrent_write_between_load_and_commit_is_rejected(db_session):
    booking = create_allowed_booking(db_session)
    # Another session bumps the version after this one read the row
    db_session.execute(
        text("UPDATE bookings SET version = version + 1 WHERE id = :id"),
        {"id": booking.id},
    )
    booking.venue = "Elsewhere"

    with pytest.raises(ConcurrentModification):
        crud_booking.commit(db_session, booking)


def test_negative_audience_is_rejected(db_session):
    booking = create_allowed_booking(db_session)

    with pytest.raises(BookingValidationError) as exc_info:
        _edit(db_session, booking, SENDER, audience_estimate=-1)
    assert exc_info.value.field == "audience_estimate"


def test_end_date_before_event_date_is_rejected(db_session):
    booking = create_allowed_booking(db_session, event_date=date(2026, 6, 1))

    with pytest.raises(BookingValidationError):
        _edit(db_session, booking, SENDER, end_date=date(2026, 5, 31))


def test_switching_pricing_mode_clears_other_figures(db_session):
    booking = create_allowed_booking(db_session, artist_fee=Decimal("5000"))
    assert booking.pricing_mode == "fixed_fee"

    booking = _edit(db_session, booking, RECEIVER, door_percentage=70)

    assert booking.pricing_mode == "door_deal"
    assert booking.door_percentage == 70
    assert booking.artist_fee is None


def test_two_pricing_figures_at_once_is_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        resolve_pricing(None, {"artist_fee": Decimal("100"), "door_percentage": 50})
    assert exc_info.value.context["reason"] == "multiple_pricing_modes"


def test_by_agreement_is_the_default_pricing_mode():
    assert resolve_pricing(None, {}) == {
        "pricing_mode": "by_agreement",
        "artist_fee": None,
        "door_percentage": None,
    }


def test_door_percentage_out_of_range():
    with pytest.raises(BookingValidationError):
        resolve_pricing(None, {"door_percentage": 120})


def test_changes_are_logged_and_acknowledged(db_session):
    booking = create_allowed_booking(db_session)
    _edit(db_session, booking, SENDER, venue="Blue Room", audience_estimate=120)

    changes = list_changes(db_session, booking_id=booking.id, actor_id=RECEIVER)
    assert {c.field_name for c in changes} == {"venue", "audience_estimate"}
    assert all(c.acknowledged_by_sender for c in changes)
    assert not any(c.acknowledged_by_receiver for c in changes)

    count = acknowledge_changes(db_session, booking_id=booking.id, actor_id=RECEIVER)

    assert count == 2
    db_session.expire_all()
    changes = list_changes(db_session, booking_id=booking.id, actor_id=RECEIVER)
    assert all(c.acknowledged_by_receiver for c in changes)


def test_outsider_cannot_read_change_log(db_session):
    booking = create_allowed_booking(db_session)

    with pytest.raises(Unauthorized):
        list_changes(db_session, booking_id=booking.id, actor_id=OUTSIDER)
