# app/services/booking/approval.py
"""
Dual-confirmation protocol.

Each party confirms the current terms once, choosing which shareable
fields may be shown publicly. Status follows the flag combination:
one flag gives ``approved_by_sender`` / ``approved_by_receiver``, both
give ``approved_by_both``.
"""
import logging
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from app.crud import crud_booking, crud_booking_audit_log
from app.models.booking import Booking
from app.schemas.booking import BookingStatus, PartyRole
from app.services.booking import records, visibility
from app.services.booking.errors import (
    AlreadyConfirmed,
    BookingValidationError,
    InvalidStatus,
)
from app.services.booking.status import (
    CONFIRMABLE_STATUSES,
    parse_status,
    status_after_confirmation,
    transition,
)
from app.utils.kafka_helpers import BookingNotification, notifier as default_notifier

logger = logging.getLogger(__name__)


def confirm(
    db: Session,
    *,
    booking_id: str,
    actor_id: str,
    public_field_settings: Mapping[str, bool],
    has_read_agreement: bool,
    expected_version: Optional[int] = None,
    notifier=default_notifier,
) -> Booking:
    booking = records.load_for_update(db, booking_id, "confirm")
    role = records.require_party(booking, actor_id, "confirm")

    status = parse_status(booking.status)
    if status not in CONFIRMABLE_STATUSES:
        raise InvalidStatus(booking.id, status.value, "confirm")

    is_sender = role == PartyRole.SENDER
    if booking.sender_confirmed if is_sender else booking.receiver_confirmed:
        raise AlreadyConfirmed(booking.id, role.value)
    if not has_read_agreement:
        raise BookingValidationError("has_read_agreement", "acknowledgment_required")
    records.check_version(booking, expected_version)

    counterpart_confirmed = (
        booking.receiver_confirmed if is_sender else booking.sender_confirmed
    )
    settings = visibility.merge_settings(
        (booking.public_visibility_settings or {}) if counterpart_confirmed else None,
        public_field_settings,
    )
    now = records.utcnow()
    if is_sender:
        booking.sender_confirmed = True
        booking.sender_confirmed_at = now
        booking.sender_read_agreement = True
    else:
        booking.receiver_confirmed = True
        booking.receiver_confirmed_at = now
        booking.receiver_read_agreement = True

    booking.public_visibility_settings = settings
    booking.is_public_after_approval = visibility.is_public(settings)
    summary = visibility.build_agreement_summary(settings, role, actor_id)
    booking.agreement_summary = summary

    new_status = status_after_confirmation(
        booking.sender_confirmed, booking.receiver_confirmed
    )
    transition(booking, new_status, "confirm")
    if new_status == BookingStatus.APPROVED_BY_BOTH:
        booking.approved_at = now

    crud_booking_audit_log.create_audit_entry(
        db,
        booking_id=booking.id,
        user_id=actor_id,
        action="confirm",
        old_state=status.value,
        new_state=new_status.value,
        metadata={"role": role.value, "agreement_summary": summary},
    )

    booking = crud_booking.commit(db, booking)
    logger.info(
        f"Booking {booking.id} confirmed by {role.value} {actor_id}: "
        f"{status.value} -> {new_status.value}"
    )

    records.notify_safely(
        notifier,
        records.counterpart_of(booking, actor_id),
        BookingNotification.CONFIRMED,
        booking.id,
        {"role": role.value},
    )
    if new_status == BookingStatus.APPROVED_BY_BOTH:
        for party_id in (booking.sender_id, booking.receiver_id):
            records.notify_safely(
                notifier, party_id, BookingNotification.APPROVED_BY_BOTH, booking.id
            )
    return booking
