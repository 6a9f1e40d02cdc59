# app/services/booking/status.py
"""
Booking status state machine.

    pending -> allowed -> approved_by_sender | approved_by_receiver
            -> approved_by_both -> upcoming -> completed

cancelled and deleted are reachable from every non-terminal state.
"""
import logging
from typing import Optional

from app.schemas.booking import BookingStatus, PartyRole
from app.services.booking.errors import InvalidStatus

logger = logging.getLogger(__name__)

S = BookingStatus

TERMINAL_STATUSES = frozenset({S.UPCOMING, S.COMPLETED, S.CANCELLED, S.DELETED})
NON_TERMINAL_STATUSES = frozenset(set(S) - TERMINAL_STATUSES)

# Statuses in which a party may edit negotiable fields
EDITABLE_STATUSES = frozenset({
    S.PENDING, S.ALLOWED, S.APPROVED_BY_SENDER, S.APPROVED_BY_RECEIVER, S.APPROVED_BY_BOTH,
})
# Statuses whose approvals are voided by a field edit
APPROVAL_STATUSES = frozenset({
    S.APPROVED_BY_SENDER, S.APPROVED_BY_RECEIVER, S.APPROVED_BY_BOTH,
})
CONFIRMABLE_STATUSES = frozenset({
    S.ALLOWED, S.APPROVED_BY_SENDER, S.APPROVED_BY_RECEIVER,
})
# Contact info is exchanged between the parties from here on
CONTACT_SHARING_STATUSES = frozenset(set(S) - {S.PENDING})
PUBLISHED_STATUSES = frozenset({S.UPCOMING, S.COMPLETED})

VALID_TRANSITIONS = {
    S.PENDING: {S.ALLOWED, S.CANCELLED, S.DELETED},
    S.ALLOWED: {S.APPROVED_BY_SENDER, S.APPROVED_BY_RECEIVER, S.CANCELLED, S.DELETED},
    S.APPROVED_BY_SENDER: {S.APPROVED_BY_BOTH, S.ALLOWED, S.CANCELLED, S.DELETED},
    S.APPROVED_BY_RECEIVER: {S.APPROVED_BY_BOTH, S.ALLOWED, S.CANCELLED, S.DELETED},
    S.APPROVED_BY_BOTH: {S.UPCOMING, S.ALLOWED, S.CANCELLED, S.DELETED},
    S.UPCOMING: {S.COMPLETED, S.DELETED},
    S.COMPLETED: {S.DELETED},
    S.CANCELLED: {S.DELETED},
    S.DELETED: set(),
}


def parse_status(value) -> BookingStatus:
    """Coerce a stored value into the closed status set."""
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValueError(f"Unrecognized booking status: {value!r}")


def can_transition(old_status, new_status) -> bool:
    return parse_status(new_status) in VALID_TRANSITIONS[parse_status(old_status)]


def transition(booking, new_status: BookingStatus, operation: str) -> BookingStatus:
    """
    Validate and apply a status transition on a booking record.
    Returns the previous status; raises InvalidStatus when the move is illegal.
    """
    old_status = parse_status(booking.status)
    if not can_transition(old_status, new_status):
        logger.warning(
            f"Rejected transition {old_status.value} -> {new_status.value} "
            f"for booking {booking.id} ({operation})"
        )
        raise InvalidStatus(booking.id, old_status.value, operation)
    booking.status = new_status.value
    return old_status


def status_after_confirmation(sender_confirmed: bool, receiver_confirmed: bool) -> BookingStatus:
    """Status implied by the combination of confirmation flags."""
    if sender_confirmed and receiver_confirmed:
        return S.APPROVED_BY_BOTH
    if sender_confirmed:
        return S.APPROVED_BY_SENDER
    if receiver_confirmed:
        return S.APPROVED_BY_RECEIVER
    return S.ALLOWED


def role_of(booking, actor_id: str) -> Optional[PartyRole]:
    if actor_id == booking.sender_id:
        return PartyRole.SENDER
    if actor_id == booking.receiver_id:
        return PartyRole.RECEIVER
    return None
