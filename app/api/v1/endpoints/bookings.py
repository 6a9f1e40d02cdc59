# app/api/v1/endpoints/bookings.py
"""Booking negotiation, approval and publication endpoints for the two parties."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.crud import crud_booking
from app.schemas.booking import (
    AcknowledgeChangesResponse,
    BookingChangeResponse,
    BookingCreate,
    BookingHistoryListResult,
    BookingHistoryResponse,
    BookingListResult,
    BookingResponse,
    BookingStatus,
    BookingUpdate,
    BookingView,
    ConfirmRequest,
    PartyRole,
    ReasonRequest,
    RejectRequest,
    VisibleFieldsResponse,
)
from app.schemas.public_event import PublicEventResponse
from app.schemas.token import TokenPayload
from app.services.booking import (
    approval,
    disclosure,
    lifecycle,
    negotiation,
    publication,
)
from app.services.booking.errors import BookingNotFound
from app.services.concept_client import ConceptServiceClient, get_concept_client
from app.services.profile_client import ProfileServiceClient, get_profile_client
from app.utils.kafka_helpers import NotificationDispatcher, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ── Creation & listing ────────────────────────────────────────────────

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    profiles: ProfileServiceClient = Depends(get_profile_client),
    concepts: ConceptServiceClient = Depends(get_concept_client),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Request a booking. The caller becomes the sender."""
    return lifecycle.create_booking(
        db,
        sender_id=current_user.sub,
        data=booking_in,
        profiles=profiles,
        concepts=concepts,
        notifier=notifier,
    )


@router.get("", response_model=BookingListResult)
def list_bookings(
    role: Optional[PartyRole] = Query(None),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return crud_booking.list_for_party(
        db,
        current_user.sub,
        role=role,
        status=status_filter.value if status_filter else None,
        page=page,
        page_size=page_size,
    )


@router.get("/history", response_model=BookingHistoryListResult)
def list_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return lifecycle.list_history(
        db, user_id=current_user.sub, page=page, page_size=page_size
    )


# ── Reads ─────────────────────────────────────────────────────────────

@router.get("/{bookingId}", response_model=BookingView)
def get_booking(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: Optional[TokenPayload] = Depends(deps.get_current_user_optional),
):
    """Disclosure-filtered view: parties see everything, others only what was published."""
    viewer_id = current_user.sub if current_user else None
    return disclosure.view_booking(db, booking_id=bookingId, viewer_id=viewer_id)


@router.get("/{bookingId}/full", response_model=BookingResponse)
def get_booking_record(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return lifecycle.get_booking(db, booking_id=bookingId, actor_id=current_user.sub)


@router.get("/{bookingId}/visible-fields", response_model=VisibleFieldsResponse)
def get_visible_fields(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: Optional[TokenPayload] = Depends(deps.get_current_user_optional),
):
    booking = crud_booking.get(db, bookingId)
    if booking is None:
        raise BookingNotFound(bookingId)
    result = disclosure.visible_fields(
        booking, current_user.sub if current_user else None
    )
    return {"fields": sorted(result.fields), "contact_info": result.contact_info}


# ── Negotiation ───────────────────────────────────────────────────────

@router.patch("/{bookingId}", response_model=BookingResponse)
def update_booking(
    bookingId: str,
    changes: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return negotiation.update_booking(
        db,
        booking_id=bookingId,
        actor_id=current_user.sub,
        changes=changes,
        notifier=notifier,
    )


@router.post("/{bookingId}/allow", response_model=BookingResponse)
def allow_booking(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return lifecycle.allow(
        db, booking_id=bookingId, actor_id=current_user.sub, notifier=notifier
    )


@router.post("/{bookingId}/reject", response_model=BookingHistoryResponse)
def reject_booking(
    bookingId: str,
    body: RejectRequest,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return lifecycle.reject(
        db,
        booking_id=bookingId,
        actor_id=current_user.sub,
        reason=body.reason,
        notifier=notifier,
    )


@router.get("/{bookingId}/changes", response_model=List[BookingChangeResponse])
def list_changes(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return negotiation.list_changes(db, booking_id=bookingId, actor_id=current_user.sub)


@router.post(
    "/{bookingId}/changes/acknowledge", response_model=AcknowledgeChangesResponse
)
def acknowledge_changes(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    count = negotiation.acknowledge_changes(
        db, booking_id=bookingId, actor_id=current_user.sub
    )
    return {"acknowledged": count}


# ── Approval & publication ────────────────────────────────────────────

@router.post("/{bookingId}/confirm", response_model=BookingResponse)
def confirm_booking(
    bookingId: str,
    body: ConfirmRequest,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return approval.confirm(
        db,
        booking_id=bookingId,
        actor_id=current_user.sub,
        public_field_settings=body.public_field_settings,
        has_read_agreement=body.has_read_agreement,
        expected_version=body.expected_version,
        notifier=notifier,
    )


@router.post(
    "/{bookingId}/publish",
    response_model=PublicEventResponse,
    status_code=status.HTTP_201_CREATED,
)
def publish_booking(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return publication.publish(
        db, booking_id=bookingId, actor_id=current_user.sub, notifier=notifier
    )


@router.post("/{bookingId}/complete", response_model=BookingResponse)
def complete_booking(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return lifecycle.complete(
        db, booking_id=bookingId, actor_id=current_user.sub, notifier=notifier
    )


# ── Cancellation & deletion ───────────────────────────────────────────

@router.post("/{bookingId}/cancel", response_model=BookingHistoryResponse)
def cancel_booking(
    bookingId: str,
    body: Optional[ReasonRequest] = None,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return lifecycle.cancel(
        db,
        booking_id=bookingId,
        actor_id=current_user.sub,
        reason=body.reason if body else None,
        notifier=notifier,
    )


@router.delete("/{bookingId}", response_model=BookingHistoryResponse)
def soft_delete_booking(
    bookingId: str,
    reason: Optional[str] = Query(None, max_length=1000),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return lifecycle.soft_delete(
        db,
        booking_id=bookingId,
        actor_id=current_user.sub,
        reason=reason,
        notifier=notifier,
    )


@router.delete("/{bookingId}/permanent", status_code=status.HTTP_204_NO_CONTENT)
def hard_delete_booking(
    bookingId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    lifecycle.hard_delete(
        db, booking_id=bookingId, actor_id=current_user.sub, notifier=notifier
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
