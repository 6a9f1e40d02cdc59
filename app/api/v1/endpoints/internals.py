# app/api/v1/endpoints/internals.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.schemas.public_event import CompletePastEventsResponse
from app.services.booking import lifecycle
from app.utils.kafka_helpers import NotificationDispatcher, get_notifier

router = APIRouter(tags=["Internal"])


@router.post(
    "/internal/bookings/complete-past", response_model=CompletePastEventsResponse
)
def complete_past_bookings(
    today: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    api_key: str = Depends(deps.get_internal_api_key),
):
    """
    Called by the platform scheduler. Marks every published booking whose
    event is over as completed.
    """
    completed = lifecycle.complete_past_events(db, today=today, notifier=notifier)
    return {"completed_booking_ids": completed}
