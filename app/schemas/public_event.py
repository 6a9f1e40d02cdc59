# app/schemas/public_event.py
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime, date

from app.schemas.booking import Pagination


class PublicEventResponse(BaseModel):
    id: str
    source_booking_id: str
    artist_id: str
    organizer_id: str
    portfolio_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None
    address: Optional[str] = None
    ticket_price: Optional[float] = None
    audience_estimate: Optional[int] = None
    show_portfolio: bool
    show_artist_bio: bool
    portfolio_owner_id: str
    published_at: datetime

    model_config = {"from_attributes": True}


class PublicEventListResult(BaseModel):
    events: List[PublicEventResponse]
    pagination: Pagination


class CompletePastEventsResponse(BaseModel):
    completed_booking_ids: List[str]
