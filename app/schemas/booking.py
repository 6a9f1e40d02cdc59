# app/schemas/booking.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime, date
from decimal import Decimal
from enum import Enum


# --- Enums ---

class BookingStatus(str, Enum):
    PENDING = "pending"
    ALLOWED = "allowed"
    APPROVED_BY_SENDER = "approved_by_sender"
    APPROVED_BY_RECEIVER = "approved_by_receiver"
    APPROVED_BY_BOTH = "approved_by_both"
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DELETED = "deleted"


class PricingMode(str, Enum):
    FIXED_FEE = "fixed_fee"
    DOOR_DEAL = "door_deal"
    BY_AGREEMENT = "by_agreement"


class ShareableField(str, Enum):
    """Fields a party may choose to disclose on the public listing."""
    TITLE = "title"
    DESCRIPTION = "description"
    EVENT_DATE = "event_date"
    TIME = "time"
    VENUE = "venue"
    ADDRESS = "address"
    TICKET_PRICE = "ticket_price"
    AUDIENCE_ESTIMATE = "audience_estimate"
    PORTFOLIO = "portfolio"
    ARTIST_BIO = "artist_bio"


class PrivateField(str, Enum):
    """Fields that are never public, whatever a party asks for."""
    PRICE = "price"  # artist fee / door percentage / pricing mode
    CONTACT_INFO = "contact_info"
    PERSONAL_MESSAGE = "personal_message"
    TECH_SPEC = "tech_spec"
    HOSPITALITY_RIDER = "hospitality_rider"


class PartyRole(str, Enum):
    SENDER = "sender"
    RECEIVER = "receiver"


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# --- Value objects ---

class ContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None


class ConceptSeed(BaseModel):
    """Values copied from a concept at creation time."""
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    expected_audience: Optional[int] = None
    tech_spec_ref: Optional[str] = None
    hospitality_rider_ref: Optional[str] = None


# --- Create / Update ---

class BookingCreate(BaseModel):
    receiver_id: str = Field(..., min_length=1)
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    event_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    venue: Optional[str] = None
    address: Optional[str] = None
    audience_estimate: Optional[int] = None
    ticket_price: Optional[Decimal] = Field(None, ge=0)
    pricing_mode: Optional[PricingMode] = None
    artist_fee: Optional[Decimal] = Field(None, ge=0)
    door_percentage: Optional[int] = None
    tech_spec: Optional[str] = None
    hospitality_rider: Optional[str] = None
    personal_message: Optional[str] = None
    concept_ids: List[str] = []
    selected_concept_id: Optional[str] = None


class BookingUpdate(BaseModel):
    """Partial negotiation edit. Only fields that are set are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    event_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    venue: Optional[str] = None
    address: Optional[str] = None
    audience_estimate: Optional[int] = None
    ticket_price: Optional[Decimal] = Field(None, ge=0)
    pricing_mode: Optional[PricingMode] = None
    artist_fee: Optional[Decimal] = Field(None, ge=0)
    door_percentage: Optional[int] = None
    tech_spec: Optional[str] = None
    hospitality_rider: Optional[str] = None
    personal_message: Optional[str] = None
    selected_concept_id: Optional[str] = None
    expected_version: Optional[int] = None


class ConfirmRequest(BaseModel):
    public_field_settings: Dict[str, bool] = {}
    has_read_agreement: bool = False
    expected_version: Optional[int] = None


class ReasonRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v.strip()


# --- Response shapes ---

class BookingResponse(BaseModel):
    """Full record, returned to the parties only."""
    id: str
    sender_id: str
    receiver_id: str
    status: BookingStatus
    title: str
    description: Optional[str] = None
    event_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None
    address: Optional[str] = None
    audience_estimate: Optional[int] = None
    ticket_price: Optional[float] = None
    pricing_mode: PricingMode
    artist_fee: Optional[float] = None
    door_percentage: Optional[int] = None
    tech_spec: Optional[str] = None
    hospitality_rider: Optional[str] = None
    personal_message: Optional[str] = None
    concept_ids: List[str] = []
    selected_concept_id: Optional[str] = None
    sender_confirmed: bool
    receiver_confirmed: bool
    sender_confirmed_at: Optional[datetime] = None
    receiver_confirmed_at: Optional[datetime] = None
    public_visibility_settings: Dict[str, bool] = {}
    is_public_after_approval: bool
    agreement_summary: Optional[dict] = None
    allowed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingContacts(BaseModel):
    sender: Optional[ContactInfo] = None
    receiver: Optional[ContactInfo] = None


class BookingView(BaseModel):
    """Disclosure-filtered view of a booking for a given viewer."""
    id: str
    status: BookingStatus
    is_party: bool
    fields: dict = {}
    contact_info: Optional[BookingContacts] = None


class VisibleFieldsResponse(BaseModel):
    fields: List[str]
    contact_info: Optional[BookingContacts] = None


class BookingListItem(BaseModel):
    id: str
    title: str
    status: BookingStatus
    role: PartyRole
    event_date: Optional[date] = None
    venue: Optional[str] = None
    counterpart_id: str
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int


class BookingListResult(BaseModel):
    bookings: List[BookingListItem]
    pagination: Pagination


class BookingChangeResponse(BaseModel):
    id: str
    booking_id: str
    changed_by: str
    field_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    acknowledged_by_sender: bool
    acknowledged_by_receiver: bool
    change_timestamp: datetime

    model_config = {"from_attributes": True}


class BookingHistoryResponse(BaseModel):
    id: str
    booking_id: str
    sender_id: str
    receiver_id: str
    status: BookingStatus
    previous_status: BookingStatus
    title: str
    description: Optional[str] = None
    event_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None
    address: Optional[str] = None
    audience_estimate: Optional[int] = None
    selected_concept_id: Optional[str] = None
    archived_by: str
    deletion_reason: Optional[str] = None
    deleted_at: datetime
    booking_created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AcknowledgeChangesResponse(BaseModel):
    acknowledged: int


class BookingHistoryListResult(BaseModel):
    entries: List[BookingHistoryResponse]
    pagination: Pagination
