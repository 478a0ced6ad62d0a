"""Seat claim schemas shared by reservations and tickets."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from seatclaim.schemas.common import BaseSchema


class ClaimStatus(str, Enum):
    """Seat claim status enum."""

    RESERVED = "reserved"
    ACTIVE = "active"
    USED = "used"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class TicketCategory(str, Enum):
    """Ticket category enum."""

    STANDARD = "standard"
    VIP = "vip"
    PREMIUM = "premium"
    GENERAL = "general"
    FAN_PIT = "fan-pit"
    BALCONY = "balcony"


class CheckInResponse(BaseSchema):
    checked_in: bool
    checked_in_at: datetime | None = None
    checked_in_by: str | None = None
    gate: str | None = None


class TransferEntry(BaseSchema):
    from_attendee_id: str
    to_attendee_id: str
    transferred_at: datetime
    reason: str | None = None


class ClaimResponse(BaseSchema):
    """Full view of a reservation or ticket."""

    claim_id: str
    event_id: int
    attendee_id: str
    seat_number: int
    category: str
    price: Decimal
    currency: str
    status: ClaimStatus
    reserved_at: datetime | None = None
    reservation_expires_at: datetime | None = None
    issued_at: datetime | None = None
    ticket_number: str | None = None
    payment_ref: str | None = None
    check_in: CheckInResponse
    is_transferred: bool = False
    transferred_at: datetime | None = None
    transfer_history: list[TransferEntry] = []
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    refunded_at: datetime | None = None
