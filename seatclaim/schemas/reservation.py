"""Reservation schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from seatclaim.config import get_settings
from seatclaim.schemas.claim import TicketCategory
from seatclaim.schemas.common import BaseSchema

settings = get_settings()


class ReservationCreate(BaseSchema):
    """Schema for creating a reservation."""

    event_id: int
    seat_no: int = Field(..., ge=1)
    attendee_id: str | None = Field(None, min_length=1, max_length=50)
    duration: int | None = Field(
        None, ge=1, le=settings.RESERVATION_MAX_MINUTES, description="Hold length in minutes"
    )


class ReservationCreatedResponse(BaseSchema):
    reservation_id: str
    seat_no: int
    expires_at: datetime
    duration: int


class ReservationExtendRequest(BaseSchema):
    """Schema for extending reservation."""

    additional_minutes: int = Field(
        default=settings.EXTEND_DEFAULT_MINUTES, ge=1, le=settings.EXTEND_MAX_MINUTES
    )


class ReservationExtendResponse(BaseSchema):
    reservation_id: str
    new_expires_at: datetime


class ReservationConfirmRequest(BaseSchema):
    """Schema for converting a reservation into a ticket after payment."""

    category: TicketCategory
    price: Decimal = Field(..., ge=0)
    payment_id: str | None = Field(None, max_length=26)


class CleanupResponse(BaseSchema):
    count: int
