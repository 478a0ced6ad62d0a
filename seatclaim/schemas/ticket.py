"""Ticket schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from seatclaim.schemas.claim import TicketCategory
from seatclaim.schemas.common import BaseSchema


class TicketIssueRequest(BaseSchema):
    """Schema for issuing a ticket without a prior reservation."""

    event_id: int
    seat_no: int = Field(..., ge=1)
    attendee_id: str | None = Field(None, min_length=1, max_length=50)
    category: TicketCategory
    price: Decimal = Field(..., ge=0)


class TicketCancelRequest(BaseSchema):
    reason: str = Field(..., min_length=1, max_length=500)


class TicketTransferRequest(BaseSchema):
    new_attendee_id: str = Field(..., min_length=1, max_length=50)
    reason: str | None = Field(None, max_length=500)


class TicketValidateRequest(BaseSchema):
    """Schema for checking a ticket in at the door."""

    ticket_id: str = Field(..., min_length=1, max_length=26)
    event_id: int
    gate: str | None = Field(None, max_length=50)


class TicketValidationResponse(BaseSchema):
    ticket_id: str
    attendee_id: str
    seat_number: int
    category: str
    checked_in_at: datetime
