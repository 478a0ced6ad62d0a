"""Event schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field

from seatclaim.schemas.common import BaseSchema


class EventStatus(str, Enum):
    """Event status enum."""

    DRAFT = "draft"
    ACTIVE = "active"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class EventCreate(BaseSchema):
    """Schema for creating an event."""

    name: str = Field(..., min_length=1, max_length=255)
    start_date: datetime
    capacity: int = Field(..., gt=0)
    status: EventStatus = EventStatus.DRAFT
    currency: str | None = Field(None, min_length=3, max_length=3)
    min_price: Decimal = Field(Decimal("0"), ge=0)
    max_price: Decimal = Field(Decimal("0"), ge=0)


class EventStatusUpdate(BaseSchema):
    """Schema for changing event status."""

    status: EventStatus


class EventAnalytics(BaseSchema):
    """Counters maintained by ticket issuance."""

    tickets_sold: int
    attendees: int
    revenue: Decimal


class EventResponse(BaseSchema):
    """Schema for event response."""

    event_id: int
    name: str
    organizer_id: str | None
    start_date: datetime
    capacity: int
    status: EventStatus
    currency: str
    analytics: EventAnalytics

    @classmethod
    def from_event(cls, event) -> "EventResponse":
        return cls(
            event_id=event.event_id,
            name=event.name,
            organizer_id=event.organizer_id,
            start_date=event.start_date,
            capacity=event.capacity,
            status=EventStatus(event.status.value),
            currency=event.currency,
            analytics=EventAnalytics(
                tickets_sold=event.tickets_sold,
                attendees=event.attendees,
                revenue=event.revenue,
            ),
        )
