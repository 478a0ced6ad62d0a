"""SQLAlchemy models."""

from seatclaim.models.base import Base
from seatclaim.models.claim import ClaimStatus, SeatClaim, TicketCategory
from seatclaim.models.event import Event, EventStatus
from seatclaim.models.payment import Payment, PaymentMode, PaymentStatus

__all__ = [
    "Base",
    "Event",
    "EventStatus",
    "SeatClaim",
    "ClaimStatus",
    "TicketCategory",
    "Payment",
    "PaymentMode",
    "PaymentStatus",
]
