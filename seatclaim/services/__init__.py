"""Services package."""

from seatclaim.services.availability_service import AvailabilityService
from seatclaim.services.event_service import EventService
from seatclaim.services.expiry import ExpiryScheduler
from seatclaim.services.payment_service import PaymentService
from seatclaim.services.reservation_service import ReservationService
from seatclaim.services.ticket_service import TicketService

__all__ = [
    "EventService",
    "ReservationService",
    "TicketService",
    "AvailabilityService",
    "PaymentService",
    "ExpiryScheduler",
]
