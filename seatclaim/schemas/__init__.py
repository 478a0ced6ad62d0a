"""Pydantic schemas for API request/response."""

from seatclaim.schemas.claim import ClaimResponse, ClaimStatus, TicketCategory
from seatclaim.schemas.common import ApiResponse, ErrorResponse, FieldError
from seatclaim.schemas.event import EventCreate, EventResponse, EventStatus
from seatclaim.schemas.payment import PaymentCreate, PaymentResponse, PaymentStatsResponse
from seatclaim.schemas.reservation import (
    ReservationConfirmRequest,
    ReservationCreate,
    ReservationCreatedResponse,
)
from seatclaim.schemas.seatmap import (
    SeatAvailabilityResponse,
    SeatmapResponse,
    SeatPricingResponse,
)
from seatclaim.schemas.ticket import TicketIssueRequest, TicketValidationResponse

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "FieldError",
    "ClaimResponse",
    "ClaimStatus",
    "TicketCategory",
    "EventCreate",
    "EventResponse",
    "EventStatus",
    "ReservationCreate",
    "ReservationCreatedResponse",
    "ReservationConfirmRequest",
    "TicketIssueRequest",
    "TicketValidationResponse",
    "SeatAvailabilityResponse",
    "SeatmapResponse",
    "SeatPricingResponse",
    "PaymentCreate",
    "PaymentResponse",
    "PaymentStatsResponse",
]
