"""Seat availability schemas."""

from datetime import datetime
from decimal import Decimal

from seatclaim.schemas.common import BaseSchema


class SeatAvailabilityResponse(BaseSchema):
    """Availability of one seat."""

    event_id: int
    seat_number: int
    available: bool
    status: str
    expires_at: datetime | None = None


class AvailableSeatsResponse(BaseSchema):
    event_id: int
    category: str | None = None
    total_seats: int
    available_seats: list[int]
    available_count: int
    occupied_count: int


class SeatmapSeats(BaseSchema):
    total: int
    available: int
    reserved: int
    occupied: int
    reserved_seats: list[int]
    occupied_seats: list[int]


class SeatmapResponse(BaseSchema):
    event_id: int
    name: str
    start_date: datetime
    capacity: int
    seats: SeatmapSeats


class SeatPricing(BaseSchema):
    min_price: Decimal
    max_price: Decimal
    currency: str


class SeatPricingResponse(BaseSchema):
    event_id: int
    pricing: SeatPricing
