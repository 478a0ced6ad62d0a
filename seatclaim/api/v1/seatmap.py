"""Seat map and availability API endpoints. Public."""

from fastapi import APIRouter

from seatclaim.api.v1.dependencies import AvailabilityServiceDep
from seatclaim.schemas.claim import TicketCategory
from seatclaim.schemas.common import ApiResponse
from seatclaim.schemas.seatmap import (
    AvailableSeatsResponse,
    SeatAvailabilityResponse,
    SeatmapResponse,
    SeatPricingResponse,
)

router = APIRouter()


@router.get(
    "/{event_id}",
    response_model=ApiResponse[SeatmapResponse],
    summary="Get event seat map",
)
async def get_seatmap(
    event_id: int,
    availability_service: AvailabilityServiceDep,
) -> ApiResponse[SeatmapResponse]:
    seatmap = await availability_service.get_seatmap(event_id)
    return ApiResponse(data=SeatmapResponse.model_validate(seatmap))


@router.get(
    "/{event_id}/available",
    response_model=ApiResponse[AvailableSeatsResponse],
    summary="List available seats",
)
async def get_available_seats(
    event_id: int,
    availability_service: AvailabilityServiceDep,
    category: TicketCategory | None = None,
) -> ApiResponse[AvailableSeatsResponse]:
    """
    Seats not held by a live claim.

    With ``category`` only seats already held in that category are
    excluded.
    """
    seats = await availability_service.get_available_seats(
        event_id, category.value if category else None
    )
    return ApiResponse(data=AvailableSeatsResponse.model_validate(seats))


@router.get(
    "/{event_id}/seat/{seat_no}",
    response_model=ApiResponse[SeatAvailabilityResponse],
    summary="Check seat availability",
)
async def check_seat_availability(
    event_id: int,
    seat_no: int,
    availability_service: AvailabilityServiceDep,
) -> ApiResponse[SeatAvailabilityResponse]:
    result = await availability_service.check_seat_availability(event_id, seat_no)
    return ApiResponse(data=SeatAvailabilityResponse.model_validate(result))


@router.get(
    "/{event_id}/pricing",
    response_model=ApiResponse[SeatPricingResponse],
    summary="Get seat pricing",
)
async def get_seat_pricing(
    event_id: int,
    availability_service: AvailabilityServiceDep,
) -> ApiResponse[SeatPricingResponse]:
    pricing = await availability_service.get_seat_pricing(event_id)
    return ApiResponse(data=SeatPricingResponse.model_validate(pricing))
