"""Reservations API endpoints."""

from fastapi import APIRouter, status

from seatclaim.api.v1.dependencies import (
    AdminActor,
    CurrentActor,
    ReservationServiceDep,
    TicketServiceDep,
    resolve_attendee,
)
from seatclaim.config import get_settings
from seatclaim.models.claim import TicketCategory
from seatclaim.schemas.claim import ClaimResponse
from seatclaim.schemas.common import ApiResponse
from seatclaim.schemas.reservation import (
    CleanupResponse,
    ReservationConfirmRequest,
    ReservationCreate,
    ReservationCreatedResponse,
    ReservationExtendRequest,
    ReservationExtendResponse,
)

settings = get_settings()

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[ReservationCreatedResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a seat",
)
async def create_reservation(
    reservation_data: ReservationCreate,
    actor: CurrentActor,
    reservation_service: ReservationServiceDep,
) -> ApiResponse[ReservationCreatedResponse]:
    """
    Hold one seat for a limited time.

    The hold is released automatically at ``expiresAt`` unless it is
    confirmed or extended first.
    """
    attendee_id = resolve_attendee(actor, reservation_data.attendee_id)
    duration = reservation_data.duration or settings.RESERVATION_DEFAULT_MINUTES

    claim = await reservation_service.create_reservation(
        event_id=reservation_data.event_id,
        seat_number=reservation_data.seat_no,
        attendee_id=attendee_id,
        duration_minutes=duration,
    )
    return ApiResponse(
        message="Seat reserved successfully",
        data=ReservationCreatedResponse(
            reservation_id=claim.claim_id,
            seat_no=claim.seat_number,
            expires_at=claim.reservation_expires_at,
            duration=duration,
        ),
    )


@router.post(
    "/cleanup",
    response_model=ApiResponse[CleanupResponse],
    summary="Sweep expired reservations",
)
async def cleanup_expired_reservations(
    actor: AdminActor,
    reservation_service: ReservationServiceDep,
) -> ApiResponse[CleanupResponse]:
    """Run the expiry sweep now. Admin only."""
    count = await reservation_service.cleanup_expired_reservations()
    return ApiResponse(
        message=f"Cleaned up {count} expired reservations",
        data=CleanupResponse(count=count),
    )


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[ClaimResponse]],
    summary="Get user reservations",
)
async def get_user_reservations(
    user_id: str,
    actor: CurrentActor,
    reservation_service: ReservationServiceDep,
) -> ApiResponse[list[ClaimResponse]]:
    """Live reservations of a user. Self or admin."""
    claims = await reservation_service.get_user_reservations(user_id, actor)
    return ApiResponse(data=[ClaimResponse.model_validate(c) for c in claims])


@router.get(
    "/{reservation_id}",
    response_model=ApiResponse[ClaimResponse],
    summary="Get reservation details",
)
async def get_reservation(
    reservation_id: str,
    actor: CurrentActor,
    reservation_service: ReservationServiceDep,
) -> ApiResponse[ClaimResponse]:
    claim = await reservation_service.get_reservation(reservation_id, actor)
    return ApiResponse(data=ClaimResponse.model_validate(claim))


@router.put(
    "/{reservation_id}/extend",
    response_model=ApiResponse[ReservationExtendResponse],
    summary="Extend reservation",
)
async def extend_reservation(
    reservation_id: str,
    extend_data: ReservationExtendRequest,
    actor: CurrentActor,
    reservation_service: ReservationServiceDep,
) -> ApiResponse[ReservationExtendResponse]:
    """Extend reservation expiration time."""
    claim = await reservation_service.extend_reservation(
        reservation_id=reservation_id,
        attendee_id=actor.user_id,
        additional_minutes=extend_data.additional_minutes,
    )
    return ApiResponse(
        message="Reservation extended successfully",
        data=ReservationExtendResponse(
            reservation_id=claim.claim_id,
            new_expires_at=claim.reservation_expires_at,
        ),
    )


@router.delete(
    "/{reservation_id}",
    response_model=ApiResponse[ClaimResponse],
    summary="Cancel reservation",
)
async def cancel_reservation(
    reservation_id: str,
    actor: CurrentActor,
    reservation_service: ReservationServiceDep,
) -> ApiResponse[ClaimResponse]:
    """Cancel a reservation."""
    claim = await reservation_service.cancel_reservation(reservation_id, actor.user_id)
    return ApiResponse(
        message="Reservation cancelled successfully",
        data=ClaimResponse.model_validate(claim),
    )


@router.post(
    "/{reservation_id}/confirm",
    response_model=ApiResponse[ClaimResponse],
    summary="Confirm reservation",
)
async def confirm_reservation(
    reservation_id: str,
    confirm_data: ReservationConfirmRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> ApiResponse[ClaimResponse]:
    """Turn a live reservation into a ticket once payment has gone through."""
    claim = await ticket_service.confirm_reservation(
        reservation_id=reservation_id,
        attendee_id=actor.user_id,
        category=TicketCategory(confirm_data.category.value),
        price=confirm_data.price,
        payment_id=confirm_data.payment_id,
    )
    return ApiResponse(
        message="Reservation confirmed successfully",
        data=ClaimResponse.model_validate(claim),
    )
