"""Tickets API endpoints."""

from fastapi import APIRouter, Query, status

from seatclaim.api.v1.dependencies import (
    CurrentActor,
    StaffActor,
    TicketServiceDep,
    resolve_attendee,
)
from seatclaim.models import claim as claim_models
from seatclaim.schemas.claim import ClaimResponse, ClaimStatus, TicketCategory
from seatclaim.schemas.common import ApiResponse
from seatclaim.schemas.ticket import (
    TicketCancelRequest,
    TicketIssueRequest,
    TicketTransferRequest,
    TicketValidateRequest,
    TicketValidationResponse,
)

router = APIRouter()


def _status_filter(value: ClaimStatus | None) -> claim_models.ClaimStatus | None:
    return claim_models.ClaimStatus(value.value) if value else None


def _category_filter(value: TicketCategory | None) -> claim_models.TicketCategory | None:
    return claim_models.TicketCategory(value.value) if value else None


@router.post(
    "/issue",
    response_model=ApiResponse[ClaimResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Issue a ticket directly",
)
async def issue_ticket(
    issue_data: TicketIssueRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> ApiResponse[ClaimResponse]:
    """Issue an active ticket for a free seat, skipping the reservation step."""
    claim = await ticket_service.issue_ticket(
        event_id=issue_data.event_id,
        seat_number=issue_data.seat_no,
        attendee_id=resolve_attendee(actor, issue_data.attendee_id),
        category=claim_models.TicketCategory(issue_data.category.value),
        price=issue_data.price,
    )
    return ApiResponse(
        message="Ticket issued successfully",
        data=ClaimResponse.model_validate(claim),
    )


@router.post(
    "/validate",
    response_model=ApiResponse[TicketValidationResponse],
    summary="Check a ticket in",
)
async def validate_ticket(
    validate_data: TicketValidateRequest,
    actor: StaffActor,
    ticket_service: TicketServiceDep,
) -> ApiResponse[TicketValidationResponse]:
    """Validate a ticket at the gate. Staff or admin only."""
    claim = await ticket_service.validate_ticket(
        ticket_id=validate_data.ticket_id,
        event_id=validate_data.event_id,
        staff_id=actor.user_id,
        gate=validate_data.gate,
    )
    return ApiResponse(
        message="Ticket validated successfully",
        data=TicketValidationResponse(
            ticket_id=claim.claim_id,
            attendee_id=claim.attendee_id,
            seat_number=claim.seat_number,
            category=claim.category,
            checked_in_at=claim.checked_in_at,
        ),
    )


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[ClaimResponse]],
    summary="Get user tickets",
)
async def get_user_tickets(
    user_id: str,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
    status_filter: ClaimStatus | None = Query(None, alias="status"),
    event_id: int | None = Query(None, alias="eventId"),
) -> ApiResponse[list[ClaimResponse]]:
    claims = await ticket_service.get_user_tickets(
        user_id, actor, status=_status_filter(status_filter), event_id=event_id
    )
    return ApiResponse(data=[ClaimResponse.model_validate(c) for c in claims])


@router.get(
    "/event/{event_id}",
    response_model=ApiResponse[list[ClaimResponse]],
    summary="Get event tickets",
)
async def get_event_tickets(
    event_id: int,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
    status_filter: ClaimStatus | None = Query(None, alias="status"),
    category: TicketCategory | None = None,
) -> ApiResponse[list[ClaimResponse]]:
    """All tickets of an event. Event organizer or admin only."""
    claims = await ticket_service.get_event_tickets(
        event_id,
        actor,
        status=_status_filter(status_filter),
        category=_category_filter(category),
    )
    return ApiResponse(data=[ClaimResponse.model_validate(c) for c in claims])


@router.get(
    "/{ticket_id}",
    response_model=ApiResponse[ClaimResponse],
    summary="Get ticket details",
)
async def get_ticket(
    ticket_id: str,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> ApiResponse[ClaimResponse]:
    claim = await ticket_service.get_ticket(ticket_id, actor)
    return ApiResponse(data=ClaimResponse.model_validate(claim))


@router.put(
    "/{ticket_id}/cancel",
    response_model=ApiResponse[ClaimResponse],
    summary="Cancel ticket",
)
async def cancel_ticket(
    ticket_id: str,
    cancel_data: TicketCancelRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> ApiResponse[ClaimResponse]:
    """Cancel an active ticket. Not allowed close to the event start."""
    claim = await ticket_service.cancel_ticket(ticket_id, actor, cancel_data.reason)
    return ApiResponse(
        message="Ticket cancelled successfully",
        data=ClaimResponse.model_validate(claim),
    )


@router.put(
    "/{ticket_id}/transfer",
    response_model=ApiResponse[ClaimResponse],
    summary="Transfer ticket",
)
async def transfer_ticket(
    ticket_id: str,
    transfer_data: TicketTransferRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> ApiResponse[ClaimResponse]:
    claim = await ticket_service.transfer_ticket(
        ticket_id=ticket_id,
        attendee_id=actor.user_id,
        new_attendee_id=transfer_data.new_attendee_id,
        reason=transfer_data.reason,
    )
    return ApiResponse(
        message="Ticket transferred successfully",
        data=ClaimResponse.model_validate(claim),
    )
