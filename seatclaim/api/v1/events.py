"""Events API endpoints."""

from fastapi import APIRouter, status

from seatclaim.api.v1.dependencies import (
    CurrentActor,
    EventServiceDep,
    OrganizerActor,
)
from seatclaim.models.event import EventStatus
from seatclaim.schemas.common import ApiResponse
from seatclaim.schemas.event import EventCreate, EventResponse, EventStatusUpdate

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[EventResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new event",
)
async def create_event(
    event_data: EventCreate,
    actor: OrganizerActor,
    event_service: EventServiceDep,
) -> ApiResponse[EventResponse]:
    """Create a new event. Organizer or admin only."""
    event = await event_service.create_event(event_data, organizer_id=actor.user_id)
    return ApiResponse(
        message="Event created successfully",
        data=EventResponse.from_event(event),
    )


@router.get(
    "/{event_id}",
    response_model=ApiResponse[EventResponse],
    summary="Get event details",
)
async def get_event(
    event_id: int,
    event_service: EventServiceDep,
) -> ApiResponse[EventResponse]:
    event = await event_service.get_event(event_id)
    return ApiResponse(data=EventResponse.from_event(event))


@router.patch(
    "/{event_id}/status",
    response_model=ApiResponse[EventResponse],
    summary="Update event status",
)
async def update_event_status(
    event_id: int,
    status_data: EventStatusUpdate,
    actor: CurrentActor,
    event_service: EventServiceDep,
) -> ApiResponse[EventResponse]:
    event = await event_service.update_event_status(
        event_id, EventStatus(status_data.status.value), actor
    )
    return ApiResponse(
        message="Event status updated",
        data=EventResponse.from_event(event),
    )
