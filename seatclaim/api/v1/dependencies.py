"""API dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatclaim.auth import Actor, Role
from seatclaim.clock import Clock, system_clock
from seatclaim.database import get_db, get_session_factory
from seatclaim.services.availability_service import AvailabilityService
from seatclaim.services.event_service import EventService
from seatclaim.services.expiry import ExpiryScheduler
from seatclaim.services.payment_service import PaymentService
from seatclaim.services.reservation_service import ReservationService
from seatclaim.services.ticket_service import TicketService

# Type aliases
DBSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


def get_clock() -> Clock:
    """Clock used by the services; overridden in tests."""
    return system_clock


ClockDep = Annotated[Clock, Depends(get_clock)]


def get_expiry_scheduler(request: Request) -> ExpiryScheduler | None:
    """Expiry scheduler started by the application lifespan, if any."""
    return getattr(request.app.state, "expiry_scheduler", None)


SchedulerDep = Annotated[ExpiryScheduler | None, Depends(get_expiry_scheduler)]


async def get_current_actor(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """
    Get the caller from headers.
    Token verification happens upstream; this service trusts the gateway.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID header is required",
        )
    try:
        role = Role(x_user_role) if x_user_role else Role.ATTENDEE
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        )
    return Actor(user_id=x_user_id, role=role)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


def require_roles(*roles: Role):
    """Build a dependency that only lets the given roles through."""

    async def checker(actor: CurrentActor) -> Actor:
        if not actor.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(r.value for r in roles)}",
            )
        return actor

    return checker


AdminActor = Annotated[Actor, Depends(require_roles(Role.ADMIN))]
StaffActor = Annotated[Actor, Depends(require_roles(Role.STAFF, Role.ADMIN))]
OrganizerActor = Annotated[Actor, Depends(require_roles(Role.ORGANIZER, Role.ADMIN))]


def resolve_attendee(actor: Actor, attendee_id: str | None) -> str:
    """Attendee named in a request body, defaulting to the caller."""
    if attendee_id is None:
        return actor.user_id
    if not actor.can_act_for(attendee_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot act on behalf of another attendee",
        )
    return attendee_id


def get_event_service(db: DBSession) -> EventService:
    """Get event service."""
    return EventService(db)


def get_reservation_service(
    db: DBSession,
    clock: ClockDep,
    scheduler: SchedulerDep,
) -> ReservationService:
    """Get reservation service."""
    return ReservationService(db, clock, scheduler)


def get_ticket_service(db: DBSession, clock: ClockDep) -> TicketService:
    """Get ticket service."""
    return TicketService(db, clock)


def get_availability_service(db: DBSession, clock: ClockDep) -> AvailabilityService:
    """Get availability service."""
    return AvailabilityService(db, clock)


def get_payment_service(db: DBSession, clock: ClockDep) -> PaymentService:
    """Get payment service."""
    return PaymentService(db, clock)


# Annotated dependencies
EventServiceDep = Annotated[EventService, Depends(get_event_service)]
ReservationServiceDep = Annotated[ReservationService, Depends(get_reservation_service)]
TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
AvailabilityServiceDep = Annotated[AvailabilityService, Depends(get_availability_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
