"""Event service."""

import logging
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from seatclaim.auth import Actor
from seatclaim.clock import to_naive_utc
from seatclaim.config import get_settings
from seatclaim.exceptions import ForbiddenError, ValidationFailedError
from seatclaim.models.event import Event, EventStatus
from seatclaim.schemas.event import EventCreate
from seatclaim.services.claim_lookup import get_event_or_404

settings = get_settings()
logger = logging.getLogger(__name__)


class EventService:
    """Service for the event fields the claim lifecycle depends on."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_event(self, event_data: EventCreate, organizer_id: str) -> Event:
        """Create a new event."""
        if event_data.max_price < event_data.min_price:
            raise ValidationFailedError(
                "Invalid price range",
                errors=[{"field": "maxPrice", "message": "Must not be below minPrice"}],
            )

        event = Event(
            name=event_data.name,
            organizer_id=organizer_id,
            start_date=to_naive_utc(event_data.start_date),
            capacity=event_data.capacity,
            status=EventStatus(event_data.status.value),
            currency=event_data.currency or settings.DEFAULT_CURRENCY,
            min_price=event_data.min_price,
            max_price=event_data.max_price,
            tickets_sold=0,
            attendees=0,
            revenue=Decimal("0"),
        )
        self.db.add(event)
        await self.db.commit()
        await self.db.refresh(event)
        logger.info("Created event %s (%s seats)", event.event_id, event.capacity)
        return event

    async def get_event(self, event_id: int) -> Event:
        """Get event by ID."""
        return await get_event_or_404(self.db, event_id)

    async def update_event_status(
        self,
        event_id: int,
        status: EventStatus,
        actor: Actor,
    ) -> Event:
        """Update event status. Organizer of the event or admin only."""
        event = await get_event_or_404(self.db, event_id)
        if event.organizer_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to update this event")

        event.status = status
        await self.db.commit()
        await self.db.refresh(event)
        logger.info("Event %s status set to %s", event_id, status.value)
        return event

    async def adjust_analytics(
        self,
        event_id: int,
        tickets_sold: int = 0,
        attendees: int = 0,
        revenue: Decimal = Decimal("0"),
    ) -> None:
        """
        Atomically adjust the event's analytics counters.

        Issued as ``SET col = col + delta`` so concurrent confirmations and
        cancellations on one event never lose updates. Does not commit.
        """
        await self.db.execute(
            update(Event)
            .where(Event.event_id == event_id)
            .values(
                tickets_sold=Event.tickets_sold + tickets_sold,
                attendees=Event.attendees + attendees,
                revenue=Event.revenue + revenue,
            )
            .execution_options(synchronize_session=False)
        )
