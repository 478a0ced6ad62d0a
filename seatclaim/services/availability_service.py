"""Seat availability derived from live claims."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatclaim.clock import Clock, system_clock
from seatclaim.models.claim import NON_TERMINAL_STATUSES, ClaimStatus, SeatClaim
from seatclaim.models.event import Event
from seatclaim.services.claim_lookup import ensure_seat_in_range, get_event_or_404


class AvailabilityService:
    """
    Read-only availability queries.

    A claim occupies its seat only while its *effective* status is
    non-terminal: a reservation past its deadline counts as free even if
    the sweep has not reached it yet.
    """

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    async def _occupying_claims(self, event_id: int) -> dict[int, SeatClaim]:
        result = await self.db.execute(
            select(SeatClaim)
            .where(
                SeatClaim.event_id == event_id,
                SeatClaim.status.in_(list(NON_TERMINAL_STATUSES)),
            )
            .execution_options(populate_existing=True)
        )
        now = self.clock.now()
        return {
            claim.seat_number: claim
            for claim in result.scalars().all()
            if claim.occupies_seat(now)
        }

    async def get_available_seats(
        self,
        event_id: int,
        category: str | None = None,
    ) -> dict:
        """
        Seats ``1..capacity`` not held by a live claim.

        With ``category`` only seats held in that category are excluded;
        unclaimed seats have no category yet and stay available under
        every filter.
        """
        event = await get_event_or_404(self.db, event_id)
        occupied = await self._occupying_claims(event_id)

        if category:
            excluded = {n for n, c in occupied.items() if c.category == category}
        else:
            excluded = set(occupied)

        available = [n for n in range(1, event.capacity + 1) if n not in excluded]
        return {
            "event_id": event_id,
            "category": category,
            "total_seats": event.capacity,
            "available_seats": available,
            "available_count": len(available),
            "occupied_count": len(excluded),
        }

    async def check_seat_availability(self, event_id: int, seat_number: int) -> dict:
        """Availability of one seat, with the hold deadline if it is reserved."""
        event = await get_event_or_404(self.db, event_id)
        ensure_seat_in_range(event, seat_number)

        occupied = await self._occupying_claims(event_id)
        claim = occupied.get(seat_number)
        if claim is None:
            return {
                "event_id": event_id,
                "seat_number": seat_number,
                "available": True,
                "status": "available",
                "expires_at": None,
            }

        return {
            "event_id": event_id,
            "seat_number": seat_number,
            "available": False,
            "status": claim.status.value,
            "expires_at": (
                claim.reservation_expires_at
                if claim.status == ClaimStatus.RESERVED
                else None
            ),
        }

    async def get_seatmap(self, event_id: int) -> dict:
        event: Event = await get_event_or_404(self.db, event_id)
        occupied = await self._occupying_claims(event_id)

        reserved_seats = sorted(
            n for n, c in occupied.items() if c.status == ClaimStatus.RESERVED
        )
        occupied_seats = sorted(
            n for n, c in occupied.items() if c.status == ClaimStatus.ACTIVE
        )
        return {
            "event_id": event.event_id,
            "name": event.name,
            "start_date": event.start_date,
            "capacity": event.capacity,
            "seats": {
                "total": event.capacity,
                "available": event.capacity - len(occupied),
                "reserved": len(reserved_seats),
                "occupied": len(occupied_seats),
                "reserved_seats": reserved_seats,
                "occupied_seats": occupied_seats,
            },
        }

    async def get_seat_pricing(self, event_id: int) -> dict:
        """Advertised price band of an event."""
        event = await get_event_or_404(self.db, event_id)
        return {
            "event_id": event.event_id,
            "pricing": {
                "min_price": event.min_price,
                "max_price": event.max_price,
                "currency": event.currency,
            },
        }
