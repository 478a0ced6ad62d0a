"""Ticket issuance: turning holds into tickets and managing tickets."""

import logging
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from seatclaim.auth import Actor
from seatclaim.clock import Clock, system_clock
from seatclaim.config import get_settings
from seatclaim.exceptions import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from seatclaim.models.claim import (
    ClaimStatus,
    SeatClaim,
    TicketCategory,
    generate_ticket_number,
)
from seatclaim.models.payment import Payment, PaymentStatus
from seatclaim.services.claim_lookup import (
    ensure_owner,
    ensure_owner_or_admin,
    ensure_seat_in_range,
    get_claim_or_404,
    get_event_or_404,
    get_open_event,
    raise_for_lost_race,
    release_stale_hold,
    transition_claim,
    update_claim_if,
)
from seatclaim.services.event_service import EventService
from seatclaim.services.reservation_service import (
    RESERVATION_NOT_FOUND,
    ReservationService,
)

settings = get_settings()
logger = logging.getLogger(__name__)

TICKET_NOT_FOUND = "Ticket not found"


class TicketService:
    """Service for ticket issuance, cancellation, transfer and check-in."""

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.events = EventService(db)

    async def _get_ticket(self, ticket_id: str) -> SeatClaim:
        claim = await get_claim_or_404(self.db, ticket_id, TICKET_NOT_FOUND)
        if claim.status == ClaimStatus.RESERVED:
            raise NotFoundError(TICKET_NOT_FOUND)
        return claim

    async def _get_linked_payment(
        self, payment_id: str, claim: SeatClaim, price: Decimal
    ) -> Payment:
        result = await self.db.execute(
            select(Payment).where(Payment.payment_id == payment_id)
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundError("Payment not found")
        if payment.claim_id != claim.claim_id or payment.attendee_id != claim.attendee_id:
            raise ForbiddenError("Payment does not belong to this reservation")
        if payment.status != PaymentStatus.SUCCESS:
            raise InvalidStateError("Payment has not succeeded")
        if payment.amount != price:
            raise ValidationFailedError(
                "Payment amount does not match ticket price",
                errors=[{"field": "price", "message": f"Expected {payment.amount}"}],
            )
        return payment

    async def confirm_reservation(
        self,
        reservation_id: str,
        attendee_id: str,
        category: TicketCategory,
        price: Decimal,
        payment_id: str | None = None,
    ) -> SeatClaim:
        """
        Promote a live reservation to an active ticket.

        Called once payment has succeeded. A reservation found past its
        deadline is cancelled and ExpiredError is raised.
        """
        claim = await get_claim_or_404(self.db, reservation_id, RESERVATION_NOT_FOUND)
        ensure_owner(claim, attendee_id, "confirm this reservation")

        if claim.status != ClaimStatus.RESERVED:
            raise InvalidStateError("Reservation is not active")

        now = self.clock.now()
        if claim.is_hold_expired(now):
            await ReservationService(self.db, self.clock).expire_reservation(claim.claim_id)
            raise ExpiredError("Reservation has expired")

        if payment_id is not None:
            await self._get_linked_payment(payment_id, claim, price)

        confirmed = await transition_claim(
            self.db,
            claim,
            ClaimStatus.ACTIVE,
            SeatClaim.reservation_expires_at > now,
            category=category.value,
            price=price,
            issued_at=now,
            ticket_number=generate_ticket_number(),
            payment_ref=payment_id,
            reserved_at=None,
            reservation_expires_at=None,
        )
        if not confirmed:
            await self.db.rollback()
            await self.db.refresh(claim)
            if claim.is_hold_expired(now):
                await ReservationService(self.db, self.clock).expire_reservation(claim.claim_id)
                raise ExpiredError("Reservation has expired")
            await raise_for_lost_race(self.db, claim, now, ClaimStatus.RESERVED)

        await self.events.adjust_analytics(
            claim.event_id, tickets_sold=1, attendees=1, revenue=price
        )
        await self.db.commit()
        await self.db.refresh(claim)
        logger.info(
            "Confirmed reservation %s as ticket %s (%s, %s)",
            claim.claim_id,
            claim.ticket_number,
            claim.category,
            claim.price,
        )
        return claim

    async def issue_ticket(
        self,
        event_id: int,
        seat_number: int,
        attendee_id: str,
        category: TicketCategory,
        price: Decimal,
    ) -> SeatClaim:
        """Issue an active ticket directly, with no prior reservation."""
        event = await get_open_event(self.db, event_id)
        ensure_seat_in_range(event, seat_number)

        now = self.clock.now()
        await release_stale_hold(self.db, event_id, seat_number, now)
        claim = SeatClaim(
            event_id=event_id,
            attendee_id=attendee_id,
            seat_number=seat_number,
            live_seat_number=seat_number,
            category=category.value,
            price=price,
            currency=event.currency,
            status=ClaimStatus.ACTIVE,
            issued_at=now,
            ticket_number=generate_ticket_number(),
            transfer_history=[],
        )
        self.db.add(claim)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "Seat %s of event %s is already claimed (issue to %s rejected)",
                seat_number,
                event_id,
                attendee_id,
            )
            raise ConflictError("Seat is already taken")

        await self.events.adjust_analytics(
            event_id, tickets_sold=1, attendees=1, revenue=price
        )
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Seat is already taken")

        await self.db.refresh(claim)
        logger.info(
            "Issued ticket %s for seat %s of event %s to %s",
            claim.ticket_number,
            seat_number,
            event_id,
            attendee_id,
        )
        return claim

    async def get_ticket(self, ticket_id: str, actor: Actor) -> SeatClaim:
        """Get ticket details. Owner or admin only."""
        claim = await self._get_ticket(ticket_id)
        ensure_owner_or_admin(claim, actor, "view this ticket")
        return claim

    async def get_user_tickets(
        self,
        user_id: str,
        actor: Actor,
        status: ClaimStatus | None = None,
        event_id: int | None = None,
    ) -> list[SeatClaim]:
        """Get a user's tickets, newest first."""
        if actor.user_id != user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to view these tickets")

        query = select(SeatClaim).where(
            SeatClaim.attendee_id == user_id,
            SeatClaim.status != ClaimStatus.RESERVED,
        )
        if status:
            query = query.where(SeatClaim.status == status)
        if event_id:
            query = query.where(SeatClaim.event_id == event_id)

        result = await self.db.execute(query.order_by(SeatClaim.issued_at.desc()))
        return list(result.scalars().all())

    async def get_event_tickets(
        self,
        event_id: int,
        actor: Actor,
        status: ClaimStatus | None = None,
        category: TicketCategory | None = None,
    ) -> list[SeatClaim]:
        """Get all tickets for an event. Event organizer or admin only."""
        event = await get_event_or_404(self.db, event_id)
        if event.organizer_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to view event tickets")

        query = select(SeatClaim).where(
            SeatClaim.event_id == event_id,
            SeatClaim.status != ClaimStatus.RESERVED,
        )
        if status:
            query = query.where(SeatClaim.status == status)
        if category:
            query = query.where(SeatClaim.category == category.value)

        result = await self.db.execute(query.order_by(SeatClaim.seat_number))
        return list(result.scalars().all())

    async def _ensure_outside_blackout(
        self, event_id: int, hours: int, action: str
    ) -> None:
        event = await get_event_or_404(self.db, event_id)
        if event.start_date - self.clock.now() <= timedelta(hours=hours):
            raise InvalidStateError(
                f"Tickets cannot be {action} less than {hours} hours before the event"
            )

    async def cancel_ticket(self, ticket_id: str, actor: Actor, reason: str) -> SeatClaim:
        """Cancel an active ticket outside the cancellation blackout window."""
        claim = await self._get_ticket(ticket_id)
        ensure_owner_or_admin(claim, actor, "cancel this ticket")

        if claim.status != ClaimStatus.ACTIVE:
            raise InvalidStateError("Ticket cannot be cancelled")

        await self._ensure_outside_blackout(
            claim.event_id, settings.CANCELLATION_BLACKOUT_HOURS, "cancelled"
        )

        now = self.clock.now()
        cancelled = await transition_claim(
            self.db,
            claim,
            ClaimStatus.CANCELLED,
            cancelled_at=now,
            cancellation_reason=reason,
        )
        if not cancelled:
            await self.db.rollback()
            await raise_for_lost_race(self.db, claim, now, ClaimStatus.ACTIVE)

        await self.events.adjust_analytics(claim.event_id, tickets_sold=-1, attendees=-1)
        await self.db.commit()
        await self.db.refresh(claim)
        logger.info("Cancelled ticket %s: %s", claim.claim_id, reason)
        return claim

    async def transfer_ticket(
        self,
        ticket_id: str,
        attendee_id: str,
        new_attendee_id: str,
        reason: str | None = None,
    ) -> SeatClaim:
        """
        Hand an active ticket to another attendee.

        Ownership changes in one conditional update guarded on the
        current owner and version, so there is never a moment when both
        attendees hold the ticket.
        """
        claim = await self._get_ticket(ticket_id)
        ensure_owner(claim, attendee_id, "transfer this ticket")

        if claim.status != ClaimStatus.ACTIVE:
            raise InvalidStateError("Ticket cannot be transferred")
        if new_attendee_id == claim.attendee_id:
            raise ValidationFailedError(
                "Ticket already belongs to this attendee",
                errors=[{"field": "newAttendeeId", "message": "Must differ from current owner"}],
            )

        await self._ensure_outside_blackout(
            claim.event_id, settings.TRANSFER_BLACKOUT_HOURS, "transferred"
        )

        now = self.clock.now()
        entry = {
            "from_attendee_id": claim.attendee_id,
            "to_attendee_id": new_attendee_id,
            "transferred_at": now.isoformat(),
            "reason": reason,
        }
        transferred = await update_claim_if(
            self.db,
            claim.claim_id,
            SeatClaim.status == ClaimStatus.ACTIVE,
            SeatClaim.attendee_id == claim.attendee_id,
            SeatClaim.version == claim.version,
            attendee_id=new_attendee_id,
            is_transferred=True,
            transferred_at=now,
            transfer_history=[*(claim.transfer_history or []), entry],
        )
        if not transferred:
            await self.db.rollback()
            await raise_for_lost_race(self.db, claim, now, ClaimStatus.ACTIVE)

        await self.db.commit()
        await self.db.refresh(claim)
        logger.info(
            "Transferred ticket %s from %s to %s",
            claim.claim_id,
            entry["from_attendee_id"],
            new_attendee_id,
        )
        return claim

    async def validate_ticket(
        self,
        ticket_id: str,
        event_id: int,
        staff_id: str,
        gate: str | None = None,
    ) -> SeatClaim:
        """
        Check a ticket in at the door.

        One-way: the second check-in of a ticket raises AlreadyUsedError.
        """
        claim = await self._get_ticket(ticket_id)

        if claim.event_id != event_id:
            raise ValidationFailedError(
                "Ticket does not belong to this event",
                errors=[{"field": "eventId", "message": "Ticket is for a different event"}],
            )
        if claim.status == ClaimStatus.USED or claim.checked_in:
            raise AlreadyUsedError("Ticket has already been used")
        if claim.status != ClaimStatus.ACTIVE:
            raise InvalidStateError(f"Ticket is {claim.status.value}")

        now = self.clock.now()
        checked_in = await transition_claim(
            self.db,
            claim,
            ClaimStatus.USED,
            SeatClaim.checked_in.is_(False),
            checked_in=True,
            checked_in_at=now,
            checked_in_by=staff_id,
            check_in_gate=gate,
        )
        if not checked_in:
            await self.db.rollback()
            await self.db.refresh(claim)
            if claim.status == ClaimStatus.USED or claim.checked_in:
                raise AlreadyUsedError("Ticket has already been used")
            raise InvalidStateError(f"Ticket is {claim.status.value}")

        await self.db.commit()
        await self.db.refresh(claim)
        logger.info("Checked in ticket %s by %s", claim.claim_id, staff_id)
        return claim
