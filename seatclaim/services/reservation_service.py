"""Reservation service: time-boxed holds on a single seat."""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from seatclaim.auth import Actor
from seatclaim.clock import Clock, system_clock
from seatclaim.config import get_settings
from seatclaim.exceptions import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from seatclaim.models.claim import ClaimStatus, SeatClaim, TicketCategory
from seatclaim.services.claim_lookup import (
    ensure_owner,
    ensure_owner_or_admin,
    ensure_seat_in_range,
    expired_hold_predicate,
    get_claim_or_404,
    get_open_event,
    raise_for_lost_race,
    release_stale_hold,
    transition_claim,
    update_claim_if,
)

if TYPE_CHECKING:
    from seatclaim.services.expiry import ExpiryScheduler

settings = get_settings()
logger = logging.getLogger(__name__)

RESERVATION_NOT_FOUND = "Reservation not found"


class ReservationService:
    """
    Service for seat holds.

    Exclusivity is never decided by a read: the insert relies on the
    ``(event_id, live_seat_number)`` unique constraint and every status
    change is a conditional UPDATE on the status the caller observed.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = system_clock,
        scheduler: "ExpiryScheduler | None" = None,
    ):
        self.db = db
        self.clock = clock
        self.scheduler = scheduler

    async def create_reservation(
        self,
        event_id: int,
        seat_number: int,
        attendee_id: str,
        duration_minutes: int | None = None,
    ) -> SeatClaim:
        """
        Hold a seat for ``duration_minutes``.

        Raises:
            NotFoundError: event does not exist
            InvalidStateError: event is not accepting claims
            ConflictError: seat already has a live claim
        """
        duration = duration_minutes or settings.RESERVATION_DEFAULT_MINUTES
        event = await get_open_event(self.db, event_id)
        ensure_seat_in_range(event, seat_number)

        now = self.clock.now()
        expires_at = now + timedelta(minutes=duration)

        await release_stale_hold(self.db, event_id, seat_number, now)
        claim = SeatClaim(
            event_id=event_id,
            attendee_id=attendee_id,
            seat_number=seat_number,
            live_seat_number=seat_number,
            category=TicketCategory.STANDARD.value,
            price=0,
            currency=event.currency,
            status=ClaimStatus.RESERVED,
            reserved_at=now,
            reservation_expires_at=expires_at,
            transfer_history=[],
        )
        self.db.add(claim)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "Seat %s of event %s is already claimed (reservation by %s rejected)",
                seat_number,
                event_id,
                attendee_id,
            )
            raise ConflictError("Seat is not available")

        await self.db.refresh(claim)
        logger.info(
            "Reserved seat %s of event %s for %s until %s (%s)",
            seat_number,
            event_id,
            attendee_id,
            expires_at.isoformat(),
            claim.claim_id,
        )

        if self.scheduler is not None:
            self.scheduler.schedule(claim.claim_id, claim.reservation_expires_at)

        return claim

    async def get_reservation(self, reservation_id: str, actor: Actor) -> SeatClaim:
        """Get a live reservation. Owner or admin only."""
        claim = await get_claim_or_404(self.db, reservation_id, RESERVATION_NOT_FOUND)
        ensure_owner_or_admin(claim, actor, "view this reservation")

        if claim.effective_status(self.clock.now()) != ClaimStatus.RESERVED:
            raise NotFoundError("This is not an active reservation")
        return claim

    async def get_user_reservations(self, user_id: str, actor: Actor) -> list[SeatClaim]:
        """
        Get a user's live reservations.

        Holds found past their deadline are expired on the way out, using
        the same predicate as the sweep.
        """
        if actor.user_id != user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to view these reservations")

        result = await self.db.execute(
            select(SeatClaim)
            .where(
                SeatClaim.attendee_id == user_id,
                SeatClaim.status == ClaimStatus.RESERVED,
            )
            .order_by(SeatClaim.reserved_at.desc())
        )
        reservations = list(result.scalars().all())

        now = self.clock.now()
        live = []
        for claim in reservations:
            if claim.is_hold_expired(now):
                await self.expire_reservation(claim.claim_id)
            else:
                live.append(claim)
        return live

    async def extend_reservation(
        self,
        reservation_id: str,
        attendee_id: str,
        additional_minutes: int | None = None,
    ) -> SeatClaim:
        """
        Push a live reservation's deadline forward.

        A fresh expiry action is scheduled for the new deadline; the one
        scheduled at creation re-checks the deadline when it fires and
        leaves the hold alone.
        """
        minutes = additional_minutes or settings.EXTEND_DEFAULT_MINUTES
        claim = await get_claim_or_404(self.db, reservation_id, RESERVATION_NOT_FOUND)
        ensure_owner(claim, attendee_id, "extend this reservation")

        if claim.status != ClaimStatus.RESERVED:
            raise InvalidStateError("Reservation is not active")

        now = self.clock.now()
        if claim.is_hold_expired(now):
            raise ExpiredError("Reservation has expired")

        current_deadline = claim.reservation_expires_at
        new_deadline = current_deadline + timedelta(minutes=minutes)

        extended = await update_claim_if(
            self.db,
            claim.claim_id,
            SeatClaim.status == ClaimStatus.RESERVED,
            SeatClaim.reservation_expires_at == current_deadline,
            SeatClaim.reservation_expires_at > now,
            reservation_expires_at=new_deadline,
        )
        if not extended:
            await self.db.rollback()
            await raise_for_lost_race(self.db, claim, now, ClaimStatus.RESERVED)

        await self.db.commit()
        await self.db.refresh(claim)
        logger.info(
            "Extended reservation %s to %s", claim.claim_id, new_deadline.isoformat()
        )

        if self.scheduler is not None:
            self.scheduler.schedule(claim.claim_id, claim.reservation_expires_at)

        return claim

    async def cancel_reservation(self, reservation_id: str, attendee_id: str) -> SeatClaim:
        """Release a hold on the owner's request."""
        claim = await get_claim_or_404(self.db, reservation_id, RESERVATION_NOT_FOUND)
        ensure_owner(claim, attendee_id, "cancel this reservation")

        if claim.status != ClaimStatus.RESERVED:
            raise InvalidStateError("Reservation is not active")

        now = self.clock.now()
        cancelled = await transition_claim(
            self.db,
            claim,
            ClaimStatus.CANCELLED,
            cancelled_at=now,
            cancellation_reason="Cancelled by attendee",
        )
        if not cancelled:
            await self.db.rollback()
            raise InvalidStateError("Reservation is not active")

        await self.db.commit()
        await self.db.refresh(claim)
        logger.info("Cancelled reservation %s", claim.claim_id)
        return claim

    async def expire_reservation(self, reservation_id: str) -> bool:
        """
        Expiry action for one hold.

        Cancels the claim only if it is still reserved and its current
        deadline has passed, so a stale timer after an extension, a
        confirmation or an earlier sweep is a no-op.

        Returns:
            True if this call cancelled the reservation.
        """
        now = self.clock.now()
        result = await self.db.execute(
            update(SeatClaim)
            .where(SeatClaim.claim_id == reservation_id, *expired_hold_predicate(now))
            .values(
                status=ClaimStatus.CANCELLED,
                live_seat_number=None,
                version=SeatClaim.version + 1,
                cancelled_at=now,
                cancellation_reason="Reservation expired",
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        expired = result.rowcount == 1
        if expired:
            logger.info("Reservation %s expired", reservation_id)
        return expired

    async def pending_deadline(self, reservation_id: str) -> datetime | None:
        """Stored deadline of a hold that is still reserved and not yet due."""
        now = self.clock.now()
        result = await self.db.execute(
            select(SeatClaim.reservation_expires_at).where(
                SeatClaim.claim_id == reservation_id,
                SeatClaim.status == ClaimStatus.RESERVED,
                SeatClaim.reservation_expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def cleanup_expired_reservations(self) -> int:
        """
        Sweep every reservation past its deadline into ``cancelled``.

        Each claim is expired in its own conditional update and commit;
        a failure on one claim is logged and the sweep moves on.

        Returns:
            Number of reservations this sweep cancelled
        """
        now = self.clock.now()
        result = await self.db.execute(
            select(SeatClaim.claim_id).where(*expired_hold_predicate(now))
        )
        expired_ids = list(result.scalars().all())

        count = 0
        for claim_id in expired_ids:
            try:
                if await self.expire_reservation(claim_id):
                    count += 1
            except Exception:
                logger.error("Failed to expire reservation %s", claim_id, exc_info=True)
                await self.db.rollback()

        if count:
            logger.info("Cleaned up %s expired reservations", count)
        return count
