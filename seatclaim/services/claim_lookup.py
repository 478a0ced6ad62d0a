"""Lookup, validation and transition helpers shared by the claim services."""

import logging
from datetime import datetime

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatclaim.auth import Actor
from seatclaim.exceptions import (
    ExpiredError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from seatclaim.models.claim import (
    ClaimStatus,
    SeatClaim,
    ensure_transition,
    live_seat_for,
)
from seatclaim.models.event import Event

logger = logging.getLogger(__name__)


async def get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    """Get event by ID or raise NotFoundError."""
    result = await db.execute(
        select(Event)
        .where(Event.event_id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event not found")
    return event


async def get_open_event(db: AsyncSession, event_id: int) -> Event:
    """Get an event that currently accepts claims."""
    event = await get_event_or_404(db, event_id)
    if not event.accepts_claims:
        raise InvalidStateError("Event is not active")
    return event


def ensure_seat_in_range(event: Event, seat_number: int) -> None:
    if seat_number < 1 or seat_number > event.capacity:
        raise ValidationFailedError(
            "Invalid seat number",
            errors=[
                {
                    "field": "seatNo",
                    "message": f"Seat number must be between 1 and {event.capacity}",
                }
            ],
        )


async def get_claim_or_404(
    db: AsyncSession,
    claim_id: str,
    not_found_message: str = "Claim not found",
) -> SeatClaim:
    result = await db.execute(
        select(SeatClaim)
        .where(SeatClaim.claim_id == claim_id)
        .execution_options(populate_existing=True)
    )
    claim = result.scalar_one_or_none()
    if claim is None:
        raise NotFoundError(not_found_message)
    return claim


def ensure_owner(claim: SeatClaim, user_id: str, action: str) -> None:
    if claim.attendee_id != user_id:
        raise ForbiddenError(f"Not authorized to {action}")


def ensure_owner_or_admin(claim: SeatClaim, actor: Actor, action: str) -> None:
    if claim.attendee_id != actor.user_id and not actor.is_admin:
        raise ForbiddenError(f"Not authorized to {action}")


def expired_hold_predicate(now: datetime) -> list[ColumnElement[bool]]:
    """The single expiry predicate used by the timer, the sweep and readers."""
    return [
        SeatClaim.status == ClaimStatus.RESERVED,
        SeatClaim.reservation_expires_at <= now,
    ]


async def transition_claim(
    db: AsyncSession,
    claim: SeatClaim,
    target: ClaimStatus,
    *conditions: ColumnElement[bool],
    **values,
) -> bool:
    """
    Compare-and-swap a claim from its loaded status to ``target``.

    The UPDATE only matches while the row is still in the status the
    caller observed (plus any extra ``conditions``), so of two racing
    transitions exactly one wins. Does not commit.

    Returns:
        True if this call performed the transition.
    """
    ensure_transition(claim.status, target)
    result = await db.execute(
        update(SeatClaim)
        .where(
            SeatClaim.claim_id == claim.claim_id,
            SeatClaim.status == claim.status,
            *conditions,
        )
        .values(
            status=target,
            live_seat_number=live_seat_for(target, claim.seat_number),
            version=SeatClaim.version + 1,
            **values,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def update_claim_if(
    db: AsyncSession,
    claim_id: str,
    *conditions: ColumnElement[bool],
    **values,
) -> bool:
    """Conditionally update a claim without changing its status. Does not commit."""
    result = await db.execute(
        update(SeatClaim)
        .where(SeatClaim.claim_id == claim_id, *conditions)
        .values(version=SeatClaim.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_stale_hold(
    db: AsyncSession, event_id: int, seat_number: int, now: datetime
) -> int:
    """
    Cancel an expired hold still occupying ``seat_number``.

    Readers already treat such a hold as free; this makes the unique
    constraint agree before a new claim is inserted. Does not commit.
    """
    result = await db.execute(
        update(SeatClaim)
        .where(
            SeatClaim.event_id == event_id,
            SeatClaim.seat_number == seat_number,
            *expired_hold_predicate(now),
        )
        .values(
            status=ClaimStatus.CANCELLED,
            live_seat_number=None,
            version=SeatClaim.version + 1,
            cancelled_at=now,
            cancellation_reason="Reservation expired",
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(
            "Released expired hold on event %s seat %s", event_id, seat_number
        )
    return result.rowcount


async def raise_for_lost_race(
    db: AsyncSession, claim: SeatClaim, now: datetime, expected: ClaimStatus
) -> None:
    """Re-read a claim whose conditional update matched nothing and explain why."""
    await db.refresh(claim)
    if claim.status == expected and claim.is_hold_expired(now):
        raise ExpiredError("Reservation has expired")
    if claim.status != expected:
        raise InvalidStateError(f"Claim is {claim.status.value}")
    raise InvalidStateError("Claim was modified concurrently, please retry")
