"""Tickets: confirmation, direct issue, cancellation, transfer and check-in."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from seatclaim.auth import Actor, Role
from seatclaim.exceptions import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from seatclaim.models.claim import ClaimStatus, TicketCategory
from seatclaim.services.reservation_service import ReservationService
from seatclaim.services.ticket_service import TicketService


async def _ticket(db, clock, event, seat=1, attendee="alice", price="100"):
    return await TicketService(db, clock).issue_ticket(
        event.event_id, seat, attendee, TicketCategory.STANDARD, Decimal(price)
    )


async def test_reserve_confirm_then_cancel(db, clock, make_event, get_event):
    event = await make_event(starts_in=timedelta(days=3))
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice", 15
    )
    tickets = TicketService(db, clock)

    ticket = await tickets.confirm_reservation(
        reservation.claim_id, "alice", TicketCategory.VIP, Decimal("500")
    )

    assert ticket.status == ClaimStatus.ACTIVE
    assert ticket.issued_at == clock.now()
    assert ticket.category == "vip"
    assert ticket.price == Decimal("500")
    assert ticket.ticket_number.startswith("TK-")
    assert ticket.reservation_expires_at is None
    refreshed = await get_event(event.event_id)
    assert refreshed.tickets_sold == 1
    assert refreshed.attendees == 1
    assert refreshed.revenue == Decimal("500")

    cancelled = await tickets.cancel_ticket(ticket.claim_id, Actor("alice"), "Plans changed")

    assert cancelled.status == ClaimStatus.CANCELLED
    assert cancelled.cancellation_reason == "Plans changed"
    refreshed = await get_event(event.event_id)
    assert refreshed.tickets_sold == 0
    assert refreshed.attendees == 0
    assert refreshed.revenue == Decimal("500")


async def test_confirm_after_deadline_expires_hold(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice", 1
    )

    clock.advance(minutes=1)
    with pytest.raises(ExpiredError):
        await TicketService(db, clock).confirm_reservation(
            reservation.claim_id, "alice", TicketCategory.STANDARD, Decimal("100")
        )

    await db.refresh(reservation)
    assert reservation.status == ClaimStatus.CANCELLED


async def test_confirm_requires_owner(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    with pytest.raises(ForbiddenError):
        await TicketService(db, clock).confirm_reservation(
            reservation.claim_id, "bob", TicketCategory.STANDARD, Decimal("100")
        )


async def test_extension_outlives_original_deadline(session_factory, clock, make_event):
    event = await make_event()
    async with session_factory() as session:
        service = ReservationService(session, clock)
        reservation = await service.create_reservation(event.event_id, 5, "alice", 1)
        clock.advance(seconds=30)
        await service.extend_reservation(reservation.claim_id, "alice", 10)

    # Past the original deadline, before the extended one
    clock.advance(minutes=2)
    async with session_factory() as session:
        # The originally scheduled expiry action fires and must be a no-op
        assert not await ReservationService(session, clock).expire_reservation(
            reservation.claim_id
        )
        ticket = await TicketService(session, clock).confirm_reservation(
            reservation.claim_id, "alice", TicketCategory.STANDARD, Decimal("100")
        )
    assert ticket.status == ClaimStatus.ACTIVE


async def test_confirm_twice_fails(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    tickets = TicketService(db, clock)
    await tickets.confirm_reservation(
        reservation.claim_id, "alice", TicketCategory.STANDARD, Decimal("100")
    )
    with pytest.raises(InvalidStateError):
        await tickets.confirm_reservation(
            reservation.claim_id, "alice", TicketCategory.STANDARD, Decimal("100")
        )


async def test_issue_ticket_on_reserved_seat_conflicts(db, clock, make_event):
    event = await make_event()
    await ReservationService(db, clock).create_reservation(event.event_id, 5, "alice")
    with pytest.raises(ConflictError):
        await _ticket(db, clock, event, seat=5, attendee="bob")


async def test_concurrent_issue_for_one_seat(session_factory, clock, make_event, get_event):
    event = await make_event()

    async def attempt(i: int) -> bool:
        async with session_factory() as session:
            try:
                await _ticket(session, clock, event, seat=2, attendee=f"user-{i}")
                return True
            except ConflictError:
                return False

    results = await asyncio.gather(*(attempt(i) for i in range(8)))
    assert sum(results) == 1
    assert (await get_event(event.event_id)).tickets_sold == 1


async def test_counters_after_confirms_and_cancels(db, clock, make_event, get_event):
    event = await make_event()
    reservations = ReservationService(db, clock)
    tickets = TicketService(db, clock)

    confirmed = []
    for seat in range(1, 6):
        claim = await reservations.create_reservation(event.event_id, seat, f"user-{seat}")
        confirmed.append(
            await tickets.confirm_reservation(
                claim.claim_id, f"user-{seat}", TicketCategory.STANDARD, Decimal("10")
            )
        )
    for ticket in confirmed[:2]:
        await tickets.cancel_ticket(ticket.claim_id, Actor(ticket.attendee_id), "No longer going")

    refreshed = await get_event(event.event_id)
    assert refreshed.tickets_sold == 3
    assert refreshed.attendees == 3


@pytest.mark.parametrize(
    "hours_before, allowed",
    [(23, False), (24, False), (25, True)],
)
async def test_cancellation_blackout(db, clock, make_event, hours_before, allowed):
    event = await make_event(starts_in=timedelta(days=10))
    ticket = await _ticket(db, clock, event)

    clock.advance(days=10)
    clock.advance(hours=-hours_before)
    tickets = TicketService(db, clock)

    if allowed:
        assert (await tickets.cancel_ticket(ticket.claim_id, Actor("alice"), "x")).status == (
            ClaimStatus.CANCELLED
        )
    else:
        with pytest.raises(InvalidStateError):
            await tickets.cancel_ticket(ticket.claim_id, Actor("alice"), "x")


async def test_cancel_by_admin_and_not_by_stranger(db, clock, make_event):
    event = await make_event()
    ticket = await _ticket(db, clock, event)
    tickets = TicketService(db, clock)

    with pytest.raises(ForbiddenError):
        await tickets.cancel_ticket(ticket.claim_id, Actor("bob"), "x")
    cancelled = await tickets.cancel_ticket(ticket.claim_id, Actor("root", Role.ADMIN), "x")
    assert cancelled.status == ClaimStatus.CANCELLED


async def test_transfer_ticket(db, clock, make_event):
    event = await make_event()
    ticket = await _ticket(db, clock, event)
    tickets = TicketService(db, clock)

    moved = await tickets.transfer_ticket(ticket.claim_id, "alice", "bob", "Gift")

    assert moved.attendee_id == "bob"
    assert moved.is_transferred
    assert moved.transferred_at == clock.now()
    assert moved.transfer_history == [
        {
            "from_attendee_id": "alice",
            "to_attendee_id": "bob",
            "transferred_at": clock.now().isoformat(),
            "reason": "Gift",
        }
    ]
    # The previous owner no longer holds it
    with pytest.raises(ForbiddenError):
        await tickets.transfer_ticket(ticket.claim_id, "alice", "carol")

    again = await tickets.transfer_ticket(ticket.claim_id, "bob", "carol")
    assert len(again.transfer_history) == 2


async def test_transfer_to_self_rejected(db, clock, make_event):
    event = await make_event()
    ticket = await _ticket(db, clock, event)
    with pytest.raises(ValidationFailedError):
        await TicketService(db, clock).transfer_ticket(ticket.claim_id, "alice", "alice")


@pytest.mark.parametrize("hours_before, allowed", [(47, False), (49, True)])
async def test_transfer_blackout(db, clock, make_event, hours_before, allowed):
    event = await make_event(starts_in=timedelta(hours=hours_before))
    ticket = await _ticket(db, clock, event)
    tickets = TicketService(db, clock)

    if allowed:
        assert (await tickets.transfer_ticket(ticket.claim_id, "alice", "bob")).attendee_id == "bob"
    else:
        with pytest.raises(InvalidStateError):
            await tickets.transfer_ticket(ticket.claim_id, "alice", "bob")


async def test_validate_ticket_once(db, clock, make_event):
    event = await make_event()
    ticket = await _ticket(db, clock, event)
    tickets = TicketService(db, clock)

    used = await tickets.validate_ticket(ticket.claim_id, event.event_id, "staff-1", "Gate A")

    assert used.status == ClaimStatus.USED
    assert used.check_in == {
        "checked_in": True,
        "checked_in_at": clock.now(),
        "checked_in_by": "staff-1",
        "gate": "Gate A",
    }
    assert used.live_seat_number is None

    with pytest.raises(AlreadyUsedError):
        await tickets.validate_ticket(ticket.claim_id, event.event_id, "staff-2")

    await db.refresh(used)
    assert used.status == ClaimStatus.USED
    assert used.checked_in_by == "staff-1"


async def test_concurrent_check_in(session_factory, clock, make_event):
    event = await make_event()
    async with session_factory() as session:
        ticket = await _ticket(session, clock, event)

    async def attempt(staff: str) -> bool:
        async with session_factory() as session:
            try:
                await TicketService(session, clock).validate_ticket(
                    ticket.claim_id, event.event_id, staff
                )
                return True
            except AlreadyUsedError:
                return False

    results = await asyncio.gather(*(attempt(f"staff-{i}") for i in range(5)))
    assert sum(results) == 1


async def test_validate_for_wrong_event(db, clock, make_event):
    event = await make_event()
    other = await make_event()
    ticket = await _ticket(db, clock, event)
    with pytest.raises(ValidationFailedError):
        await TicketService(db, clock).validate_ticket(ticket.claim_id, other.event_id, "staff-1")


async def test_validate_cancelled_ticket(db, clock, make_event):
    event = await make_event()
    ticket = await _ticket(db, clock, event)
    tickets = TicketService(db, clock)
    await tickets.cancel_ticket(ticket.claim_id, Actor("alice"), "x")

    with pytest.raises(InvalidStateError):
        await tickets.validate_ticket(ticket.claim_id, event.event_id, "staff-1")


async def test_reservation_is_not_a_ticket(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    with pytest.raises(NotFoundError):
        await TicketService(db, clock).get_ticket(reservation.claim_id, Actor("alice"))


async def test_ticket_listings(db, clock, make_event):
    event = await make_event(organizer_id="org-1")
    await _ticket(db, clock, event, seat=1, attendee="alice")
    await _ticket(db, clock, event, seat=2, attendee="bob")
    tickets = TicketService(db, clock)

    mine = await tickets.get_user_tickets("alice", Actor("alice"))
    assert [t.seat_number for t in mine] == [1]

    with pytest.raises(ForbiddenError):
        await tickets.get_user_tickets("alice", Actor("bob"))

    everyone = await tickets.get_event_tickets(
        event.event_id, Actor("org-1", Role.ORGANIZER)
    )
    assert [t.seat_number for t in everyone] == [1, 2]

    with pytest.raises(ForbiddenError):
        await tickets.get_event_tickets(event.event_id, Actor("org-2", Role.ORGANIZER))
