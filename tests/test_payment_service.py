"""Simulated payments, payment-backed confirmation and refunds."""

from decimal import Decimal

import pytest

from seatclaim.auth import Actor, Role
from seatclaim.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    ValidationFailedError,
)
from seatclaim.models.claim import ClaimStatus, TicketCategory
from seatclaim.models.payment import PaymentMode, PaymentStatus
from seatclaim.services.payment_service import PaymentService
from seatclaim.services.reservation_service import ReservationService
from seatclaim.services.ticket_service import TicketService


def _payments(db, clock, succeed=True) -> PaymentService:
    return PaymentService(
        db,
        clock,
        delay_seconds=0,
        success_rate=0.9,
        rng=(lambda: 0.0) if succeed else (lambda: 0.99),
    )


async def _paid_reservation(db, clock, event, price="500"):
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    payments = _payments(db, clock)
    payment = await payments.initiate_payment(
        reservation.claim_id, "alice", Decimal(price), PaymentMode.UPI
    )
    payment = await payments.process_payment(payment.payment_id, "alice")
    return reservation, payment


async def test_payment_then_confirm(db, clock, make_event, get_event):
    event = await make_event()
    reservation, payment = await _paid_reservation(db, clock, event)

    assert payment.status == PaymentStatus.SUCCESS
    assert payment.transaction_id.startswith("TXN-")
    assert payment.processed_at == clock.now()

    ticket = await TicketService(db, clock).confirm_reservation(
        reservation.claim_id,
        "alice",
        TicketCategory.VIP,
        Decimal("500"),
        payment_id=payment.payment_id,
    )
    assert ticket.status == ClaimStatus.ACTIVE
    assert ticket.payment_ref == payment.payment_id
    assert (await get_event(event.event_id)).revenue == Decimal("500")


async def test_confirm_rejects_mismatched_amount(db, clock, make_event):
    event = await make_event()
    reservation, payment = await _paid_reservation(db, clock, event, price="400")

    with pytest.raises(ValidationFailedError):
        await TicketService(db, clock).confirm_reservation(
            reservation.claim_id,
            "alice",
            TicketCategory.VIP,
            Decimal("500"),
            payment_id=payment.payment_id,
        )


async def test_declined_payment(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    payments = _payments(db, clock, succeed=False)
    payment = await payments.initiate_payment(
        reservation.claim_id, "alice", Decimal("100"), PaymentMode.CARD
    )

    failed = await payments.process_payment(payment.payment_id, "alice")
    assert failed.status == PaymentStatus.FAILED
    assert failed.failure_reason

    with pytest.raises(InvalidStateError):
        await payments.process_payment(payment.payment_id, "alice")

    cancelled = await payments.cancel_payment(payment.payment_id, "alice")
    assert cancelled.status == PaymentStatus.CANCELLED


async def test_one_open_payment_per_claim(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    payments = _payments(db, clock)
    first = await payments.initiate_payment(
        reservation.claim_id, "alice", Decimal("100"), PaymentMode.CARD
    )

    with pytest.raises(ConflictError):
        await payments.initiate_payment(
            reservation.claim_id, "alice", Decimal("100"), PaymentMode.CARD
        )

    await payments.cancel_payment(first.payment_id, "alice")
    second = await payments.initiate_payment(
        reservation.claim_id, "alice", Decimal("100"), PaymentMode.CARD
    )
    assert second.status == PaymentStatus.PENDING


async def test_payment_requires_owner(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice"
    )
    payments = _payments(db, clock)
    with pytest.raises(ForbiddenError):
        await payments.initiate_payment(
            reservation.claim_id, "bob", Decimal("100"), PaymentMode.CARD
        )

    payment = await payments.initiate_payment(
        reservation.claim_id, "alice", Decimal("100"), PaymentMode.CARD
    )
    with pytest.raises(ForbiddenError):
        await payments.get_payment_for(payment.payment_id, Actor("bob"))
    assert await payments.get_payment_for(payment.payment_id, Actor("root", Role.ADMIN))


async def test_payment_for_expired_hold_rejected(db, clock, make_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice", 1
    )
    clock.advance(minutes=1)
    with pytest.raises(InvalidStateError):
        await _payments(db, clock).initiate_payment(
            reservation.claim_id, "alice", Decimal("100"), PaymentMode.CARD
        )


async def test_refund_active_ticket(db, clock, make_event, get_event):
    event = await make_event()
    reservation, payment = await _paid_reservation(db, clock, event)
    await TicketService(db, clock).confirm_reservation(
        reservation.claim_id,
        "alice",
        TicketCategory.VIP,
        Decimal("500"),
        payment_id=payment.payment_id,
    )

    refunded = await _payments(db, clock).process_refund(payment.payment_id, "Show moved")

    assert refunded.status == PaymentStatus.REFUNDED
    assert refunded.refund_amount == Decimal("500")
    assert refunded.refund_transaction_id == f"REF-{payment.transaction_id}"
    await db.refresh(reservation)
    assert reservation.status == ClaimStatus.REFUNDED
    assert reservation.live_seat_number is None

    refreshed = await get_event(event.event_id)
    assert refreshed.tickets_sold == 0
    assert refreshed.attendees == 0
    assert refreshed.revenue == Decimal("0")


async def test_refund_cancelled_ticket(db, clock, make_event, get_event):
    event = await make_event()
    tickets = TicketService(db, clock)
    ticket = await tickets.issue_ticket(
        event.event_id, 1, "alice", TicketCategory.STANDARD, Decimal("100")
    )
    payments = _payments(db, clock)
    payment = await payments.initiate_payment(
        ticket.claim_id, "alice", Decimal("100"), PaymentMode.WALLET
    )
    await payments.process_payment(payment.payment_id, "alice")
    await db.refresh(ticket)
    assert ticket.payment_ref == payment.payment_id

    await tickets.cancel_ticket(ticket.claim_id, Actor("alice"), "Cannot attend")
    await payments.process_refund(payment.payment_id, "Cancelled", Decimal("60"))

    await db.refresh(ticket)
    assert ticket.status == ClaimStatus.REFUNDED
    refreshed = await get_event(event.event_id)
    assert refreshed.tickets_sold == 0
    assert refreshed.revenue == Decimal("40")


async def test_refund_of_lapsed_hold_leaves_analytics(db, clock, make_event, get_event):
    event = await make_event()
    reservation = await ReservationService(db, clock).create_reservation(
        event.event_id, 5, "alice", 1
    )
    payments = _payments(db, clock)
    payment = await payments.initiate_payment(
        reservation.claim_id, "alice", Decimal("500"), PaymentMode.CARD
    )
    await payments.process_payment(payment.payment_id, "alice")

    clock.advance(minutes=2)
    assert await ReservationService(db, clock).cleanup_expired_reservations() == 1

    refunded = await payments.process_refund(payment.payment_id, "Hold lapsed")
    assert refunded.status == PaymentStatus.REFUNDED
    await db.refresh(reservation)
    assert reservation.status == ClaimStatus.REFUNDED

    refreshed = await get_event(event.event_id)
    assert refreshed.revenue == Decimal("0")
    assert refreshed.tickets_sold == 0
    assert refreshed.attendees == 0


async def test_refund_limits(db, clock, make_event):
    event = await make_event()
    reservation, payment = await _paid_reservation(db, clock, event)
    payments = _payments(db, clock)

    with pytest.raises(ValidationFailedError):
        await payments.process_refund(payment.payment_id, "Too much", Decimal("501"))

    # A reservation cannot be refunded; only tickets can
    with pytest.raises(InvalidStateError):
        await payments.process_refund(payment.payment_id, "Not a ticket")


async def test_used_ticket_cannot_be_refunded(db, clock, make_event):
    event = await make_event()
    reservation, payment = await _paid_reservation(db, clock, event)
    tickets = TicketService(db, clock)
    await tickets.confirm_reservation(
        reservation.claim_id, "alice", TicketCategory.VIP, Decimal("500"), payment.payment_id
    )
    await tickets.validate_ticket(reservation.claim_id, event.event_id, "staff-1")

    with pytest.raises(InvalidStateError):
        await _payments(db, clock).process_refund(payment.payment_id, "Too late")


async def test_user_payment_history_and_stats(db, clock, make_event):
    event = await make_event()
    reservations = ReservationService(db, clock)
    first = await reservations.create_reservation(event.event_id, 5, "alice")
    second = await reservations.create_reservation(event.event_id, 6, "alice")

    paid = await _payments(db, clock).initiate_payment(
        first.claim_id, "alice", Decimal("500"), PaymentMode.UPI
    )
    await _payments(db, clock).process_payment(paid.payment_id, "alice")
    declined = await _payments(db, clock).initiate_payment(
        second.claim_id, "alice", Decimal("100"), PaymentMode.CARD
    )
    await _payments(db, clock, succeed=False).process_payment(declined.payment_id, "alice")

    payments = _payments(db, clock)
    history = await payments.get_user_payments("alice", Actor("alice"))
    assert {p.payment_id for p in history} == {paid.payment_id, declined.payment_id}
    assert await payments.get_user_payments("bob", Actor("bob")) == []

    with pytest.raises(ForbiddenError):
        await payments.get_user_payments("alice", Actor("bob"))
    with pytest.raises(ForbiddenError):
        await payments.get_payment_stats("alice", Actor("bob"))

    stats = await payments.get_payment_stats("alice", Actor("root", Role.ADMIN))
    assert stats == {
        "total_payments": 2,
        "successful_payments": 1,
        "pending_payments": 0,
        "failed_payments": 1,
        "refunded_payments": 0,
        "total_amount": Decimal("500"),
    }
