"""Transition table and effective status of a claim."""

from datetime import datetime, timedelta

import pytest

from seatclaim.exceptions import InvalidStateError
from seatclaim.models.claim import (
    ClaimStatus,
    SeatClaim,
    can_transition,
    ensure_transition,
    generate_ticket_number,
    live_seat_for,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)

LEGAL = {
    (ClaimStatus.RESERVED, ClaimStatus.ACTIVE),
    (ClaimStatus.RESERVED, ClaimStatus.CANCELLED),
    (ClaimStatus.ACTIVE, ClaimStatus.USED),
    (ClaimStatus.ACTIVE, ClaimStatus.CANCELLED),
    (ClaimStatus.ACTIVE, ClaimStatus.REFUNDED),
    (ClaimStatus.CANCELLED, ClaimStatus.REFUNDED),
}


@pytest.mark.parametrize("current", list(ClaimStatus))
@pytest.mark.parametrize("target", list(ClaimStatus))
def test_transition_table(current, target):
    assert can_transition(current, target) == ((current, target) in LEGAL)


def test_ensure_transition_rejects_reviving_terminal_claim():
    with pytest.raises(InvalidStateError):
        ensure_transition(ClaimStatus.USED, ClaimStatus.ACTIVE)
    with pytest.raises(InvalidStateError):
        ensure_transition(ClaimStatus.CANCELLED, ClaimStatus.RESERVED)


def test_live_seat_only_for_non_terminal_status():
    assert live_seat_for(ClaimStatus.RESERVED, 7) == 7
    assert live_seat_for(ClaimStatus.ACTIVE, 7) == 7
    for status in (ClaimStatus.USED, ClaimStatus.CANCELLED, ClaimStatus.REFUNDED):
        assert live_seat_for(status, 7) is None


def _hold(expires_at):
    return SeatClaim(
        event_id=1,
        attendee_id="a",
        seat_number=1,
        status=ClaimStatus.RESERVED,
        reservation_expires_at=expires_at,
    )


def test_effective_status_of_expired_hold_is_cancelled():
    claim = _hold(NOW)
    assert claim.is_hold_expired(NOW)
    assert claim.effective_status(NOW) == ClaimStatus.CANCELLED
    assert not claim.occupies_seat(NOW)


def test_effective_status_of_live_hold_is_reserved():
    claim = _hold(NOW + timedelta(seconds=1))
    assert not claim.is_hold_expired(NOW)
    assert claim.effective_status(NOW) == ClaimStatus.RESERVED
    assert claim.occupies_seat(NOW)


def test_active_ticket_never_expires():
    claim = SeatClaim(
        event_id=1,
        attendee_id="a",
        seat_number=1,
        status=ClaimStatus.ACTIVE,
        reservation_expires_at=NOW - timedelta(days=1),
    )
    assert claim.effective_status(NOW) == ClaimStatus.ACTIVE


def test_ticket_numbers_are_unique():
    numbers = {generate_ticket_number() for _ in range(100)}
    assert len(numbers) == 100
    assert all(n.startswith("TK-") for n in numbers)
