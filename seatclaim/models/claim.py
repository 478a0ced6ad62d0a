"""Seat claim model.

A claim is either a temporary hold on a seat (``reserved``) or a ticket
(``active`` and onwards). Both live in one table, distinguished by status.

Exclusivity of ``(event_id, seat_number)`` among non-terminal claims is
enforced by the database: ``live_seat_number`` mirrors ``seat_number``
while the claim is non-terminal and is NULL once it is terminal, and a
unique constraint covers ``(event_id, live_seat_number)``. Unique indexes
ignore NULLs, so terminal claims never collide.
"""

import enum
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ulid import ULID

from seatclaim.exceptions import InvalidStateError
from seatclaim.models.base import Base, BigIntPK, Timestamp

if TYPE_CHECKING:
    from seatclaim.models.event import Event


class ClaimStatus(str, enum.Enum):
    """Seat claim status enum."""

    RESERVED = "reserved"
    ACTIVE = "active"
    USED = "used"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class TicketCategory(str, enum.Enum):
    """Ticket category enum."""

    STANDARD = "standard"
    VIP = "vip"
    PREMIUM = "premium"
    GENERAL = "general"
    FAN_PIT = "fan-pit"
    BALCONY = "balcony"


NON_TERMINAL_STATUSES = frozenset({ClaimStatus.RESERVED, ClaimStatus.ACTIVE})
TERMINAL_STATUSES = frozenset(ClaimStatus) - NON_TERMINAL_STATUSES

ALLOWED_TRANSITIONS: dict[ClaimStatus, frozenset[ClaimStatus]] = {
    ClaimStatus.RESERVED: frozenset({ClaimStatus.ACTIVE, ClaimStatus.CANCELLED}),
    ClaimStatus.ACTIVE: frozenset(
        {ClaimStatus.USED, ClaimStatus.CANCELLED, ClaimStatus.REFUNDED}
    ),
    ClaimStatus.CANCELLED: frozenset({ClaimStatus.REFUNDED}),
    ClaimStatus.USED: frozenset(),
    ClaimStatus.REFUNDED: frozenset(),
}


def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: ClaimStatus, target: ClaimStatus) -> None:
    """Raise InvalidStateError unless ``current -> target`` is legal."""
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move claim from '{current.value}' to '{target.value}'"
        )


def live_seat_for(status: ClaimStatus, seat_number: int) -> int | None:
    """Value of ``live_seat_number`` for a claim in ``status``."""
    return seat_number if status in NON_TERMINAL_STATUSES else None


def generate_claim_id() -> str:
    return str(ULID())


def generate_ticket_number() -> str:
    return f"TK-{ULID()}"


class SeatClaim(Base):
    """A reservation or ticket for one seat of one event."""

    __tablename__ = "seat_claims"

    claim_id: Mapped[str] = mapped_column(
        String(26), primary_key=True, default=generate_claim_id
    )
    event_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("events.event_id"), nullable=False
    )
    attendee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)
    live_seat_number: Mapped[int | None] = mapped_column(Integer)

    category: Mapped[str] = mapped_column(String(20), default=TicketCategory.STANDARD.value)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), default="INR")

    status: Mapped[ClaimStatus] = mapped_column(
        Enum(ClaimStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    version: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    reserved_at: Mapped[datetime | None] = mapped_column(Timestamp)
    reservation_expires_at: Mapped[datetime | None] = mapped_column(Timestamp)
    issued_at: Mapped[datetime | None] = mapped_column(Timestamp)
    ticket_number: Mapped[str | None] = mapped_column(String(40), unique=True)
    payment_ref: Mapped[str | None] = mapped_column(String(26))

    # Check-in
    checked_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    checked_in_at: Mapped[datetime | None] = mapped_column(Timestamp)
    checked_in_by: Mapped[str | None] = mapped_column(String(50))
    check_in_gate: Mapped[str | None] = mapped_column(String(50))

    # Transfer
    is_transferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    transferred_at: Mapped[datetime | None] = mapped_column(Timestamp)
    transfer_history: Mapped[list[dict]] = mapped_column(JSON, default=list)

    # Cancellation / refund
    cancelled_at: Mapped[datetime | None] = mapped_column(Timestamp)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500))
    refunded_at: Mapped[datetime | None] = mapped_column(Timestamp)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    event: Mapped["Event"] = relationship("Event", lazy="raise")

    __table_args__ = (
        UniqueConstraint("event_id", "live_seat_number", name="uk_event_live_seat"),
        Index("idx_claim_event_status", "event_id", "status"),
        Index("idx_claim_attendee", "attendee_id"),
        Index("idx_claim_expires_at", "status", "reservation_expires_at"),
    )

    def is_hold_expired(self, now: datetime) -> bool:
        """True if this is a reservation whose window has passed."""
        return (
            self.status == ClaimStatus.RESERVED
            and self.reservation_expires_at is not None
            and self.reservation_expires_at <= now
        )

    def effective_status(self, now: datetime) -> ClaimStatus:
        """Status as readers should see it, before any sweep has run."""
        if self.is_hold_expired(now):
            return ClaimStatus.CANCELLED
        return self.status

    def occupies_seat(self, now: datetime) -> bool:
        return self.effective_status(now) in NON_TERMINAL_STATUSES

    @property
    def check_in(self) -> dict:
        return {
            "checked_in": self.checked_in,
            "checked_in_at": self.checked_in_at,
            "checked_in_by": self.checked_in_by,
            "gate": self.check_in_gate,
        }
