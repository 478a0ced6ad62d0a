"""Event model."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from seatclaim.models.base import Base, BigIntPK, Timestamp


class EventStatus(str, enum.Enum):
    """Event status enum."""

    DRAFT = "draft"
    ACTIVE = "active"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses in which an event accepts new claims
OPEN_EVENT_STATUSES = frozenset({EventStatus.ACTIVE, EventStatus.PUBLISHED})


class Event(Base):
    """Event a seat claim is made against.

    The analytics counters are only ever changed through atomic
    increments (see ``EventService.adjust_analytics``).
    """

    __tablename__ = "events"

    event_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organizer_id: Mapped[str | None] = mapped_column(String(50))
    start_date: Mapped[datetime] = mapped_column(Timestamp, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, values_callable=lambda e: [m.value for m in e]),
        default=EventStatus.DRAFT,
    )
    currency: Mapped[str] = mapped_column(String(3), default="INR")

    # Advertised price band
    min_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    max_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)

    # Analytics
    tickets_sold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    attendees: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    __table_args__ = (
        Index("idx_event_status", "status"),
        Index("idx_event_start_date", "start_date"),
    )

    @property
    def accepts_claims(self) -> bool:
        return self.status in OPEN_EVENT_STATUSES
