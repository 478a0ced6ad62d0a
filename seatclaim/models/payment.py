"""Payment model for the simulated gateway."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column
from ulid import ULID

from seatclaim.models.base import Base, Timestamp


class PaymentStatus(str, enum.Enum):
    """Payment status enum."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMode(str, enum.Enum):
    """Payment mode enum."""

    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    CASH = "cash"


def generate_transaction_id() -> str:
    return f"TXN-{ULID()}"


class Payment(Base):
    """Payment made against a seat claim."""

    __tablename__ = "payments"

    payment_id: Mapped[str] = mapped_column(
        String(26), primary_key=True, default=lambda: str(ULID())
    )
    claim_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("seat_claims.claim_id"), nullable=False
    )
    attendee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR")
    mode: Mapped[PaymentMode] = mapped_column(
        Enum(PaymentMode, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, values_callable=lambda e: [m.value for m in e]),
        default=PaymentStatus.PENDING,
    )
    transaction_id: Mapped[str] = mapped_column(
        String(40), unique=True, default=generate_transaction_id
    )
    failure_reason: Mapped[str | None] = mapped_column(String(255))
    processed_at: Mapped[datetime | None] = mapped_column(Timestamp)

    # Refund
    refund_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    refund_reason: Mapped[str | None] = mapped_column(String(500))
    refunded_at: Mapped[datetime | None] = mapped_column(Timestamp)
    refund_transaction_id: Mapped[str | None] = mapped_column(String(50))

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    __table_args__ = (
        Index("idx_payment_claim_status", "claim_id", "status"),
        Index("idx_payment_attendee", "attendee_id"),
    )
