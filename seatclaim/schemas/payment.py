"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field

from seatclaim.schemas.common import BaseSchema


class PaymentMode(str, Enum):
    """Payment mode enum."""

    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    CASH = "cash"


class PaymentStatus(str, Enum):
    """Payment status enum."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentCreate(BaseSchema):
    """Schema for initiating a payment against a claim."""

    claim_id: str = Field(..., min_length=1, max_length=26)
    amount: Decimal = Field(..., ge=0)
    mode: PaymentMode


class PaymentRefundRequest(BaseSchema):
    amount: Decimal | None = Field(None, gt=0)
    reason: str = Field(..., min_length=1, max_length=500)


class PaymentResponse(BaseSchema):
    payment_id: str
    claim_id: str
    attendee_id: str
    amount: Decimal
    currency: str
    mode: PaymentMode
    status: PaymentStatus
    transaction_id: str
    failure_reason: str | None = None
    processed_at: datetime | None = None
    refund_amount: Decimal | None = None
    refund_reason: str | None = None
    refunded_at: datetime | None = None
    refund_transaction_id: str | None = None
    created_at: datetime | None = None


class PaymentStatsResponse(BaseSchema):
    """Per-attendee payment totals."""

    total_payments: int
    successful_payments: int
    pending_payments: int
    failed_payments: int
    refunded_payments: int
    total_amount: Decimal
