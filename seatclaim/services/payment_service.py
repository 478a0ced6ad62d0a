"""Simulated payment gateway and refunds."""

import asyncio
import logging
import random
from decimal import Decimal
from typing import Callable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from seatclaim.auth import Actor
from seatclaim.clock import Clock, system_clock
from seatclaim.config import get_settings
from seatclaim.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from seatclaim.models.claim import ClaimStatus, SeatClaim, can_transition
from seatclaim.models.payment import Payment, PaymentMode, PaymentStatus
from seatclaim.services.claim_lookup import (
    ensure_owner,
    get_claim_or_404,
    transition_claim,
    update_claim_if,
)
from seatclaim.services.event_service import EventService

settings = get_settings()
logger = logging.getLogger(__name__)


class PaymentService:
    """
    Service for payments against seat claims.

    There is no real gateway: processing sleeps for a configured delay
    and then succeeds with a configured probability.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = system_clock,
        delay_seconds: float | None = None,
        success_rate: float | None = None,
        rng: Callable[[], float] = random.random,
    ):
        self.db = db
        self.clock = clock
        self.delay_seconds = (
            settings.PAYMENT_PROCESSING_DELAY_SECONDS if delay_seconds is None else delay_seconds
        )
        self.success_rate = (
            settings.PAYMENT_SUCCESS_RATE if success_rate is None else success_rate
        )
        self.rng = rng
        self.events = EventService(db)

    async def get_payment(self, payment_id: str) -> Payment:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.payment_id == payment_id)
            .execution_options(populate_existing=True)
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    async def get_payment_for(self, payment_id: str, actor: Actor) -> Payment:
        """Get payment details. Owner or admin only."""
        payment = await self.get_payment(payment_id)
        if payment.attendee_id != actor.user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to view this payment")
        return payment

    async def get_user_payments(self, user_id: str, actor: Actor) -> list[Payment]:
        """Payment history of an attendee, newest first. Self or admin only."""
        if actor.user_id != user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to view these payments")

        result = await self.db.execute(
            select(Payment)
            .where(Payment.attendee_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.payment_id.desc())
        )
        return list(result.scalars().all())

    async def get_payment_stats(self, user_id: str, actor: Actor) -> dict:
        """
        Payment totals of an attendee. Self or admin only.

        ``total_amount`` sums successful payments only.
        """
        if actor.user_id != user_id and not actor.is_admin:
            raise ForbiddenError("Not authorized to view these statistics")

        result = await self.db.execute(
            select(Payment.status, func.count(), func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.attendee_id == user_id)
            .group_by(Payment.status)
        )
        counts: dict[PaymentStatus, int] = {}
        total_amount = Decimal("0")
        for status, count, amount in result.all():
            counts[status] = count
            if status == PaymentStatus.SUCCESS:
                total_amount = Decimal(str(amount))

        return {
            "total_payments": sum(counts.values()),
            "successful_payments": counts.get(PaymentStatus.SUCCESS, 0),
            "pending_payments": counts.get(PaymentStatus.PENDING, 0),
            "failed_payments": counts.get(PaymentStatus.FAILED, 0),
            "refunded_payments": counts.get(PaymentStatus.REFUNDED, 0),
            "total_amount": total_amount,
        }

    async def _set_payment_status(
        self,
        payment: Payment,
        expected: tuple[PaymentStatus, ...],
        **values,
    ) -> bool:
        result = await self.db.execute(
            update(Payment)
            .where(Payment.payment_id == payment.payment_id, Payment.status.in_(expected))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def initiate_payment(
        self,
        claim_id: str,
        attendee_id: str,
        amount: Decimal,
        mode: PaymentMode,
    ) -> Payment:
        """Open a pending payment for a live reservation or an active ticket."""
        claim = await get_claim_or_404(self.db, claim_id)
        ensure_owner(claim, attendee_id, "pay for this claim")

        if claim.effective_status(self.clock.now()) not in (
            ClaimStatus.RESERVED,
            ClaimStatus.ACTIVE,
        ):
            raise InvalidStateError("Claim is not in a payable state")

        result = await self.db.execute(
            select(Payment.payment_id).where(
                Payment.claim_id == claim_id,
                Payment.status.in_((PaymentStatus.PENDING, PaymentStatus.SUCCESS)),
            )
        )
        if result.first() is not None:
            raise ConflictError("Payment already initiated for this claim")

        payment = Payment(
            claim_id=claim_id,
            attendee_id=attendee_id,
            amount=amount,
            currency=claim.currency,
            mode=mode,
            status=PaymentStatus.PENDING,
        )
        self.db.add(payment)
        await self.db.commit()
        await self.db.refresh(payment)
        logger.info(
            "Initiated payment %s of %s for claim %s", payment.payment_id, amount, claim_id
        )
        return payment

    async def process_payment(self, payment_id: str, attendee_id: str) -> Payment:
        """
        Run a pending payment through the simulated gateway.

        Returns the payment in ``success`` or ``failed``. A success on an
        already active ticket links the payment to it straight away.
        """
        payment = await self.get_payment(payment_id)
        if payment.attendee_id != attendee_id:
            raise ForbiddenError("Not authorized to process this payment")
        if payment.status != PaymentStatus.PENDING:
            raise InvalidStateError("Payment is not in a processable state")

        await asyncio.sleep(self.delay_seconds)

        now = self.clock.now()
        succeeded = self.rng() < self.success_rate
        values = {"processed_at": now}
        if succeeded:
            values["status"] = PaymentStatus.SUCCESS
        else:
            values["status"] = PaymentStatus.FAILED
            values["failure_reason"] = "Payment gateway declined the transaction"

        if not await self._set_payment_status(payment, (PaymentStatus.PENDING,), **values):
            await self.db.rollback()
            raise InvalidStateError("Payment is not in a processable state")

        if succeeded:
            await update_claim_if(
                self.db,
                payment.claim_id,
                SeatClaim.status == ClaimStatus.ACTIVE,
                SeatClaim.payment_ref.is_(None),
                payment_ref=payment.payment_id,
            )

        await self.db.commit()
        await self.db.refresh(payment)
        logger.info("Payment %s %s", payment.payment_id, payment.status.value)
        return payment

    async def cancel_payment(self, payment_id: str, attendee_id: str) -> Payment:
        """Cancel a pending or failed payment."""
        payment = await self.get_payment(payment_id)
        if payment.attendee_id != attendee_id:
            raise ForbiddenError("Not authorized to cancel this payment")

        cancellable = (PaymentStatus.PENDING, PaymentStatus.FAILED)
        if payment.status not in cancellable:
            raise InvalidStateError("Payment cannot be cancelled")

        if not await self._set_payment_status(
            payment, cancellable, status=PaymentStatus.CANCELLED
        ):
            await self.db.rollback()
            raise InvalidStateError("Payment cannot be cancelled")

        await self.db.commit()
        await self.db.refresh(payment)
        logger.info("Cancelled payment %s", payment.payment_id)
        return payment

    async def process_refund(
        self,
        payment_id: str,
        reason: str,
        amount: Decimal | None = None,
    ) -> Payment:
        """
        Refund a successful payment.

        The linked claim moves to ``refunded``. Analytics only change for a
        claim that was once issued as a ticket: revenue drops by the refunded
        amount, and a still active ticket also leaves the sold and attendee
        counts. A payment taken on a hold that never became a ticket was
        never counted.
        """
        payment = await self.get_payment(payment_id)
        if payment.status != PaymentStatus.SUCCESS:
            raise InvalidStateError("Only successful payments can be refunded")

        refund_amount = payment.amount if amount is None else amount
        if refund_amount > payment.amount:
            raise ValidationFailedError(
                "Refund exceeds payment amount",
                errors=[{"field": "amount", "message": f"At most {payment.amount}"}],
            )

        claim = await get_claim_or_404(self.db, payment.claim_id)
        if not can_transition(claim.status, ClaimStatus.REFUNDED):
            raise InvalidStateError(f"A {claim.status.value} claim cannot be refunded")

        now = self.clock.now()
        was_active = claim.status == ClaimStatus.ACTIVE
        was_issued = claim.issued_at is not None

        if not await self._set_payment_status(
            payment,
            (PaymentStatus.SUCCESS,),
            status=PaymentStatus.REFUNDED,
            refund_amount=refund_amount,
            refund_reason=reason,
            refunded_at=now,
            refund_transaction_id=f"REF-{payment.transaction_id}",
        ):
            await self.db.rollback()
            raise InvalidStateError("Only successful payments can be refunded")

        if not await transition_claim(
            self.db, claim, ClaimStatus.REFUNDED, refunded_at=now, payment_ref=payment_id
        ):
            await self.db.rollback()
            raise InvalidStateError("Claim changed while refunding, please retry")

        if was_issued:
            await self.events.adjust_analytics(
                claim.event_id,
                tickets_sold=-1 if was_active else 0,
                attendees=-1 if was_active else 0,
                revenue=-refund_amount,
            )
        await self.db.commit()
        await self.db.refresh(payment)
        logger.info(
            "Refunded %s on payment %s (claim %s): %s",
            refund_amount,
            payment.payment_id,
            claim.claim_id,
            reason,
        )
        return payment
