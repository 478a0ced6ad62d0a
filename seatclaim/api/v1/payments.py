"""Payments API endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from seatclaim.api.v1.dependencies import (
    AdminActor,
    CurrentActor,
    PaymentServiceDep,
)
from seatclaim.models.payment import PaymentMode, PaymentStatus
from seatclaim.schemas.common import ApiResponse
from seatclaim.schemas.payment import (
    PaymentCreate,
    PaymentRefundRequest,
    PaymentResponse,
    PaymentStatsResponse,
)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[PaymentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Initiate payment",
)
async def initiate_payment(
    payment_data: PaymentCreate,
    actor: CurrentActor,
    payment_service: PaymentServiceDep,
) -> ApiResponse[PaymentResponse]:
    """Open a pending payment against a reservation or ticket."""
    payment = await payment_service.initiate_payment(
        claim_id=payment_data.claim_id,
        attendee_id=actor.user_id,
        amount=payment_data.amount,
        mode=PaymentMode(payment_data.mode.value),
    )
    return ApiResponse(
        message="Payment initiated successfully",
        data=PaymentResponse.model_validate(payment),
    )


@router.post(
    "/{payment_id}/process",
    response_model=ApiResponse[PaymentResponse],
    summary="Process payment",
)
async def process_payment(
    payment_id: str,
    actor: CurrentActor,
    payment_service: PaymentServiceDep,
):
    """
    Run a pending payment through the gateway.

    A declined payment answers 400 with the failed payment in ``data``.
    """
    payment = await payment_service.process_payment(payment_id, actor.user_id)
    data = PaymentResponse.model_validate(payment)

    if payment.status == PaymentStatus.FAILED:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ApiResponse(
                success=False,
                message="Payment failed",
                data=data,
            ).model_dump(mode="json", by_alias=True),
        )

    return ApiResponse(message="Payment processed successfully", data=data)


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[PaymentResponse]],
    summary="Get user payment history",
)
async def get_user_payments(
    user_id: str,
    actor: CurrentActor,
    payment_service: PaymentServiceDep,
) -> ApiResponse[list[PaymentResponse]]:
    payments = await payment_service.get_user_payments(user_id, actor)
    return ApiResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.get(
    "/stats/{user_id}",
    response_model=ApiResponse[PaymentStatsResponse],
    summary="Get user payment statistics",
)
async def get_payment_stats(
    user_id: str,
    actor: CurrentActor,
    payment_service: PaymentServiceDep,
) -> ApiResponse[PaymentStatsResponse]:
    stats = await payment_service.get_payment_stats(user_id, actor)
    return ApiResponse(data=PaymentStatsResponse.model_validate(stats))


@router.get(
    "/{payment_id}",
    response_model=ApiResponse[PaymentResponse],
    summary="Get payment details",
)
async def get_payment(
    payment_id: str,
    actor: CurrentActor,
    payment_service: PaymentServiceDep,
) -> ApiResponse[PaymentResponse]:
    payment = await payment_service.get_payment_for(payment_id, actor)
    return ApiResponse(data=PaymentResponse.model_validate(payment))


@router.delete(
    "/{payment_id}",
    response_model=ApiResponse[PaymentResponse],
    summary="Cancel payment",
)
async def cancel_payment(
    payment_id: str,
    actor: CurrentActor,
    payment_service: PaymentServiceDep,
) -> ApiResponse[PaymentResponse]:
    payment = await payment_service.cancel_payment(payment_id, actor.user_id)
    return ApiResponse(
        message="Payment cancelled successfully",
        data=PaymentResponse.model_validate(payment),
    )


@router.post(
    "/{payment_id}/refund",
    response_model=ApiResponse[PaymentResponse],
    summary="Refund payment",
)
async def refund_payment(
    payment_id: str,
    refund_data: PaymentRefundRequest,
    actor: AdminActor,
    payment_service: PaymentServiceDep,
) -> ApiResponse[PaymentResponse]:
    """Refund a successful payment and release its ticket. Admin only."""
    payment = await payment_service.process_refund(
        payment_id, reason=refund_data.reason, amount=refund_data.amount
    )
    return ApiResponse(
        message="Refund processed successfully",
        data=PaymentResponse.model_validate(payment),
    )
