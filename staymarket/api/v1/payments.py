"""Payment endpoints."""

from fastapi import APIRouter

from staymarket.api.deps import CurrentUser, DbSession
from staymarket.schemas.payment import (
    CallbackResponse,
    PaymentCallback,
    PaymentFailureReport,
    PaymentOrderResponse,
)
from staymarket.services.payment_service import CallbackResult, payment_reconciler

router = APIRouter()


def callback_response(result: CallbackResult) -> CallbackResponse:
    order = result.order
    return CallbackResponse(
        order=PaymentOrderResponse(
            order_id=order.order_id,
            purpose=order.purpose,
            status=order.status,
            amount=order.amount,
            wallet_deduction=order.wallet_deduction,
            currency=order.currency,
            booking_id=order.booking_id,
            failure_reason=order.failure_reason,
            expires_at=order.expires_at,
            settled_at=order.settled_at,
        ),
        booking_id=result.booking.id if result.booking else None,
        booking_status=result.booking.payment_status if result.booking else None,
        points_earned=result.points_earned,
        already_processed=result.already_processed,
    )


@router.post("/callback", response_model=CallbackResponse)
async def payment_callback(
    payload: PaymentCallback,
    db: DbSession,
) -> CallbackResponse:
    """Settle a gateway order from its signed checkout result.

    The signature authenticates the call; duplicates are acknowledged without
    side effects.
    """
    result = await payment_reconciler.handle_callback(
        db,
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
    )
    return callback_response(result)


@router.post("/failure", response_model=CallbackResponse)
async def report_payment_failure(
    payload: PaymentFailureReport,
    current_user: CurrentUser,
    db: DbSession,
) -> CallbackResponse:
    """Mark an open order as failed after the gateway checkout reported an error."""
    result = await payment_reconciler.report_gateway_failure(
        db, current_user, payload.razorpay_order_id, payload.reason or "Reported by gateway"
    )
    return callback_response(result)
