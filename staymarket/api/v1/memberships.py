"""Membership endpoints."""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, status

from staymarket.api.deps import CurrentAdmin, CurrentUser, DbSession
from staymarket.api.v1.payments import callback_response
from staymarket.config import settings
from staymarket.domain.membership import is_membership_active
from staymarket.models.user import User
from staymarket.schemas.payment import (
    CallbackResponse,
    MembershipOrderResponse,
    MembershipStatus,
    MembershipToggle,
    PaymentCallback,
)
from staymarket.services.membership_service import membership_service
from staymarket.services.payment_service import payment_reconciler

router = APIRouter()


def _status(user: User) -> MembershipStatus:
    return MembershipStatus(
        user_id=user.id,
        is_member=user.is_member,
        active=is_membership_active(user.is_member, user.membership_expires_at, datetime.now(UTC)),
        membership_expires_at=user.membership_expires_at,
        free_cancellations_used=user.free_cancellations_used or 0,
        free_cancellations_reset_at=user.free_cancellations_reset_at,
    )


@router.get("/me", response_model=MembershipStatus)
async def my_membership(current_user: CurrentUser) -> MembershipStatus:
    """Membership status and this month's free-cancellation usage."""
    membership_service.refresh(current_user)
    return _status(current_user)


@router.post("/order", response_model=MembershipOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_membership_order(current_user: CurrentUser, db: DbSession) -> MembershipOrderResponse:
    """Open a gateway order for a membership purchase."""
    order = await membership_service.create_order(db, current_user.id)
    return MembershipOrderResponse(
        order_id=order.order_id,
        amount=order.amount,
        currency=order.currency,
        gateway_key_id=settings.razorpay_key_id,
    )


@router.post("/verify", response_model=CallbackResponse)
async def verify_membership_payment(payload: PaymentCallback, db: DbSession) -> CallbackResponse:
    """Activate a membership from a signed gateway result."""
    result = await payment_reconciler.handle_callback(
        db,
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
    )
    return callback_response(result)


@router.put("/{user_id}", response_model=MembershipStatus)
async def set_membership(
    user_id: UUID,
    request: MembershipToggle,
    current_user: CurrentAdmin,
    db: DbSession,
) -> MembershipStatus:
    """Grant or revoke a membership (admin only)."""
    user = await membership_service.set_membership(db, user_id, request.active)
    return _status(user)
