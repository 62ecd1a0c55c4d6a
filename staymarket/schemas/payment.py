"""Payment and membership schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentCallback(BaseModel):
    """Signed payment result posted back after gateway checkout."""

    razorpay_order_id: str = Field(..., min_length=1, max_length=100)
    razorpay_payment_id: str = Field(..., min_length=1, max_length=100)
    razorpay_signature: str = Field(..., min_length=1, max_length=256)


class PaymentFailureReport(BaseModel):
    """Failure reported by the gateway checkout widget."""

    razorpay_order_id: str = Field(..., min_length=1, max_length=100)
    reason: str | None = Field(None, max_length=500)


class PaymentOrderResponse(BaseModel):
    order_id: str
    purpose: str
    status: str
    amount: int
    wallet_deduction: int
    currency: str
    booking_id: UUID | None
    failure_reason: str | None
    expires_at: datetime
    settled_at: datetime | None


class CallbackResponse(BaseModel):
    """Outcome of a payment callback."""

    order: PaymentOrderResponse
    booking_id: UUID | None = None
    booking_status: str | None = None
    points_earned: int = 0
    already_processed: bool = False


class MembershipOrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    gateway_key_id: str | None = None


class MembershipStatus(BaseModel):
    user_id: UUID
    is_member: bool
    active: bool
    membership_expires_at: datetime | None
    free_cancellations_used: int
    free_cancellations_reset_at: datetime | None


class MembershipToggle(BaseModel):
    active: bool
