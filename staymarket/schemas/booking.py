"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from staymarket.domain.pricing import round_money


def to_whole_units(value: Any) -> Any:
    """Round exact commission decimals to whole currency units for responses."""
    if isinstance(value, Decimal):
        return round_money(value)
    return value


# Whole currency units; exact decimals stay in the database
WholeUnits = Annotated[int, BeforeValidator(to_whole_units)]


class StayRequest(BaseModel):
    """Listing, dates and party size for a stay."""

    listing_id: UUID
    check_in: date
    check_out: date
    guests: int = Field(default=1, ge=1, le=20)
    wallet_amount: int = Field(default=0, ge=0)

    @field_validator("check_out")
    @classmethod
    def validate_checkout(cls, v: date, info) -> date:
        check_in = info.data.get("check_in")
        if check_in and v <= check_in:
            raise ValueError("check_out must be after check_in")
        return v


class QuoteRequest(StayRequest):
    """Schema for pricing a stay without booking it."""


class CheckoutRequest(StayRequest):
    """Schema for starting a checkout."""


class CommissionBreakdown(BaseModel):
    """Platform/owner split of a gross amount."""

    gross_revenue: int
    commission: int
    owner_gross_share: int
    owner_commission: WholeUnits
    platform_revenue: WholeUnits
    owner_payout: WholeUnits


class QuoteResponse(BaseModel):
    """Schema for a checkout quote."""

    listing_id: UUID
    check_in: date
    check_out: date
    price_per_night: int
    nights: int
    guests: int
    extra_guest_fee: int
    base_amount: int
    service_fee: int
    gross_amount: int
    member_fee_waived: bool
    wallet_balance: int
    wallet_deduction: int
    amount_due: int
    currency: str
    commission: CommissionBreakdown


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    listing_id: UUID
    traveller_id: UUID
    owner_id: UUID

    # Stay
    check_in: date
    check_out: date
    guests: int
    nights: int

    # Pricing
    price_per_night: int
    base_amount: int
    extra_guest_fee: int
    service_fee: int
    gross_amount: int
    wallet_deduction: int

    # Commission (set at confirmation)
    commission: int | None
    owner_commission: WholeUnits | None
    platform_revenue: WholeUnits | None

    # Status
    payment_status: str
    payment_method: str
    is_cancelled: bool
    cancellation_fee: int | None
    refund_amount: int | None

    # Derived from the clock
    lifecycle: str | None = None
    days_remaining: int | None = None

    # Timestamps
    confirmed_at: datetime | None
    cancelled_at: datetime | None


class BookingListResponse(BaseModel):
    """Schema for a page of bookings."""

    bookings: list[BookingResponse]
    limit: int
    offset: int


class CheckoutResponse(BaseModel):
    """Schema for the outcome of a checkout.

    When `order_id` is set the client completes payment with the gateway and
    posts the signed result to /payments/callback.
    """

    booking: BookingResponse
    requires_payment: bool
    order_id: str | None = None
    amount_due: int
    currency: str
    gateway_key_id: str | None = None


class CancellationResponse(BaseModel):
    """Schema for a cancellation result."""

    booking_id: UUID
    fee: int
    refund_amount: int
    quota_consumed: bool
    new_wallet_balance: int
    already_cancelled: bool
