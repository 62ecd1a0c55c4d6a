"""Booking endpoints."""

from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from staymarket.api.deps import CurrentUser, DbSession
from staymarket.config import settings
from staymarket.models.booking import Booking
from staymarket.schemas.booking import (
    BookingListResponse,
    BookingResponse,
    CancellationResponse,
    CheckoutRequest,
    CheckoutResponse,
    CommissionBreakdown,
    QuoteRequest,
    QuoteResponse,
)
from staymarket.services.booking_service import booking_service, lifecycle_of
from staymarket.services.cancellation_service import cancellation_service
from staymarket.services.payment_service import payment_reconciler

router = APIRouter()


def booking_to_response(booking: Booking, now: datetime | None = None) -> BookingResponse:
    """Serialize a booking with its lifecycle state at `now`."""
    response = BookingResponse.model_validate(booking)
    if not booking.is_confirmed or booking.is_cancelled:
        return response
    view = lifecycle_of(booking, now)
    return response.model_copy(
        update={"lifecycle": view.state.value, "days_remaining": view.days_remaining}
    )


@router.post("/quote", response_model=QuoteResponse)
async def quote_stay(
    request: QuoteRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Price a stay, including the wallet portion and the commission split."""
    quote = await payment_reconciler.quote(
        db,
        current_user,
        request.listing_id,
        request.check_in,
        request.check_out,
        request.guests,
        request.wallet_amount,
    )
    price = quote.price
    record = quote.commission
    return QuoteResponse(
        listing_id=quote.listing_id,
        check_in=quote.check_in,
        check_out=quote.check_out,
        price_per_night=price.price_per_night,
        nights=price.nights,
        guests=price.guests,
        extra_guest_fee=price.extra_guest_fee,
        base_amount=price.base_amount,
        service_fee=price.service_fee,
        gross_amount=price.gross_amount,
        member_fee_waived=price.member_fee_waived,
        wallet_balance=quote.wallet_balance,
        wallet_deduction=quote.wallet_deduction,
        amount_due=quote.amount_due,
        currency=settings.currency,
        commission=CommissionBreakdown(**record.as_dict()),
    )


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    request: CheckoutRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> CheckoutResponse:
    """Book a stay. Wallet-covered stays are confirmed immediately."""
    result = await payment_reconciler.start_checkout(
        db,
        current_user.id,
        request.listing_id,
        request.check_in,
        request.check_out,
        request.guests,
        request.wallet_amount,
    )
    return CheckoutResponse(
        booking=booking_to_response(result.booking),
        requires_payment=result.requires_payment,
        order_id=result.order.order_id if result.order else None,
        amount_due=result.amount_due,
        currency=settings.currency,
        gateway_key_id=settings.razorpay_key_id if result.order else None,
    )


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    current_user: CurrentUser,
    db: DbSession,
    include_cancelled: bool = False,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> BookingListResponse:
    """List bookings visible to the current user."""
    bookings = await booking_service.list_bookings(
        db, current_user, include_cancelled=include_cancelled, limit=limit, offset=offset
    )
    now = datetime.now(UTC)
    return BookingListResponse(
        bookings=[booking_to_response(b, now) for b in bookings],
        limit=limit,
        offset=offset,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> BookingResponse:
    """Get booking details."""
    booking = await booking_service.get_booking(db, current_user, booking_id)
    return booking_to_response(booking)


@router.post("/{booking_id}/cancel", response_model=CancellationResponse)
async def cancel_booking(
    booking_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> CancellationResponse:
    """Cancel a confirmed booking. Repeating the call returns the original outcome."""
    result = await cancellation_service.cancel_booking(db, current_user, booking_id)
    return CancellationResponse(
        booking_id=result.booking_id,
        fee=result.fee,
        refund_amount=result.refund_amount,
        quota_consumed=result.quota_consumed,
        new_wallet_balance=result.new_wallet_balance,
        already_cancelled=result.already_cancelled,
    )
