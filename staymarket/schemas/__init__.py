"""Pydantic schemas for API validation."""

from staymarket.schemas.booking import (
    BookingResponse,
    CancellationResponse,
    CheckoutRequest,
    CheckoutResponse,
    QuoteRequest,
    QuoteResponse,
)
from staymarket.schemas.payment import (
    CallbackResponse,
    MembershipStatus,
    PaymentCallback,
    PaymentFailureReport,
)
from staymarket.schemas.reporting import (
    OwnerRollupRow,
    OwnerStatement,
    RevenueSeriesResponse,
    TopHotelRow,
)
from staymarket.schemas.wallet import (
    RedeemRequest,
    RedeemResponse,
    WalletResponse,
    WalletTransactionResponse,
)

__all__ = [
    # Booking
    "QuoteRequest",
    "QuoteResponse",
    "CheckoutRequest",
    "CheckoutResponse",
    "BookingResponse",
    "CancellationResponse",
    # Payment
    "PaymentCallback",
    "PaymentFailureReport",
    "CallbackResponse",
    "MembershipStatus",
    # Wallet
    "WalletResponse",
    "WalletTransactionResponse",
    "RedeemRequest",
    "RedeemResponse",
    # Reporting
    "RevenueSeriesResponse",
    "TopHotelRow",
    "OwnerRollupRow",
    "OwnerStatement",
]
