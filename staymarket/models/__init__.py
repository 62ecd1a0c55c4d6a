"""Database models."""

from staymarket.models.booking import Booking, CancellationRecord
from staymarket.models.listing import Listing
from staymarket.models.payment import PaymentOrder
from staymarket.models.user import User
from staymarket.models.wallet import WalletTransaction

__all__ = [
    # User
    "User",
    # Listing
    "Listing",
    # Booking
    "Booking",
    "CancellationRecord",
    # Payment
    "PaymentOrder",
    # Wallet
    "WalletTransaction",
]
