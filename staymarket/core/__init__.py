"""Core utilities and security modules."""

from staymarket.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    GatewayOrderFailed,
    InsufficientBalance,
    InvalidBookingStatus,
    InvalidDateRange,
    InvalidRedemption,
    NotFoundError,
    PaymentError,
    PaymentVerificationFailed,
    StaleOrder,
    ValidationError,
)
from staymarket.core.security import create_access_token, verify_token

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "GatewayOrderFailed",
    "InsufficientBalance",
    "InvalidBookingStatus",
    "InvalidDateRange",
    "InvalidRedemption",
    "NotFoundError",
    "PaymentError",
    "PaymentVerificationFailed",
    "StaleOrder",
    "ValidationError",
    "create_access_token",
    "verify_token",
]
