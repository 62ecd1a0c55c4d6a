"""Base payment gateway interface.

All gateway adapters must implement this interface.
Business logic should NOT live in adapters - only gateway communication.
Amounts cross this boundary in the gateway's smallest unit (whole units * 100).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class GatewayType(str, Enum):
    """Supported payment gateways."""

    RAZORPAY = "razorpay"


@dataclass
class OrderResult:
    """Result of an order creation."""

    success: bool
    order_id: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
    ) -> OrderResult:
        """Create an order the client will pay against.

        Args:
            amount_minor: Amount in smallest currency unit (paise)
            currency: Currency code (INR)
            receipt: Internal reference for the order

        Returns:
            OrderResult with the gateway order id
        """
        pass

    @abstractmethod
    def verify_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """Check that a payment callback really came from the gateway.

        Args:
            order_id: Gateway order id
            payment_id: Gateway payment id
            signature: Signature supplied with the callback

        Returns:
            True if the signature matches
        """
        pass
