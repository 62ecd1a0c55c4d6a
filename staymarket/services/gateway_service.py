"""Payment gateway service.

Routes payment operations to the configured gateway adapter and converts
whole currency units to the gateway's smallest unit at the boundary.
No business logic here - only gateway coordination.
"""

import logging

from staymarket.config import settings
from staymarket.core.exceptions import GatewayOrderFailed
from staymarket.gateways.base import PaymentGateway
from staymarket.gateways.razorpay import RazorpayGateway

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_UNIT = 100


class GatewayService:
    """Service for managing payment gateway operations."""

    def __init__(self, gateway: PaymentGateway | None = None):
        self._gateway = gateway

    @property
    def gateway(self) -> PaymentGateway:
        if self._gateway is None:
            self._gateway = RazorpayGateway()
        return self._gateway

    def use(self, gateway: PaymentGateway) -> None:
        """Swap the active adapter."""
        self._gateway = gateway

    async def create_order(self, amount: int, receipt: str) -> str:
        """Create a gateway order for `amount` whole units.

        Raises:
            GatewayOrderFailed: Gateway rejected or could not be reached
        """
        result = await self.gateway.create_order(
            amount_minor=amount * MINOR_UNITS_PER_UNIT,
            currency=settings.currency,
            receipt=receipt,
        )
        if not result.success or not result.order_id:
            logger.error(f"Gateway order creation failed for {receipt}: {result.error_message}")
            raise GatewayOrderFailed(result.error_message)
        logger.info(f"Gateway order {result.order_id} created for {receipt} ({amount} {settings.currency})")
        return result.order_id

    def verify(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Verify a payment callback signature."""
        return self.gateway.verify_signature(order_id, payment_id, signature)


# Singleton instance
gateway_service = GatewayService()
