"""Razorpay payment gateway adapter.

Orders API: https://razorpay.com/docs/api/orders/
Payment signature: hex HMAC-SHA256 of "<order_id>|<payment_id>" keyed with
the API key secret.
"""

import hashlib
import hmac
import logging

import httpx

from staymarket.config import settings
from staymarket.gateways.base import GatewayType, OrderResult, PaymentGateway

logger = logging.getLogger(__name__)


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Signature Razorpay attaches to a successful checkout."""
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway(PaymentGateway):
    """Razorpay payment gateway implementation."""

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.key_id = key_id or settings.razorpay_key_id
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.api_url = (api_url or settings.razorpay_api_url).rstrip("/")
        self._transport = transport

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.RAZORPAY

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
    ) -> OrderResult:
        """Create a Razorpay order."""
        if not self.key_id or not self.key_secret:
            return OrderResult(
                success=False,
                error_message="Razorpay credentials not configured",
            )

        payload = {"amount": amount_minor, "currency": currency, "receipt": receipt[:40]}

        try:
            async with httpx.AsyncClient(
                auth=(self.key_id, self.key_secret),
                transport=self._transport,
                timeout=30.0,
            ) as client:
                response = await client.post(f"{self.api_url}/orders", json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Razorpay order request failed: {e}")
            return OrderResult(success=False, error_message=str(e))

        if response.status_code != 200:
            logger.warning(f"Razorpay returned {response.status_code} for receipt {receipt}")
            return OrderResult(
                success=False,
                error_message=f"API returned {response.status_code}",
                raw_response={"status_code": response.status_code},
            )

        data = response.json()
        order_id = data.get("id")
        if not order_id:
            return OrderResult(
                success=False,
                error_message="Order id missing from gateway response",
                raw_response=data,
            )
        return OrderResult(success=True, order_id=order_id, raw_response=data)

    def verify_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """Verify the checkout signature in constant time."""
        if not self.key_secret or not signature:
            return False
        expected = compute_signature(self.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected, signature)
