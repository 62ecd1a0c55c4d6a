"""Checkout settlement state machines.

Booking payment_status:  pending -> confirmed | failed
Payment order status:    created -> paid | failed | expired

The reconciler's conceptual states map onto these:
- Quoted                  -> nothing persisted yet
- AwaitingGatewayPayment  -> booking pending, order created
- ConfirmedByWalletOnly   -> booking confirmed, payment_method "wallet", no order
- Confirmed               -> booking confirmed, order paid
- Failed                  -> booking failed, order failed/expired
"""

from staymarket.core.exceptions import ValidationError

BOOKING_PAYMENT_TRANSITIONS = {
    "pending": {"confirmed", "failed"},
    "confirmed": set(),
    "failed": set(),
}

ORDER_TRANSITIONS = {
    "created": {"paid", "failed", "expired"},
    "paid": set(),
    "failed": set(),
    "expired": set(),
}

TERMINAL_ORDER_STATUSES = frozenset({"paid", "failed", "expired"})


def assert_booking_payment_transition(current: str, target: str) -> None:
    allowed = BOOKING_PAYMENT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValidationError(
            f"Invalid booking payment transition: {current} → {target}"
        )


def assert_order_transition(current: str, target: str) -> None:
    allowed = ORDER_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValidationError(
            f"Invalid payment order transition: {current} → {target}"
        )
