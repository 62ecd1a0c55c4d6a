"""Stay pricing.

gross_amount = base + service_fee, where
- base = price_per_night * nights + extra_guest_fee
- extra_guest_fee = (guests - included_guests) * fee_per_night * nights, for guests above the threshold
- service_fee = round(base * service_fee_rate), waived for active members

All amounts are whole currency units. Rounding happens once, here.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from staymarket.config import settings
from staymarket.core.exceptions import InvalidDateRange, ValidationError


def round_money(value: Decimal) -> int:
    """Round to the nearest whole currency unit (half away from zero)."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PriceQuote:
    """Price owed by the guest for a stay, before any wallet use."""

    price_per_night: int
    nights: int
    guests: int
    base_amount: int
    extra_guest_fee: int
    service_fee: int
    gross_amount: int
    member_fee_waived: bool


def count_nights(check_in: date, check_out: date) -> int:
    """Number of nights between two dates.

    Raises:
        InvalidDateRange: If check_out is not after check_in
    """
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidDateRange()
    return nights


def calculate_price(
    price_per_night: int,
    check_in: date,
    check_out: date,
    guests: int,
    is_member_active: bool,
) -> PriceQuote:
    """Calculate the gross price for a stay.

    Args:
        price_per_night: Listing nightly rate in whole units
        check_in: Check-in date
        check_out: Check-out date
        guests: Number of guests (at least 1)
        is_member_active: Whether the payer holds an active membership

    Returns:
        PriceQuote with the full breakdown
    """
    if price_per_night <= 0:
        raise ValidationError("price_per_night must be positive")
    if guests < 1:
        raise ValidationError("At least one guest is required")

    nights = count_nights(check_in, check_out)

    extra_guests = max(0, guests - settings.included_guests)
    extra_guest_fee = extra_guests * settings.extra_guest_fee_per_night * nights
    base_amount = price_per_night * nights + extra_guest_fee

    if is_member_active:
        service_fee = 0
    else:
        service_fee = round_money(Decimal(base_amount) * settings.service_fee_rate)

    return PriceQuote(
        price_per_night=price_per_night,
        nights=nights,
        guests=guests,
        base_amount=base_amount,
        extra_guest_fee=extra_guest_fee,
        service_fee=service_fee,
        gross_amount=base_amount + service_fee,
        member_fee_waived=is_member_active,
    )
