from decimal import Decimal

import pytest

from staymarket.domain.commission import split_commission


def test_split_of_a_non_member_booking():
    record = split_commission(6300, 300)

    assert record.gross_revenue == 6300
    assert record.commission == 300
    assert record.owner_gross_share == 6000
    assert record.owner_commission == Decimal("900.00")
    assert record.platform_revenue == Decimal("1200.00")
    assert record.owner_payout == Decimal("5100.00")


def test_member_booking_has_no_commission_but_owner_cut_applies():
    record = split_commission(6000, 0)

    assert record.commission == 0
    assert record.owner_commission == Decimal("900.00")
    assert record.platform_revenue == Decimal("900.00")


def test_fractional_owner_commission_is_kept_exactly():
    record = split_commission(1051, 51)
    assert record.owner_commission == Decimal("150.00")

    record = split_commission(1013, 0)
    assert record.owner_commission == Decimal("151.95")


@pytest.mark.parametrize(
    "gross,commission",
    [(6300, 300), (6000, 0), (1, 0), (1013, 48), (987654, 47031)],
)
def test_platform_and_owner_shares_partition_gross(gross, commission):
    record = split_commission(gross, commission)

    assert record.platform_revenue + record.owner_payout == Decimal(gross)
    assert record.owner_payout >= 0


def test_commission_above_gross_never_gives_owner_a_negative_share():
    record = split_commission(100, 150)
    assert record.owner_gross_share == 0
    assert record.owner_commission == Decimal("0.00")


def test_split_is_linear_over_sums():
    bookings = [(6300, 300), (1013, 48), (2205, 105)]
    per_booking = sum((split_commission(g, c).platform_revenue for g, c in bookings), Decimal(0))
    bucket = split_commission(sum(g for g, _ in bookings), sum(c for _, c in bookings))

    assert bucket.platform_revenue == per_booking
