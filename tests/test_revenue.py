from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

from staymarket.domain.commission import split_commission
from staymarket.domain.revenue import (
    Granularity,
    bucket_bookings,
    period_label,
    series_starts,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def confirmed(at: datetime, gross: int, commission: int):
    return SimpleNamespace(confirmed_at=at, gross_amount=gross, commission=commission)


def test_series_has_twelve_consecutive_months_ending_now():
    starts = series_starts(NOW, Granularity.MONTH)

    assert len(starts) == 12
    assert starts[0] == date(2025, 4, 1)
    assert starts[-1] == date(2026, 3, 1)
    assert [period_label(s, Granularity.MONTH) for s in starts[-3:]] == ["Jan", "Feb", "Mar"]


def test_labels_per_granularity():
    assert period_label(date(2026, 3, 10), Granularity.DAY) == "10/3"
    assert period_label(date(2026, 3, 9), Granularity.WEEK) == "W11"
    assert period_label(date(2026, 1, 1), Granularity.YEAR) == "2026"


def test_weeks_start_on_monday():
    starts = series_starts(NOW, Granularity.WEEK)
    assert starts[-1] == date(2026, 3, 9)
    assert starts[-2] == date(2026, 3, 2)


def test_empty_buckets_are_reported():
    buckets = bucket_bookings([], Granularity.DAY, NOW)

    assert len(buckets) == 12
    assert all(b.bookings_count == 0 for b in buckets)
    assert all(b.net_platform_revenue == Decimal("0.00") for b in buckets)


def test_bookings_land_in_their_confirmation_period():
    bookings = [
        confirmed(NOW - timedelta(hours=1), 6300, 300),
        confirmed(NOW - timedelta(days=1), 6000, 0),
        confirmed(NOW - timedelta(days=40), 1000, 50),  # outside the day series
        SimpleNamespace(confirmed_at=None, gross_amount=999, commission=0),
    ]
    buckets = bucket_bookings(bookings, Granularity.DAY, NOW)

    today, yesterday = buckets[-1], buckets[-2]
    assert today.label == "10/3"
    assert today.bookings_count == 1
    assert today.gross_revenue == 6300
    assert today.net_platform_revenue == Decimal("1200.00")
    assert yesterday.gross_revenue == 6000
    assert sum(b.bookings_count for b in buckets) == 2


def test_bucket_totals_equal_per_booking_sums():
    bookings = [
        confirmed(NOW - timedelta(days=3), 6300, 300),
        confirmed(NOW - timedelta(days=2), 1013, 48),
        confirmed(NOW - timedelta(days=2), 2205, 105),
        confirmed(NOW - timedelta(days=1), 6000, 0),
    ]
    buckets = bucket_bookings(bookings, Granularity.MONTH, NOW)
    march = buckets[-1]

    per_booking = sum(
        (split_commission(b.gross_amount, b.commission).platform_revenue for b in bookings),
        Decimal(0),
    )
    assert march.bookings_count == 4
    assert march.net_platform_revenue == per_booking
    assert march.owner_commission == sum(
        (split_commission(b.gross_amount, b.commission).owner_commission for b in bookings),
        Decimal(0),
    )
