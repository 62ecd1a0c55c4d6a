"""Time-bucketed revenue.

A series is a fixed number of consecutive periods ending with the one that
contains `now`, empty periods included. Each bucket sums gross revenue and
commission and then derives the platform's net revenue from those totals with
split_commission(), the same function applied to every single booking.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Protocol

from staymarket.domain.cancellation_policy import ensure_utc
from staymarket.domain.commission import split_commission

SERIES_LENGTH = 12


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ConfirmedBooking(Protocol):
    confirmed_at: datetime | None
    gross_amount: int
    commission: int | None


@dataclass(frozen=True)
class RevenueBucket:
    label: str
    start: date
    bookings_count: int
    gross_revenue: int
    commission: int
    owner_commission: Decimal
    net_platform_revenue: Decimal

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "start": self.start,
            "bookings_count": self.bookings_count,
            "gross_revenue": self.gross_revenue,
            "commission": self.commission,
            "owner_commission": self.owner_commission,
            "net_platform_revenue": self.net_platform_revenue,
        }


def period_start(moment: date, granularity: Granularity) -> date:
    """First day of the period containing `moment`."""
    if isinstance(moment, datetime):
        moment = moment.date()
    if granularity == Granularity.DAY:
        return moment
    if granularity == Granularity.WEEK:
        return moment - timedelta(days=moment.weekday())
    if granularity == Granularity.MONTH:
        return moment.replace(day=1)
    return date(moment.year, 1, 1)


def shift_period(start: date, granularity: Granularity, periods: int) -> date:
    """Start of the period `periods` steps away (negative goes back)."""
    if granularity == Granularity.DAY:
        return start + timedelta(days=periods)
    if granularity == Granularity.WEEK:
        return start + timedelta(weeks=periods)
    if granularity == Granularity.MONTH:
        months = start.year * 12 + (start.month - 1) + periods
        return date(months // 12, months % 12 + 1, 1)
    return date(start.year + periods, 1, 1)


def period_label(start: date, granularity: Granularity) -> str:
    if granularity == Granularity.DAY:
        return f"{start.day}/{start.month}"
    if granularity == Granularity.WEEK:
        return f"W{start.isocalendar().week}"
    if granularity == Granularity.MONTH:
        return calendar.month_abbr[start.month]
    return str(start.year)


def series_starts(now: datetime, granularity: Granularity, length: int = SERIES_LENGTH) -> list[date]:
    """Period starts, oldest first, ending with the current period."""
    current = period_start(now, granularity)
    return [shift_period(current, granularity, -offset) for offset in range(length - 1, -1, -1)]


def bucket_bookings(
    bookings: Iterable[ConfirmedBooking],
    granularity: Granularity,
    now: datetime,
    length: int = SERIES_LENGTH,
) -> list[RevenueBucket]:
    """Group confirmed bookings into a revenue series."""
    starts = series_starts(now, granularity, length)
    totals = {start: [0, 0, 0] for start in starts}  # count, gross, commission

    for booking in bookings:
        if booking.confirmed_at is None:
            continue
        key = period_start(ensure_utc(booking.confirmed_at), granularity)
        if key not in totals:
            continue
        entry = totals[key]
        entry[0] += 1
        entry[1] += booking.gross_amount
        entry[2] += booking.commission or 0

    buckets = []
    for start in starts:
        count, gross, commission = totals[start]
        record = split_commission(gross, commission)
        buckets.append(
            RevenueBucket(
                label=period_label(start, granularity),
                start=start,
                bookings_count=count,
                gross_revenue=gross,
                commission=commission,
                owner_commission=record.owner_commission,
                net_platform_revenue=record.platform_revenue,
            )
        )
    return buckets
