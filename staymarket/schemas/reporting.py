"""Revenue reporting schemas (read-only)."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

from staymarket.schemas.booking import WholeUnits


class RevenueBucketResponse(BaseModel):
    """One period of a revenue series."""

    label: str
    start: date
    bookings_count: int
    gross_revenue: int
    commission: int
    owner_commission: WholeUnits
    net_platform_revenue: WholeUnits


class RevenueSeriesResponse(BaseModel):
    granularity: str
    buckets: list[RevenueBucketResponse]
    currency: str = "INR"


class RevenueSplit(BaseModel):
    gross_revenue: int
    commission: int
    owner_commission: WholeUnits
    platform_revenue: WholeUnits
    owner_payout: WholeUnits


class TopHotelRow(RevenueSplit):
    listing_id: UUID
    title: str
    owner_id: UUID
    rooms: int
    bookings_count: int


class OwnerRollupRow(RevenueSplit):
    owner_id: UUID
    email: str
    username: str | None
    listings_count: int
    bookings_count: int


class OwnerStatementLine(BaseModel):
    booking_id: UUID
    listing_id: UUID
    check_in: date
    check_out: date
    confirmed_at: datetime | None
    gross_revenue: int
    commission: int | None
    owner_commission: WholeUnits
    owner_payout: WholeUnits


class OwnerStatement(RevenueSplit):
    """Earnings statement for one property owner."""

    owner_id: UUID
    bookings_count: int
    bookings: list[OwnerStatementLine]
