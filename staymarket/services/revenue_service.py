"""Revenue reporting service (read-only queries).

Only confirmed, non-cancelled bookings count. Every figure derived from a
gross amount and a commission goes through split_commission().
"""

from datetime import UTC, datetime, time
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.core.exceptions import NotFoundError
from staymarket.domain.commission import split_commission
from staymarket.domain.revenue import (
    SERIES_LENGTH,
    Granularity,
    RevenueBucket,
    bucket_bookings,
    series_starts,
)
from staymarket.models.booking import Booking
from staymarket.models.listing import Listing
from staymarket.models.user import User

TOP_HOTELS_LIMIT = 5


def _settled():
    return (Booking.payment_status == "confirmed", Booking.is_cancelled.is_(False))


def _split_row(gross: int, commission: int) -> dict:
    record = split_commission(int(gross or 0), int(commission or 0))
    return {
        "gross_revenue": record.gross_revenue,
        "commission": record.commission,
        "owner_commission": record.owner_commission,
        "platform_revenue": record.platform_revenue,
        "owner_payout": record.owner_payout,
    }


class RevenueService:
    """Read-only revenue reporting service."""

    async def revenue_series(
        self,
        db: AsyncSession,
        granularity: Granularity,
        now: datetime | None = None,
        owner_id: UUID | None = None,
    ) -> list[RevenueBucket]:
        """Revenue per period for the last SERIES_LENGTH periods."""
        now = now or datetime.now(UTC)
        first = series_starts(now, granularity, SERIES_LENGTH)[0]
        since = datetime.combine(first, time.min, tzinfo=UTC)

        query = select(Booking).where(*_settled(), Booking.confirmed_at >= since)
        if owner_id:
            query = query.where(Booking.owner_id == owner_id)
        result = await db.execute(query)
        return bucket_bookings(result.scalars().all(), granularity, now)

    async def top_hotels(self, db: AsyncSession, limit: int = TOP_HOTELS_LIMIT) -> list[dict]:
        """Listings with the most bookings."""
        bookings_count = func.count(Booking.id).label("bookings_count")
        result = await db.execute(
            select(
                Listing,
                bookings_count,
                func.coalesce(func.sum(Booking.gross_amount), 0),
                func.coalesce(func.sum(Booking.commission), 0),
            )
            .join(Booking, Booking.listing_id == Listing.id)
            .where(*_settled())
            .group_by(Listing.id)
            .order_by(bookings_count.desc(), func.sum(Booking.gross_amount).desc())
            .limit(limit)
        )

        rows = []
        for listing, count, gross, commission in result.all():
            rows.append(
                {
                    "listing_id": listing.id,
                    "title": listing.title,
                    "owner_id": listing.owner_id,
                    "rooms": listing.rooms,
                    "bookings_count": count,
                    **_split_row(gross, commission),
                }
            )
        return rows

    async def owner_rollups(self, db: AsyncSession) -> list[dict]:
        """Per-owner totals, including managers and listing owners without bookings."""
        listing_counts = (
            select(Listing.owner_id, func.count(Listing.id).label("listings_count"))
            .group_by(Listing.owner_id)
            .subquery()
        )
        booking_totals = (
            select(
                Booking.owner_id,
                func.count(Booking.id).label("bookings_count"),
                func.coalesce(func.sum(Booking.gross_amount), 0).label("gross"),
                func.coalesce(func.sum(Booking.commission), 0).label("commission"),
            )
            .where(*_settled())
            .group_by(Booking.owner_id)
            .subquery()
        )
        result = await db.execute(
            select(
                User.id,
                User.email,
                User.username,
                func.coalesce(listing_counts.c.listings_count, 0),
                func.coalesce(booking_totals.c.bookings_count, 0),
                func.coalesce(booking_totals.c.gross, 0),
                func.coalesce(booking_totals.c.commission, 0),
            )
            .outerjoin(listing_counts, listing_counts.c.owner_id == User.id)
            .outerjoin(booking_totals, booking_totals.c.owner_id == User.id)
            .where(
                (User.role == "manager")
                | (listing_counts.c.listings_count > 0)
                | (booking_totals.c.bookings_count > 0)
            )
        )

        rows = []
        for user_id, email, username, listings, count, gross, commission in result.all():
            rows.append(
                {
                    "owner_id": user_id,
                    "email": email,
                    "username": username,
                    "listings_count": listings,
                    "bookings_count": count,
                    **_split_row(gross, commission),
                }
            )
        rows.sort(key=lambda row: row["platform_revenue"], reverse=True)
        return rows

    async def owner_statement(self, db: AsyncSession, owner_id: UUID) -> dict:
        """Earnings statement for one property owner."""
        owner = await db.get(User, owner_id)
        if not owner:
            raise NotFoundError("User", str(owner_id))

        result = await db.execute(
            select(Booking)
            .where(*_settled(), Booking.owner_id == owner_id)
            .order_by(Booking.confirmed_at.desc())
        )
        bookings = list(result.scalars().all())

        gross = sum(b.gross_amount for b in bookings)
        commission = sum(b.commission or 0 for b in bookings)
        lines = []
        for booking in bookings:
            record = booking.commission_record
            lines.append(
                {
                    "booking_id": booking.id,
                    "listing_id": booking.listing_id,
                    "check_in": booking.check_in,
                    "check_out": booking.check_out,
                    "confirmed_at": booking.confirmed_at,
                    "gross_revenue": booking.gross_amount,
                    "commission": booking.commission,
                    "owner_commission": record.owner_commission,
                    "owner_payout": record.owner_payout,
                }
            )
        return {
            "owner_id": owner_id,
            "bookings_count": len(bookings),
            **_split_row(gross, commission),
            "bookings": lines,
        }


# Singleton instance
revenue_service = RevenueService()
