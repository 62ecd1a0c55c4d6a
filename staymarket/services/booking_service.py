"""Booking read access with derived lifecycle state."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.core.exceptions import AuthorizationError, NotFoundError
from staymarket.domain.lifecycle import LifecycleView, derive_lifecycle
from staymarket.models.booking import Booking
from staymarket.models.user import User


def can_view(user: User, booking: Booking) -> bool:
    return user.role == "admin" or user.id in (booking.traveller_id, booking.owner_id)


def lifecycle_of(booking: Booking, now: datetime | None = None) -> LifecycleView:
    return derive_lifecycle(now or datetime.now(UTC), booking.check_in, booking.check_out)


class BookingService:
    async def get_booking(self, db: AsyncSession, user: User, booking_id: UUID) -> Booking:
        booking = await db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        if not can_view(user, booking):
            raise AuthorizationError("You don't have access to this booking")
        return booking

    async def list_bookings(
        self,
        db: AsyncSession,
        user: User,
        include_cancelled: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Booking]:
        """Bookings visible to the user: their stays, or stays at their listings."""
        query = select(Booking)
        if user.role == "manager":
            query = query.where(Booking.owner_id == user.id)
        elif user.role != "admin":
            query = query.where(Booking.traveller_id == user.id)
        if not include_cancelled:
            query = query.where(Booking.is_cancelled.is_(False))
        query = query.order_by(Booking.check_in.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())


# Singleton instance
booking_service = BookingService()
