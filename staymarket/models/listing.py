"""Listing model.

Listings are managed by the listing service; this service reads the nightly
price, the owner and the room inventory.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from staymarket.database import Base

if TYPE_CHECKING:
    from staymarket.models.booking import Booking
    from staymarket.models.user import User


class Listing(Base):
    """Property listing model."""

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("price_per_night > 0", name="ck_listings_price_positive"),
        CheckConstraint(
            "rooms_single >= 0 AND rooms_double >= 0 AND rooms_triple >= 0",
            name="ck_listings_rooms_non_negative",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)

    # Pricing (whole currency units)
    price_per_night: Mapped[int] = mapped_column(Integer, nullable=False)

    # Room inventory by type
    rooms_single: Mapped[int] = mapped_column(Integer, default=0)
    rooms_double: Mapped[int] = mapped_column(Integer, default=0)
    rooms_triple: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="listings")
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="listing")

    @property
    def rooms(self) -> int:
        """Total rooms across all room types."""
        return (self.rooms_single or 0) + (self.rooms_double or 0) + (self.rooms_triple or 0)
