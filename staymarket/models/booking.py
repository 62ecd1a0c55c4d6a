"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from staymarket.database import Base
from staymarket.domain.commission import CommissionRecord

if TYPE_CHECKING:
    from staymarket.models.listing import Listing
    from staymarket.models.payment import PaymentOrder
    from staymarket.models.user import User


# Columns frozen once payment_status reaches "confirmed"
FROZEN_MONETARY_FIELDS = (
    "price_per_night",
    "nights",
    "guests",
    "base_amount",
    "extra_guest_fee",
    "service_fee",
    "gross_amount",
    "wallet_deduction",
    "commission",
    "owner_commission",
    "platform_revenue",
)


class Booking(Base):
    """Booking model."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_in < check_out", name="ck_bookings_date_order"),
        CheckConstraint("guests >= 1", name="ck_bookings_guests_positive"),
        CheckConstraint("wallet_deduction >= 0", name="ck_bookings_wallet_deduction_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id"), nullable=False, index=True
    )
    traveller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    # Dates
    check_in: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Pricing (whole currency units)
    price_per_night: Mapped[int] = mapped_column(Integer, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, nullable=False)
    base_amount: Mapped[int] = mapped_column(Integer, nullable=False)  # incl. extra guest fee
    extra_guest_fee: Mapped[int] = mapped_column(Integer, default=0)
    service_fee: Mapped[int] = mapped_column(Integer, default=0)  # 0 for active members
    gross_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    wallet_deduction: Mapped[int] = mapped_column(Integer, default=0)

    # Commission split (frozen at confirmation, never recomputed)
    commission: Mapped[int | None] = mapped_column(Integer)
    owner_commission: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    platform_revenue: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    # Settlement
    payment_status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, confirmed, failed
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)  # wallet, gateway

    # Cancellation
    is_cancelled: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    cancellation_fee: Mapped[int | None] = mapped_column(Integer)
    refund_amount: Mapped[int | None] = mapped_column(Integer)

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    listing: Mapped["Listing"] = relationship("Listing", back_populates="bookings")
    traveller: Mapped["User"] = relationship("User", foreign_keys=[traveller_id])
    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id])
    payment_order: Mapped["PaymentOrder | None"] = relationship(
        "PaymentOrder", back_populates="booking", uselist=False
    )

    @property
    def is_confirmed(self) -> bool:
        return self.payment_status == "confirmed"

    def freeze_commission(self, record: CommissionRecord) -> None:
        """Copy a commission split onto the booking."""
        self.commission = record.commission
        self.owner_commission = record.owner_commission
        self.platform_revenue = record.platform_revenue

    @property
    def commission_record(self) -> CommissionRecord | None:
        """The frozen split, or None until the booking is confirmed."""
        if self.commission is None:
            return None
        return CommissionRecord(
            gross_revenue=self.gross_amount,
            commission=self.commission,
            owner_gross_share=max(0, self.gross_amount - self.commission),
            owner_commission=Decimal(self.owner_commission),
            platform_revenue=Decimal(self.platform_revenue),
        )


class CancellationRecord(Base):
    """Outcome of a cancellation. One per booking."""

    __tablename__ = "cancellation_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id"), unique=True, nullable=False
    )
    cancelled_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    fee: Mapped[int] = mapped_column(Integer, nullable=False)
    refund_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    quota_consumed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    new_wallet_balance: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    booking: Mapped["Booking"] = relationship("Booking")
