"""Payment-related database models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from staymarket.database import Base

if TYPE_CHECKING:
    from staymarket.models.booking import Booking
    from staymarket.models.user import User


class PaymentOrder(Base):
    """Gateway order awaiting (or having received) a payment callback."""

    __tablename__ = "payment_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )  # gateway order id
    purpose: Mapped[str] = mapped_column(
        String(20), nullable=False, default="booking"
    )  # booking, membership
    booking_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("bookings.id"), unique=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    # Amount (whole units; the gateway sees amount * 100)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    wallet_deduction: Mapped[int] = mapped_column(Integer, default=0)
    currency: Mapped[str] = mapped_column(String(3), default="INR")

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default="created", index=True
    )  # created, paid, failed, expired
    gateway_payment_id: Mapped[str | None] = mapped_column(String(100))
    failure_reason: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    booking: Mapped["Booking | None"] = relationship("Booking", back_populates="payment_order")
    user: Mapped["User"] = relationship("User")
