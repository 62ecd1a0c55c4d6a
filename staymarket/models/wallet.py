"""Wallet transaction log.

The log is the source of truth; User.wallet_balance and User.reward_points
are caches of its sums.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staymarket.database import Base

if TYPE_CHECKING:
    from staymarket.models.user import User


class WalletTransaction(Base):
    """Append-only wallet entry."""

    __tablename__ = "wallet_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    booking_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("bookings.id"), index=True
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # earn, redeem, debit, credit
    amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # signed
    points: Mapped[int | None] = mapped_column(Integer)  # signed
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )

    user: Mapped["User"] = relationship("User", back_populates="wallet_transactions")
