"""User model.

Users are created by the identity service; this service owns the wallet,
reward point, membership and cancellation-quota columns.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from staymarket.database import Base

if TYPE_CHECKING:
    from staymarket.models.listing import Listing
    from staymarket.models.wallet import WalletTransaction


class User(Base):
    """User account model."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
        CheckConstraint("reward_points >= 0", name="ck_users_reward_points_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str | None] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="traveller"
    )  # traveller, manager, admin

    # Membership
    is_member: Mapped[bool] = mapped_column(Boolean, default=False)
    membership_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Cancellation quota
    free_cancellations_used: Mapped[int] = mapped_column(Integer, default=0)
    free_cancellations_reset_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Wallet (caches of the transaction log)
    wallet_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reward_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    listings: Mapped[list["Listing"]] = relationship("Listing", back_populates="owner")
    wallet_transactions: Mapped[list["WalletTransaction"]] = relationship(
        "WalletTransaction", back_populates="user", order_by="WalletTransaction.created_at"
    )
