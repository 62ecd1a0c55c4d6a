"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Creates all tables for the StayMarket money and state engine:
- Users (wallet, reward points, membership, cancellation quota)
- Listings (price and room inventory)
- Bookings and cancellation records
- Payment orders
- Wallet transactions
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # ==================== USERS ====================
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("username", sa.String(100)),
        sa.Column("role", sa.String(20), nullable=False, server_default="traveller"),
        sa.Column("is_member", sa.Boolean, server_default=sa.false()),
        sa.Column("membership_expires_at", sa.DateTime(timezone=True)),
        sa.Column("free_cancellations_used", sa.Integer, server_default="0"),
        sa.Column("free_cancellations_reset_at", sa.DateTime(timezone=True)),
        sa.Column("wallet_balance", sa.Integer, nullable=False, server_default="0"),
        sa.Column("reward_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
        sa.CheckConstraint("reward_points >= 0", name="ck_users_reward_points_non_negative"),
    )

    # ==================== LISTINGS ====================
    op.create_table(
        "listings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("price_per_night", sa.Integer, nullable=False),
        sa.Column("rooms_single", sa.Integer, server_default="0"),
        sa.Column("rooms_double", sa.Integer, server_default="0"),
        sa.Column("rooms_triple", sa.Integer, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("price_per_night > 0", name="ck_listings_price_positive"),
        sa.CheckConstraint(
            "rooms_single >= 0 AND rooms_double >= 0 AND rooms_triple >= 0",
            name="ck_listings_rooms_non_negative",
        ),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("listing_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False, index=True),
        sa.Column("traveller_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("check_in", sa.Date, nullable=False, index=True),
        sa.Column("check_out", sa.Date, nullable=False, index=True),
        sa.Column("guests", sa.Integer, nullable=False, server_default="1"),
        sa.Column("price_per_night", sa.Integer, nullable=False),
        sa.Column("nights", sa.Integer, nullable=False),
        sa.Column("base_amount", sa.Integer, nullable=False),
        sa.Column("extra_guest_fee", sa.Integer, server_default="0"),
        sa.Column("service_fee", sa.Integer, server_default="0"),
        sa.Column("gross_amount", sa.Integer, nullable=False),
        sa.Column("wallet_deduction", sa.Integer, server_default="0"),
        sa.Column("commission", sa.Integer),
        sa.Column("owner_commission", sa.Numeric(12, 2)),
        sa.Column("platform_revenue", sa.Numeric(12, 2)),
        sa.Column("payment_status", sa.String(20), server_default="pending", index=True),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("is_cancelled", sa.Boolean, server_default=sa.false(), index=True),
        sa.Column("cancellation_fee", sa.Integer),
        sa.Column("refund_amount", sa.Integer),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), index=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("check_in < check_out", name="ck_bookings_date_order"),
        sa.CheckConstraint("guests >= 1", name="ck_bookings_guests_positive"),
        sa.CheckConstraint("wallet_deduction >= 0", name="ck_bookings_wallet_deduction_non_negative"),
    )

    op.create_table(
        "cancellation_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id"), unique=True, nullable=False),
        sa.Column("cancelled_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("fee", sa.Integer, nullable=False),
        sa.Column("refund_amount", sa.Integer, nullable=False),
        sa.Column("quota_consumed", sa.Boolean, nullable=False),
        sa.Column("new_wallet_balance", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== PAYMENTS ====================
    op.create_table(
        "payment_orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", sa.String(100), unique=True, nullable=False, index=True),
        sa.Column("purpose", sa.String(20), nullable=False, server_default="booking"),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id"), unique=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("wallet_deduction", sa.Integer, server_default="0"),
        sa.Column("currency", sa.String(3), server_default="INR"),
        sa.Column("status", sa.String(20), server_default="created", index=True),
        sa.Column("gateway_payment_id", sa.String(100)),
        sa.Column("failure_reason", sa.Text),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("settled_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== WALLET ====================
    op.create_table(
        "wallet_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id"), index=True),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("points", sa.Integer),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("wallet_transactions")
    op.drop_table("payment_orders")
    op.drop_table("cancellation_records")
    op.drop_table("bookings")
    op.drop_table("listings")
    op.drop_table("users")
