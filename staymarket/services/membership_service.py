"""Membership service.

Membership waives the checkout service fee and grants free cancellations.
Purchases are settled through the same gateway callback as bookings.
"""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.config import settings
from staymarket.domain.cancellation_policy import next_month_start
from staymarket.domain.membership import is_membership_active, membership_lapsed
from staymarket.models.payment import PaymentOrder
from staymarket.models.user import User
from staymarket.services.gateway_service import gateway_service
from staymarket.services.wallet_service import wallet_ledger

logger = logging.getLogger(__name__)


class MembershipService:
    """Membership status, purchase and administration."""

    def refresh(self, user: User, now: datetime | None = None) -> bool:
        """Return whether the membership is active, clearing a lapsed flag."""
        now = now or datetime.now(UTC)
        if membership_lapsed(user.is_member, user.membership_expires_at, now):
            user.is_member = False
            logger.info(f"Membership lapsed for user {user.id}")
            return False
        return is_membership_active(user.is_member, user.membership_expires_at, now)

    def activate(self, user: User, now: datetime | None = None) -> datetime:
        """Start a membership period. Returns the new expiry."""
        now = now or datetime.now(UTC)
        user.is_member = True
        user.membership_expires_at = now + timedelta(days=settings.membership_duration_days)
        if user.free_cancellations_reset_at is None:
            user.free_cancellations_reset_at = next_month_start(now)
            user.free_cancellations_used = 0
        logger.info(f"Membership activated for user {user.id} until {user.membership_expires_at}")
        return user.membership_expires_at

    def deactivate(self, user: User) -> None:
        user.is_member = False
        user.membership_expires_at = None
        logger.info(f"Membership revoked for user {user.id}")

    async def create_order(
        self,
        db: AsyncSession,
        user_id: UUID,
        now: datetime | None = None,
    ) -> PaymentOrder:
        """Open a gateway order for a membership purchase."""
        now = now or datetime.now(UTC)
        user = await wallet_ledger.lock_user(db, user_id)
        receipt = f"mem_{uuid.uuid4().hex[:16]}"
        order_id = await gateway_service.create_order(settings.membership_price, receipt)

        order = PaymentOrder(
            order_id=order_id,
            purpose="membership",
            user_id=user.id,
            amount=settings.membership_price,
            wallet_deduction=0,
            currency=settings.currency,
            status="created",
            expires_at=now + timedelta(minutes=settings.payment_order_timeout_minutes),
        )
        db.add(order)
        await db.flush()
        return order

    async def set_membership(
        self,
        db: AsyncSession,
        user_id: UUID,
        active: bool,
        now: datetime | None = None,
    ) -> User:
        """Admin toggle."""
        user = await wallet_ledger.lock_user(db, user_id)
        if active:
            self.activate(user, now)
        else:
            self.deactivate(user)
        await db.flush()
        return user

    async def normalise_lapsed(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Clear the member flag on every expired membership. Returns rows changed."""
        now = now or datetime.now(UTC)
        result = await db.execute(
            update(User)
            .where(
                User.is_member.is_(True),
                or_(User.membership_expires_at.is_(None), User.membership_expires_at <= now),
            )
            .values(is_member=False)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount or 0
        if count:
            logger.info(f"Normalised {count} lapsed memberships")
        return count


# Singleton instance
membership_service = MembershipService()
