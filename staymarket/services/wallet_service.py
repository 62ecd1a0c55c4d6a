"""Wallet ledger service.

Every change to a user's wallet balance or reward points is paired with
exactly one WalletTransaction. Callers lock the user row with lock_user()
before mutating, so concurrent requests for the same user serialise.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.config import settings
from staymarket.core.exceptions import (
    InsufficientBalance,
    InvalidRedemption,
    NotFoundError,
    ValidationError,
)
from staymarket.models.user import User
from staymarket.models.wallet import WalletTransaction

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


def assert_positive_amount(amount: int, context: str) -> None:
    """Guard: Prevent negative or zero amounts."""
    if amount <= 0:
        raise ValidationError(f"{context}: amount must be positive, got {amount}")


def points_for_spend(amount_spent: int) -> int:
    """Points earned for a cash spend: 10 per full 100 spent."""
    if amount_spent <= 0:
        return 0
    return (amount_spent // settings.points_spend_block) * settings.points_per_spend_block


def redemption_value(points: int) -> int:
    """Wallet credit for redeeming `points` (20 points = 1 unit, floored)."""
    return points // settings.points_per_currency_unit


@dataclass(frozen=True)
class WalletSnapshot:
    balance: int
    points: int


@dataclass(frozen=True)
class WalletReplay:
    """Balances recomputed from the transaction log next to the cached ones."""

    balance: int
    points: int
    cached_balance: int
    cached_points: int

    @property
    def consistent(self) -> bool:
        return self.balance == self.cached_balance and self.points == self.cached_points


@dataclass(frozen=True)
class RedemptionResult:
    points_redeemed: int
    amount_credited: int
    wallet_balance: int
    reward_points: int


class WalletLedger:
    """Server-owned wallet: balance and reward points backed by an append-only log."""

    async def lock_user(self, db: AsyncSession, user_id: UUID) -> User:
        """Load a user row for update.

        Raises:
            NotFoundError: Unknown user
        """
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    def _record(
        self,
        db: AsyncSession,
        user: User,
        type_: str,
        description: str,
        amount: int = 0,
        points: int | None = None,
        booking_id: UUID | None = None,
    ) -> WalletTransaction:
        entry = WalletTransaction(
            user_id=user.id,
            booking_id=booking_id,
            type=type_,
            amount=amount,
            points=points,
            description=description,
        )
        db.add(entry)
        return entry

    def credit(
        self,
        db: AsyncSession,
        user: User,
        amount: int,
        reason: str,
        booking_id: UUID | None = None,
    ) -> WalletTransaction:
        """Add funds to a locked user's wallet."""
        assert_positive_amount(amount, "Wallet credit")
        user.wallet_balance = (user.wallet_balance or 0) + amount
        logger.info(f"Wallet credit {amount} for user {user.id}: {reason}")
        return self._record(db, user, "credit", reason, amount=amount, booking_id=booking_id)

    def debit(
        self,
        db: AsyncSession,
        user: User,
        amount: int,
        reason: str,
        booking_id: UUID | None = None,
    ) -> WalletTransaction:
        """Take funds from a locked user's wallet.

        Raises:
            InsufficientBalance: amount exceeds the current balance
        """
        assert_positive_amount(amount, "Wallet debit")
        balance = user.wallet_balance or 0
        if amount > balance:
            raise InsufficientBalance(
                f"Wallet balance {balance} is less than the requested {amount}"
            )
        user.wallet_balance = balance - amount
        logger.info(f"Wallet debit {amount} for user {user.id}: {reason}")
        return self._record(db, user, "debit", reason, amount=-amount, booking_id=booking_id)

    def earn_points(
        self,
        db: AsyncSession,
        user: User,
        amount_spent: int,
        booking_id: UUID | None = None,
    ) -> int:
        """Award points for a cash spend. Returns the points awarded."""
        points = points_for_spend(amount_spent)
        if points == 0:
            return 0
        user.reward_points = (user.reward_points or 0) + points
        self._record(
            db,
            user,
            "earn",
            f"Earned {points} points on {amount_spent} spent",
            points=points,
            booking_id=booking_id,
        )
        return points

    def redeem_points(self, db: AsyncSession, user: User, points: int) -> RedemptionResult:
        """Convert reward points into wallet credit.

        All requested points are consumed; the credit is floored.

        Raises:
            InvalidRedemption: below the minimum or above the available points
        """
        if points < settings.min_redeem_points:
            raise InvalidRedemption(
                f"Minimum {settings.min_redeem_points} points required to redeem"
            )
        available = user.reward_points or 0
        if points > available:
            raise InvalidRedemption(f"Only {available} points available")

        amount = redemption_value(points)
        user.reward_points = available - points
        self._record(db, user, "redeem", f"Redeemed {points} points", points=-points)
        self.credit(db, user, amount, f"Points redemption ({points} points)")

        return RedemptionResult(
            points_redeemed=points,
            amount_credited=amount,
            wallet_balance=user.wallet_balance,
            reward_points=user.reward_points,
        )

    async def get_wallet(self, db: AsyncSession, user_id: UUID) -> WalletSnapshot:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return WalletSnapshot(balance=user.wallet_balance or 0, points=user.reward_points or 0)

    async def transactions(
        self,
        db: AsyncSession,
        user_id: UUID,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[WalletTransaction]:
        """Most recent transactions first."""
        result = await db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def replay(self, db: AsyncSession, user_id: UUID) -> WalletReplay:
        """Recompute both balances from the transaction log."""
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        result = await db.execute(
            select(
                func.coalesce(func.sum(WalletTransaction.amount), 0),
                func.coalesce(func.sum(WalletTransaction.points), 0),
            ).where(WalletTransaction.user_id == user_id)
        )
        balance, points = result.one()
        replay = WalletReplay(
            balance=int(balance),
            points=int(points),
            cached_balance=user.wallet_balance or 0,
            cached_points=user.reward_points or 0,
        )
        if not replay.consistent:
            logger.error(
                f"Wallet drift for user {user_id}: log={replay.balance}/{replay.points} "
                f"cached={replay.cached_balance}/{replay.cached_points}"
            )
        return replay


# Singleton instance
wallet_ledger = WalletLedger()
