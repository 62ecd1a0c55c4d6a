"""Cancellation pricing and the monthly free-cancellation quota.

Rules:
- Active members get a fixed number of free cancellations per calendar month
  (default 2). A free cancellation refunds the full gross amount.
- Everyone else, and members whose quota is exhausted, pay a fee computed by
  the configured fee policy (default: flat 20% of the gross amount).
- The quota counter is reset lazily the first time it is looked at in a new
  month.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from staymarket.config import settings
from staymarket.domain.pricing import round_money


class CancellationFeePolicy(ABC):
    """Computes the fee retained when a cancellation is not free."""

    @abstractmethod
    def fee_for(self, gross_amount: int) -> int:
        """Return the fee in whole units, 0 <= fee <= gross_amount."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable policy description."""


class FlatPercentFeePolicy(CancellationFeePolicy):
    """A single percentage of the gross amount, regardless of timing."""

    def __init__(self, percent: Decimal):
        if percent < 0 or percent > 100:
            raise ValueError(f"Cancellation fee percent out of range: {percent}")
        self.percent = Decimal(percent)

    def fee_for(self, gross_amount: int) -> int:
        return round_money(Decimal(gross_amount) * self.percent / Decimal("100"))

    def describe(self) -> str:
        return f"{self.percent.normalize()}% of the booking total is retained on cancellation."


def default_fee_policy() -> CancellationFeePolicy:
    return FlatPercentFeePolicy(settings.cancellation_fee_percent)


@dataclass(frozen=True)
class QuotaState:
    """Free-cancellation counter after the monthly reset has been applied."""

    used: int
    reset_at: datetime


@dataclass(frozen=True)
class CancellationDecision:
    """Outcome of pricing a cancellation."""

    fee: int
    refund_amount: int
    quota_consumed: bool
    free_cancellations_used: int


def next_month_start(now: datetime) -> datetime:
    """First instant of the calendar month after `now` (UTC)."""
    if now.month == 12:
        return datetime(now.year + 1, 1, 1, tzinfo=UTC)
    return datetime(now.year, now.month + 1, 1, tzinfo=UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by some drivers) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def current_quota(used: int, reset_at: datetime | None, now: datetime) -> QuotaState:
    """Apply the lazy monthly reset to a stored quota counter."""
    if reset_at is None or now >= ensure_utc(reset_at):
        return QuotaState(used=0, reset_at=next_month_start(now))
    return QuotaState(used=used, reset_at=ensure_utc(reset_at))


def decide_cancellation(
    gross_amount: int,
    membership_active: bool,
    free_cancellations_used: int,
    policy: CancellationFeePolicy | None = None,
) -> CancellationDecision:
    """Price a cancellation.

    Args:
        gross_amount: Booking gross amount
        membership_active: Whether the requester's membership is active now
        free_cancellations_used: Free cancellations already used this month
        policy: Fee policy for non-free cancellations

    Returns:
        CancellationDecision
    """
    if membership_active and free_cancellations_used < settings.free_cancellations_per_month:
        return CancellationDecision(
            fee=0,
            refund_amount=gross_amount,
            quota_consumed=True,
            free_cancellations_used=free_cancellations_used + 1,
        )

    policy = policy or default_fee_policy()
    fee = min(gross_amount, max(0, policy.fee_for(gross_amount)))
    return CancellationDecision(
        fee=fee,
        refund_amount=gross_amount - fee,
        quota_consumed=False,
        free_cancellations_used=free_cancellations_used,
    )
