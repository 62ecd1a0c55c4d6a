"""Booking cancellation.

Prices the cancellation against the traveller's monthly free-cancellation
quota, credits the refund to the wallet and marks the booking cancelled, all
in one transaction. A CancellationRecord per booking makes retries return the
stored outcome.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.core.exceptions import AuthorizationError, InvalidBookingStatus, NotFoundError
from staymarket.domain.cancellation_policy import (
    CancellationFeePolicy,
    current_quota,
    decide_cancellation,
    default_fee_policy,
)
from staymarket.domain.lifecycle import LifecycleState, derive_lifecycle
from staymarket.models.booking import Booking, CancellationRecord
from staymarket.models.user import User
from staymarket.services.membership_service import membership_service
from staymarket.services.wallet_service import wallet_ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationResult:
    booking_id: UUID
    fee: int
    refund_amount: int
    quota_consumed: bool
    new_wallet_balance: int
    already_cancelled: bool = False

    @classmethod
    def from_record(cls, record: CancellationRecord, already_cancelled: bool) -> "CancellationResult":
        return cls(
            booking_id=record.booking_id,
            fee=record.fee,
            refund_amount=record.refund_amount,
            quota_consumed=record.quota_consumed,
            new_wallet_balance=record.new_wallet_balance,
            already_cancelled=already_cancelled,
        )


class CancellationService:
    """Cancels confirmed bookings under the configured fee policy."""

    def __init__(self, policy: CancellationFeePolicy | None = None):
        self.policy = policy

    async def _existing(self, db: AsyncSession, booking_id: UUID) -> CancellationRecord | None:
        result = await db.execute(
            select(CancellationRecord).where(CancellationRecord.booking_id == booking_id)
        )
        return result.scalar_one_or_none()

    async def cancel_booking(
        self,
        db: AsyncSession,
        requester: User,
        booking_id: UUID,
        now: datetime | None = None,
    ) -> CancellationResult:
        """Cancel a booking. Idempotent by booking id.

        Raises:
            NotFoundError: unknown booking
            AuthorizationError: requester is neither the traveller nor an admin
            InvalidBookingStatus: booking not confirmed or stay already completed
        """
        now = now or datetime.now(UTC)
        result = await db.execute(
            select(Booking).where(Booking.id == booking_id).with_for_update()
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        if booking.traveller_id != requester.id and requester.role != "admin":
            raise AuthorizationError("You can only cancel your own bookings")

        existing = await self._existing(db, booking.id)
        if existing:
            logger.info(f"Repeated cancellation of booking {booking.id} returned stored result")
            return CancellationResult.from_record(existing, already_cancelled=True)

        if not booking.is_confirmed or booking.is_cancelled:
            raise InvalidBookingStatus(
                f"Cannot cancel a booking with payment status '{booking.payment_status}'"
            )
        lifecycle = derive_lifecycle(now, booking.check_in, booking.check_out)
        if lifecycle.state == LifecycleState.COMPLETED:
            raise InvalidBookingStatus("Cannot cancel a completed stay")

        traveller = await wallet_ledger.lock_user(db, booking.traveller_id)
        member_active = membership_service.refresh(traveller, now)
        quota = current_quota(
            traveller.free_cancellations_used or 0,
            traveller.free_cancellations_reset_at,
            now,
        )
        decision = decide_cancellation(
            booking.gross_amount,
            member_active,
            quota.used,
            self.policy or default_fee_policy(),
        )

        traveller.free_cancellations_used = decision.free_cancellations_used
        traveller.free_cancellations_reset_at = quota.reset_at

        if decision.refund_amount > 0:
            wallet_ledger.credit(
                db,
                traveller,
                decision.refund_amount,
                f"Refund for cancelled booking {booking.id}",
                booking_id=booking.id,
            )

        booking.is_cancelled = True
        booking.cancelled_at = now
        booking.cancellation_fee = decision.fee
        booking.refund_amount = decision.refund_amount

        record = CancellationRecord(
            booking_id=booking.id,
            cancelled_by=requester.id,
            fee=decision.fee,
            refund_amount=decision.refund_amount,
            quota_consumed=decision.quota_consumed,
            new_wallet_balance=traveller.wallet_balance,
        )
        db.add(record)
        await db.flush()

        logger.info(
            f"Booking {booking.id} cancelled: fee={decision.fee} refund={decision.refund_amount} "
            f"free={decision.quota_consumed} used={decision.free_cancellations_used}"
        )
        return CancellationResult.from_record(record, already_cancelled=False)


# Singleton instance
cancellation_service = CancellationService()
