"""Checkout and payment reconciliation.

A checkout is settled either entirely from the wallet (confirmed at once) or
partly through the payment gateway. In the gateway case the booking stays
pending and nothing is taken from the wallet until the signed callback
arrives; the callback debits the reserved wallet portion, confirms the
booking and freezes its commission split in the same transaction.

Failure paths commit the failed state before raising, so the request-level
rollback cannot erase them.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.config import settings
from staymarket.core.exceptions import (
    AuthorizationError,
    InsufficientBalance,
    NotFoundError,
    PaymentVerificationFailed,
    StaleOrder,
    ValidationError,
)
from staymarket.domain.cancellation_policy import ensure_utc
from staymarket.domain.commission import CommissionRecord, split_commission
from staymarket.domain.payment_state import (
    TERMINAL_ORDER_STATUSES,
    assert_booking_payment_transition,
    assert_order_transition,
)
from staymarket.domain.pricing import PriceQuote, calculate_price
from staymarket.models.booking import Booking
from staymarket.models.listing import Listing
from staymarket.models.payment import PaymentOrder
from staymarket.models.user import User
from staymarket.services.gateway_service import gateway_service
from staymarket.services.membership_service import membership_service
from staymarket.services.wallet_service import wallet_ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutQuote:
    """What the guest would pay, and how it would be split."""

    listing_id: UUID
    check_in: date
    check_out: date
    price: PriceQuote
    commission: CommissionRecord
    wallet_balance: int
    wallet_deduction: int

    @property
    def amount_due(self) -> int:
        """Amount left for the gateway after the wallet portion."""
        return max(0, self.price.gross_amount - self.wallet_deduction)


@dataclass(frozen=True)
class CheckoutResult:
    booking: Booking
    order: PaymentOrder | None
    amount_due: int

    @property
    def requires_payment(self) -> bool:
        return self.order is not None


@dataclass(frozen=True)
class CallbackResult:
    order: PaymentOrder
    booking: Booking | None
    points_earned: int = 0
    already_processed: bool = False


def wallet_deduction_for(requested: int, wallet_balance: int, gross_amount: int) -> int:
    """Wallet portion of a checkout: never more than asked, held, or owed."""
    if requested < 0:
        raise ValidationError("wallet_amount cannot be negative")
    return max(0, min(requested, wallet_balance, gross_amount))


class PaymentReconciler:
    """Coordinates pricing, wallet use and gateway settlement for checkouts."""

    async def _get_listing(self, db: AsyncSession, listing_id: UUID) -> Listing:
        listing = await db.get(Listing, listing_id)
        if not listing:
            raise NotFoundError("Listing", str(listing_id))
        return listing

    async def quote(
        self,
        db: AsyncSession,
        user: User,
        listing_id: UUID,
        check_in: date,
        check_out: date,
        guests: int,
        wallet_amount: int = 0,
        now: datetime | None = None,
    ) -> CheckoutQuote:
        """Price a stay for `user` without persisting anything."""
        now = now or datetime.now(UTC)
        listing = await self._get_listing(db, listing_id)
        member_active = membership_service.refresh(user, now)
        price = calculate_price(listing.price_per_night, check_in, check_out, guests, member_active)
        balance = user.wallet_balance or 0
        return CheckoutQuote(
            listing_id=listing.id,
            check_in=check_in,
            check_out=check_out,
            price=price,
            commission=split_commission(price.gross_amount, price.service_fee),
            wallet_balance=balance,
            wallet_deduction=wallet_deduction_for(wallet_amount, balance, price.gross_amount),
        )

    def _new_booking(
        self,
        booking_id: UUID,
        user: User,
        listing: Listing,
        quote: CheckoutQuote,
        payment_method: str,
    ) -> Booking:
        price = quote.price
        return Booking(
            id=booking_id,
            listing_id=listing.id,
            traveller_id=user.id,
            owner_id=listing.owner_id,
            check_in=quote.check_in,
            check_out=quote.check_out,
            guests=price.guests,
            price_per_night=price.price_per_night,
            nights=price.nights,
            base_amount=price.base_amount,
            extra_guest_fee=price.extra_guest_fee,
            service_fee=price.service_fee,
            gross_amount=price.gross_amount,
            wallet_deduction=quote.wallet_deduction,
            payment_status="pending",
            payment_method=payment_method,
        )

    def _confirm(self, booking: Booking, now: datetime) -> CommissionRecord:
        assert_booking_payment_transition(booking.payment_status, "confirmed")
        record = split_commission(booking.gross_amount, booking.service_fee)
        booking.freeze_commission(record)
        booking.payment_status = "confirmed"
        booking.confirmed_at = now
        return record

    async def start_checkout(
        self,
        db: AsyncSession,
        user_id: UUID,
        listing_id: UUID,
        check_in: date,
        check_out: date,
        guests: int,
        wallet_amount: int = 0,
        now: datetime | None = None,
    ) -> CheckoutResult:
        """Create a booking and either settle it from the wallet or open a gateway order.

        Raises:
            InvalidDateRange: check_out not after check_in
            NotFoundError: unknown user or listing
            GatewayOrderFailed: gateway refused the order (nothing persisted)
        """
        now = now or datetime.now(UTC)
        user = await wallet_ledger.lock_user(db, user_id)
        listing = await self._get_listing(db, listing_id)
        quote = await self.quote(
            db, user, listing_id, check_in, check_out, guests, wallet_amount, now
        )
        booking_id = uuid.uuid4()

        if quote.amount_due <= 0:
            booking = self._new_booking(booking_id, user, listing, quote, "wallet")
            db.add(booking)
            await db.flush()
            wallet_ledger.debit(
                db,
                user,
                quote.price.gross_amount,
                f"Booking {booking.id} paid from wallet",
                booking_id=booking.id,
            )
            self._confirm(booking, now)
            await db.flush()
            logger.info(f"Booking {booking.id} confirmed from wallet ({booking.gross_amount})")
            return CheckoutResult(booking=booking, order=None, amount_due=0)

        # Gateway call happens before anything is written
        order_id = await gateway_service.create_order(quote.amount_due, f"bk_{booking_id.hex}")

        booking = self._new_booking(booking_id, user, listing, quote, "gateway")
        db.add(booking)
        await db.flush()
        order = PaymentOrder(
            order_id=order_id,
            purpose="booking",
            booking_id=booking.id,
            user_id=user.id,
            amount=quote.amount_due,
            wallet_deduction=quote.wallet_deduction,
            currency=settings.currency,
            status="created",
            expires_at=now + timedelta(minutes=settings.payment_order_timeout_minutes),
        )
        db.add(order)
        await db.flush()
        logger.info(
            f"Booking {booking.id} awaiting payment of {quote.amount_due} on order {order_id} "
            f"(wallet portion {quote.wallet_deduction})"
        )
        return CheckoutResult(booking=booking, order=order, amount_due=quote.amount_due)

    async def _get_order(self, db: AsyncSession, order_id: str) -> PaymentOrder:
        result = await db.execute(
            select(PaymentOrder).where(PaymentOrder.order_id == order_id).with_for_update()
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Payment order", order_id)
        return order

    async def _fail(
        self,
        db: AsyncSession,
        order: PaymentOrder,
        status: str,
        reason: str,
        now: datetime,
    ) -> Booking | None:
        assert_order_transition(order.status, status)
        order.status = status
        order.failure_reason = reason
        order.settled_at = now
        booking = None
        if order.booking_id:
            booking = await db.get(Booking, order.booking_id)
            if booking and booking.payment_status == "pending":
                assert_booking_payment_transition(booking.payment_status, "failed")
                booking.payment_status = "failed"
        logger.warning(f"Payment order {order.order_id} {status}: {reason}")
        return booking

    async def _credit_late_payment(
        self,
        db: AsyncSession,
        order: PaymentOrder,
        payment_id: str,
    ) -> None:
        """Credit cash captured for an expired order to the payer's wallet, once."""
        if order.gateway_payment_id:
            return
        user = await wallet_ledger.lock_user(db, order.user_id)
        order.gateway_payment_id = payment_id
        wallet_ledger.credit(
            db,
            user,
            order.amount,
            f"Payment {payment_id} credited: order {order.order_id} had expired",
            booking_id=order.booking_id,
        )
        logger.warning(
            f"Late payment {payment_id} on expired order {order.order_id}: "
            f"{order.amount} credited to wallet of user {user.id}"
        )

    async def handle_callback(
        self,
        db: AsyncSession,
        order_id: str,
        payment_id: str,
        signature: str,
        now: datetime | None = None,
    ) -> CallbackResult:
        """Process a gateway payment callback. Idempotent by order id.

        Raises:
            NotFoundError: unknown order
            PaymentVerificationFailed: signature mismatch (an open order is marked failed)
            StaleOrder: callback after the order timed out (order marked expired,
                verified cash credited to the wallet)
            InsufficientBalance: wallet no longer covers the reserved portion
                (booking failed, gateway cash credited to the wallet)
        """
        now = now or datetime.now(UTC)
        order = await self._get_order(db, order_id)

        if not gateway_service.verify(order_id, payment_id, signature):
            if order.status in TERMINAL_ORDER_STATUSES:
                raise PaymentVerificationFailed()
            await self._fail(db, order, "failed", "Signature verification failed", now)
            await db.commit()
            raise PaymentVerificationFailed()

        if order.status == "expired":
            await self._credit_late_payment(db, order, payment_id)
            await db.commit()
            raise StaleOrder(order_id)
        if order.status in TERMINAL_ORDER_STATUSES:
            booking = await db.get(Booking, order.booking_id) if order.booking_id else None
            logger.info(f"Duplicate callback for order {order_id} ({order.status}) ignored")
            return CallbackResult(order=order, booking=booking, already_processed=True)

        if now > ensure_utc(order.expires_at):
            await self._fail(db, order, "expired", "Callback received after order timeout", now)
            await self._credit_late_payment(db, order, payment_id)
            await db.commit()
            raise StaleOrder(order_id)

        user = await wallet_ledger.lock_user(db, order.user_id)
        order.gateway_payment_id = payment_id

        if order.purpose == "membership":
            assert_order_transition(order.status, "paid")
            order.status = "paid"
            order.settled_at = now
            membership_service.activate(user, now)
            await db.flush()
            return CallbackResult(order=order, booking=None)

        booking = await db.get(Booking, order.booking_id)
        if not booking:
            raise NotFoundError("Booking", str(order.booking_id))

        if order.wallet_deduction > (user.wallet_balance or 0):
            # Cash was collected but the reserved wallet portion is gone
            assert_order_transition(order.status, "paid")
            order.status = "paid"
            order.settled_at = now
            order.failure_reason = "Wallet balance no longer covers the reserved portion"
            assert_booking_payment_transition(booking.payment_status, "failed")
            booking.payment_status = "failed"
            wallet_ledger.credit(
                db,
                user,
                order.amount,
                f"Payment {payment_id} credited: booking {booking.id} could not be completed",
                booking_id=booking.id,
            )
            await db.commit()
            logger.warning(
                f"Booking {booking.id} failed at callback: wallet short of {order.wallet_deduction}"
            )
            raise InsufficientBalance(
                "Wallet balance no longer covers the reserved amount; "
                "the payment has been credited to your wallet"
            )

        if order.wallet_deduction > 0:
            wallet_ledger.debit(
                db,
                user,
                order.wallet_deduction,
                f"Wallet portion of booking {booking.id}",
                booking_id=booking.id,
            )
        self._confirm(booking, now)
        points = wallet_ledger.earn_points(db, user, order.amount, booking_id=booking.id)

        assert_order_transition(order.status, "paid")
        order.status = "paid"
        order.settled_at = now
        await db.flush()
        logger.info(
            f"Booking {booking.id} confirmed via order {order_id}: "
            f"gross={booking.gross_amount} wallet={order.wallet_deduction} points={points}"
        )
        return CallbackResult(order=order, booking=booking, points_earned=points)

    async def report_gateway_failure(
        self,
        db: AsyncSession,
        user: User,
        order_id: str,
        reason: str,
        now: datetime | None = None,
    ) -> CallbackResult:
        """Record a failure reported by the gateway checkout. No wallet movement."""
        now = now or datetime.now(UTC)
        order = await self._get_order(db, order_id)
        if order.user_id != user.id and user.role != "admin":
            raise AuthorizationError("This payment order belongs to another user")

        if order.status in TERMINAL_ORDER_STATUSES:
            booking = await db.get(Booking, order.booking_id) if order.booking_id else None
            return CallbackResult(order=order, booking=booking, already_processed=True)

        booking = await self._fail(db, order, "failed", reason or "Reported by gateway", now)
        await db.flush()
        return CallbackResult(order=order, booking=booking)

    async def expire_stale_orders(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Expire every open order past its timeout. Returns the number expired."""
        now = now or datetime.now(UTC)
        result = await db.execute(
            select(PaymentOrder)
            .where(PaymentOrder.status == "created", PaymentOrder.expires_at < now)
            .with_for_update(skip_locked=True)
        )
        orders = list(result.scalars().all())
        for order in orders:
            await self._fail(db, order, "expired", "Payment not completed in time", now)
        await db.flush()
        if orders:
            logger.info(f"Expired {len(orders)} stale payment orders")
        return len(orders)


# Singleton instance
payment_reconciler = PaymentReconciler()
