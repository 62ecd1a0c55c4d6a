"""Celery background tasks."""

import asyncio
import logging

from celery import shared_task

from staymarket.core.immutability import register_immutability_enforcement
from staymarket.database import get_db_context
from staymarket.services.membership_service import membership_service
from staymarket.services.payment_service import payment_reconciler

logger = logging.getLogger(__name__)


_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro):
    """Run async function in sync context.

    One loop per worker process, so pooled database connections stay bound
    to the loop that opened them.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


# ==================== PAYMENT TASKS ====================


@shared_task(bind=True, max_retries=3)
def expire_stale_payment_orders(self):
    """Expire gateway orders past their timeout and fail their bookings.

    Runs every 5 minutes. Nothing was taken from the wallet for an open
    order, so expiry needs no compensation.
    """
    try:
        expired = run_async(_expire_stale_payment_orders())
        return {"status": "success", "expired": expired}
    except Exception as exc:
        logger.error(f"Expiring stale payment orders failed: {exc}")
        raise self.retry(exc=exc, countdown=60)


async def _expire_stale_payment_orders() -> int:
    register_immutability_enforcement()
    async with get_db_context() as db:
        return await payment_reconciler.expire_stale_orders(db)


# ==================== MEMBERSHIP TASKS ====================


@shared_task(bind=True, max_retries=3)
def normalise_lapsed_memberships(self):
    """Clear the member flag on every membership past its expiry. Runs daily."""
    try:
        count = run_async(_normalise_lapsed_memberships())
        return {"status": "success", "normalised": count}
    except Exception as exc:
        logger.error(f"Normalising lapsed memberships failed: {exc}")
        raise self.retry(exc=exc, countdown=300)


async def _normalise_lapsed_memberships() -> int:
    async with get_db_context() as db:
        return await membership_service.normalise_lapsed(db)
