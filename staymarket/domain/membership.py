"""Membership status rules."""

from datetime import datetime

from staymarket.domain.cancellation_policy import ensure_utc


def is_membership_active(is_member: bool, expires_at: datetime | None, now: datetime) -> bool:
    """A membership is active only while flagged and not yet expired."""
    if not is_member or expires_at is None:
        return False
    return ensure_utc(expires_at) > now


def membership_lapsed(is_member: bool, expires_at: datetime | None, now: datetime) -> bool:
    """Flag still set but the expiry has passed (or was never recorded)."""
    return is_member and not is_membership_active(is_member, expires_at, now)
