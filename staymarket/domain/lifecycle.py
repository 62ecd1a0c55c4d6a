"""Booking lifecycle, derived from the clock on every read.

upcoming     -> now < check_in
current_stay -> check_in <= now < check_out
completed    -> now >= check_out

Never persisted.
"""

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from enum import Enum


class LifecycleState(str, Enum):
    UPCOMING = "upcoming"
    CURRENT_STAY = "current_stay"
    COMPLETED = "completed"


@dataclass(frozen=True)
class LifecycleView:
    state: LifecycleState
    days_remaining: int | None = None


def _start_of(day: date, tz) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _days_until(target: datetime, now: datetime) -> int:
    return math.ceil((target - now).total_seconds() / 86400)


def derive_lifecycle(now: datetime | date, check_in: date, check_out: date) -> LifecycleView:
    """Derive a booking's lifecycle state at `now`.

    Days remaining are rounded up, so a stay starting tomorrow morning is
    one day away even late in the evening.
    """
    if not isinstance(now, datetime):
        now = _start_of(now, UTC)
    tz = now.tzinfo
    starts = _start_of(check_in, tz)
    ends = _start_of(check_out, tz)

    if now < starts:
        return LifecycleView(LifecycleState.UPCOMING, _days_until(starts, now))
    if now < ends:
        return LifecycleView(LifecycleState.CURRENT_STAY, _days_until(ends, now))
    return LifecycleView(LifecycleState.COMPLETED)
