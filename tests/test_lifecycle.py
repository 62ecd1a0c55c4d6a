from datetime import UTC, date, datetime

from staymarket.domain.lifecycle import LifecycleState, derive_lifecycle
from staymarket.domain.membership import is_membership_active, membership_lapsed

CHECK_IN = date(2026, 4, 10)
CHECK_OUT = date(2026, 4, 13)


def test_upcoming_counts_days_rounded_up():
    view = derive_lifecycle(datetime(2026, 4, 8, 18, 0, tzinfo=UTC), CHECK_IN, CHECK_OUT)

    assert view.state == LifecycleState.UPCOMING
    assert view.days_remaining == 2


def test_current_stay_counts_days_to_checkout():
    view = derive_lifecycle(datetime(2026, 4, 11, 9, 0, tzinfo=UTC), CHECK_IN, CHECK_OUT)

    assert view.state == LifecycleState.CURRENT_STAY
    assert view.days_remaining == 2


def test_check_in_day_is_current_stay():
    view = derive_lifecycle(datetime(2026, 4, 10, 0, 0, tzinfo=UTC), CHECK_IN, CHECK_OUT)
    assert view.state == LifecycleState.CURRENT_STAY
    assert view.days_remaining == 3


def test_completed_from_checkout_day():
    view = derive_lifecycle(datetime(2026, 4, 13, 0, 0, tzinfo=UTC), CHECK_IN, CHECK_OUT)

    assert view.state == LifecycleState.COMPLETED
    assert view.days_remaining is None


def test_accepts_plain_dates():
    assert derive_lifecycle(date(2026, 4, 9), CHECK_IN, CHECK_OUT).days_remaining == 1


def test_membership_requires_future_expiry():
    now = datetime(2026, 3, 10, tzinfo=UTC)

    assert is_membership_active(True, datetime(2026, 3, 11, tzinfo=UTC), now)
    assert not is_membership_active(True, datetime(2026, 3, 9, tzinfo=UTC), now)
    assert not is_membership_active(False, datetime(2026, 3, 11, tzinfo=UTC), now)
    assert not is_membership_active(True, None, now)
    assert membership_lapsed(True, datetime(2026, 3, 9, tzinfo=UTC), now)
    assert not membership_lapsed(False, None, now)
