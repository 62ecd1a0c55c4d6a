from datetime import UTC, datetime
from decimal import Decimal

import pytest

from staymarket.domain.cancellation_policy import (
    FlatPercentFeePolicy,
    current_quota,
    decide_cancellation,
    next_month_start,
)


def test_exhausted_member_pays_flat_fee():
    decision = decide_cancellation(6300, membership_active=True, free_cancellations_used=2)

    assert decision.fee == 1260
    assert decision.refund_amount == 5040
    assert decision.quota_consumed is False
    assert decision.free_cancellations_used == 2


def test_member_with_quota_cancels_free():
    decision = decide_cancellation(6300, membership_active=True, free_cancellations_used=1)

    assert decision.fee == 0
    assert decision.refund_amount == 6300
    assert decision.quota_consumed is True
    assert decision.free_cancellations_used == 2


def test_non_member_always_pays():
    decision = decide_cancellation(6300, membership_active=False, free_cancellations_used=0)

    assert decision.fee == 1260
    assert decision.quota_consumed is False
    assert decision.free_cancellations_used == 0


def test_custom_policy_is_used_for_fee():
    decision = decide_cancellation(
        1000, False, 0, policy=FlatPercentFeePolicy(Decimal("12.5"))
    )
    assert decision.fee == 125
    assert decision.refund_amount == 875


def test_policy_rejects_out_of_range_percent():
    with pytest.raises(ValueError):
        FlatPercentFeePolicy(Decimal("120"))


def test_quota_resets_in_a_new_month():
    now = datetime(2026, 4, 2, 9, 0, tzinfo=UTC)
    quota = current_quota(2, datetime(2026, 4, 1, tzinfo=UTC), now)

    assert quota.used == 0
    assert quota.reset_at == datetime(2026, 5, 1, tzinfo=UTC)


def test_quota_kept_within_the_month():
    now = datetime(2026, 3, 30, 9, 0, tzinfo=UTC)
    reset_at = datetime(2026, 4, 1, tzinfo=UTC)
    quota = current_quota(2, reset_at, now)

    assert quota.used == 2
    assert quota.reset_at == reset_at


def test_missing_reset_point_starts_fresh():
    quota = current_quota(5, None, datetime(2026, 3, 10, tzinfo=UTC))
    assert quota.used == 0
    assert quota.reset_at == datetime(2026, 4, 1, tzinfo=UTC)


def test_naive_reset_point_is_read_as_utc():
    quota = current_quota(1, datetime(2026, 4, 1), datetime(2026, 3, 31, 23, 0, tzinfo=UTC))
    assert quota.used == 1


def test_next_month_start_rolls_over_year():
    assert next_month_start(datetime(2026, 12, 15, tzinfo=UTC)) == datetime(2027, 1, 1, tzinfo=UTC)
