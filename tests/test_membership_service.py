from datetime import UTC, datetime, timedelta

from staymarket.services.membership_service import membership_service
from staymarket.services.payment_service import payment_reconciler
from tests.conftest import NOW, make_user, sign


async def test_refresh_clears_lapsed_flag(traveller):
    traveller.is_member = True
    traveller.membership_expires_at = NOW - timedelta(seconds=1)

    assert membership_service.refresh(traveller, NOW) is False
    assert traveller.is_member is False


async def test_activate_initialises_cancellation_quota(traveller):
    expires = membership_service.activate(traveller, NOW)

    assert expires == NOW + timedelta(days=30)
    assert traveller.is_member
    assert traveller.free_cancellations_used == 0
    assert traveller.free_cancellations_reset_at == datetime(2026, 4, 1, tzinfo=UTC)


async def test_renewal_keeps_running_quota(member):
    member.free_cancellations_used = 1
    member.free_cancellations_reset_at = datetime(2026, 4, 1, tzinfo=UTC)

    membership_service.activate(member, NOW + timedelta(days=5))

    assert member.free_cancellations_used == 1
    assert member.membership_expires_at == NOW + timedelta(days=35)


async def test_membership_purchase_settles_through_callback(db, traveller, gateway):
    order = await membership_service.create_order(db, traveller.id, now=NOW)

    assert order.purpose == "membership"
    assert order.booking_id is None
    assert gateway.orders[0]["amount"] == 99900

    result = await payment_reconciler.handle_callback(
        db, order.order_id, "pay_m", sign(order.order_id, "pay_m"), now=NOW
    )

    assert result.booking is None
    assert result.order.status == "paid"
    assert traveller.is_member
    assert traveller.membership_expires_at == NOW + timedelta(days=30)
    assert traveller.wallet_balance == 0


async def test_admin_toggle(db, traveller):
    user = await membership_service.set_membership(db, traveller.id, True, now=NOW)
    assert user.is_member

    user = await membership_service.set_membership(db, traveller.id, False, now=NOW)
    assert user.is_member is False
    assert user.membership_expires_at is None


async def test_normalise_lapsed_memberships(db, member):
    await make_user(
        db,
        "expired@example.com",
        is_member=True,
        membership_expires_at=NOW - timedelta(days=1),
    )

    assert await membership_service.normalise_lapsed(db, now=NOW) == 1
    assert await membership_service.normalise_lapsed(db, now=NOW + timedelta(days=21)) == 1
