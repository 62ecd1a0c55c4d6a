import pytest
from sqlalchemy import select

from staymarket.core.exceptions import InsufficientBalance, InvalidRedemption, ValidationError
from staymarket.core.immutability import ImmutabilityViolationError
from staymarket.models.wallet import WalletTransaction
from staymarket.services.wallet_service import points_for_spend, redemption_value, wallet_ledger


def test_points_rules():
    assert points_for_spend(4300) == 430
    assert points_for_spend(199) == 10
    assert points_for_spend(99) == 0
    assert points_for_spend(0) == 0
    assert redemption_value(20) == 1
    assert redemption_value(59) == 2


async def test_credit_and_debit_pair_each_change_with_a_transaction(db, traveller):
    wallet_ledger.credit(db, traveller, 1000, "Top up")
    wallet_ledger.debit(db, traveller, 400, "Spend")
    await db.flush()

    assert traveller.wallet_balance == 600
    entries = await wallet_ledger.transactions(db, traveller.id)
    assert sorted((e.type, e.amount) for e in entries) == [("credit", 1000), ("debit", -400)]


async def test_debit_beyond_balance_is_rejected_without_side_effects(db, traveller):
    wallet_ledger.credit(db, traveller, 100, "Top up")

    with pytest.raises(InsufficientBalance):
        wallet_ledger.debit(db, traveller, 101, "Too much")

    assert traveller.wallet_balance == 100
    assert len(await wallet_ledger.transactions(db, traveller.id)) == 1


async def test_non_positive_amounts_are_rejected(db, traveller):
    with pytest.raises(ValidationError):
        wallet_ledger.credit(db, traveller, 0, "Nothing")
    with pytest.raises(ValidationError):
        wallet_ledger.debit(db, traveller, -5, "Negative")


async def test_redeem_converts_all_requested_points(db, traveller):
    wallet_ledger.earn_points(db, traveller, 500)  # 50 points
    result = wallet_ledger.redeem_points(db, traveller, 45)
    await db.flush()

    assert result.amount_credited == 2
    assert result.reward_points == 5
    assert result.wallet_balance == 2
    types = sorted(e.type for e in await wallet_ledger.transactions(db, traveller.id))
    assert types == ["credit", "earn", "redeem"]


async def test_redeem_below_minimum_fails(db, traveller):
    wallet_ledger.earn_points(db, traveller, 1000)

    with pytest.raises(InvalidRedemption):
        wallet_ledger.redeem_points(db, traveller, 19)
    assert traveller.reward_points == 100


async def test_redeem_above_balance_fails(db, traveller):
    wallet_ledger.earn_points(db, traveller, 200)  # 20 points

    with pytest.raises(InvalidRedemption):
        wallet_ledger.redeem_points(db, traveller, 40)


async def test_replay_matches_cached_balances(db, traveller):
    wallet_ledger.credit(db, traveller, 8000, "Top up")
    wallet_ledger.debit(db, traveller, 6300, "Booking")
    wallet_ledger.earn_points(db, traveller, 4300)
    wallet_ledger.redeem_points(db, traveller, 100)
    await db.flush()

    replay = await wallet_ledger.replay(db, traveller.id)

    assert replay.consistent
    assert replay.balance == 8000 - 6300 + 5
    assert replay.points == 430 - 100


async def test_replay_detects_drift(db, traveller):
    wallet_ledger.credit(db, traveller, 50, "Top up")
    traveller.wallet_balance = 70
    await db.flush()

    replay = await wallet_ledger.replay(db, traveller.id)
    assert not replay.consistent
    assert replay.balance == 50


async def test_transactions_are_append_only(db, traveller):
    wallet_ledger.credit(db, traveller, 50, "Top up")
    await db.flush()
    entry = (await db.execute(select(WalletTransaction))).scalar_one()

    entry.amount = 5000
    with pytest.raises(ImmutabilityViolationError):
        await db.flush()
