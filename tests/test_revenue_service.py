from datetime import date, timedelta
from decimal import Decimal

from staymarket.domain.commission import split_commission
from staymarket.domain.revenue import Granularity
from staymarket.models.listing import Listing
from staymarket.services.cancellation_service import cancellation_service
from staymarket.services.payment_service import payment_reconciler
from staymarket.services.revenue_service import revenue_service
from staymarket.services.wallet_service import wallet_ledger
from tests.conftest import NOW, make_user


async def book(db, user, listing, nights=3, guests=2, now=NOW):
    wallet_ledger.credit(db, user, 100000, "Top up")
    check_in = date(2026, 4, 1)
    result = await payment_reconciler.start_checkout(
        db,
        user.id,
        listing.id,
        check_in,
        check_in + timedelta(days=nights),
        guests,
        wallet_amount=100000,
        now=now,
    )
    return result.booking


async def test_series_matches_per_booking_splits(db, traveller, member, listing):
    bookings = [
        await book(db, traveller, listing),
        await book(db, member, listing, nights=2, guests=3),
        await book(db, traveller, listing, nights=1, now=NOW - timedelta(days=35)),
    ]

    buckets = await revenue_service.revenue_series(db, Granularity.MONTH, now=NOW)

    assert len(buckets) == 12
    assert sum(b.bookings_count for b in buckets) == 3
    assert sum(b.gross_revenue for b in buckets) == sum(b.gross_amount for b in bookings)
    assert sum((b.net_platform_revenue for b in buckets), Decimal(0)) == sum(
        (b.platform_revenue for b in bookings), Decimal(0)
    )
    assert buckets[-1].bookings_count == 2
    assert buckets[-2].bookings_count == 1


async def test_cancelled_and_unpaid_bookings_are_excluded(db, traveller, listing, gateway):
    kept = await book(db, traveller, listing)
    cancelled = await book(db, traveller, listing)
    await cancellation_service.cancel_booking(db, traveller, cancelled.id, now=NOW)
    await payment_reconciler.start_checkout(
        db, traveller.id, listing.id, date(2026, 5, 1), date(2026, 5, 3), 1, now=NOW
    )

    buckets = await revenue_service.revenue_series(db, Granularity.DAY, now=NOW)

    assert buckets[-1].bookings_count == 1
    assert buckets[-1].gross_revenue == kept.gross_amount


async def test_top_hotels_rank_by_booking_count(db, traveller, manager, listing):
    quiet = Listing(owner_id=manager.id, title="Quiet Loft", price_per_night=5000)
    db.add(quiet)
    await db.flush()
    await book(db, traveller, listing)
    await book(db, traveller, listing)
    await book(db, traveller, quiet)

    rows = await revenue_service.top_hotels(db)

    assert [r["title"] for r in rows] == ["Lakeview Cottage", "Quiet Loft"]
    assert rows[0]["bookings_count"] == 2
    assert [r["rooms"] for r in rows] == [3, 0]
    expected = split_commission(2 * 6300, 2 * 300)
    assert rows[0]["platform_revenue"] == expected.platform_revenue


async def test_owner_rollups_include_managers_without_bookings(db, traveller, listing):
    idle = await make_user(db, "idle@example.com", role="manager")
    await book(db, traveller, listing)

    rows = await revenue_service.owner_rollups(db)

    assert [r["email"] for r in rows] == ["owner@example.com", "idle@example.com"]
    assert rows[0]["platform_revenue"] == Decimal("1200.00")
    assert rows[0]["listings_count"] == 1
    assert rows[1]["owner_id"] == idle.id
    assert rows[1]["bookings_count"] == 0
    assert rows[1]["platform_revenue"] == Decimal("0.00")


async def test_owner_statement_totals_equal_lines(db, traveller, member, manager, listing):
    await book(db, traveller, listing)
    await book(db, member, listing)

    statement = await revenue_service.owner_statement(db, manager.id)

    assert statement["bookings_count"] == 2
    assert statement["gross_revenue"] == 6300 + 6000
    assert statement["owner_payout"] == sum(
        (line["owner_payout"] for line in statement["bookings"]), Decimal(0)
    )
    assert statement["platform_revenue"] + statement["owner_payout"] == Decimal(12300)


async def test_owner_rollups_include_listing_owners_of_any_role(db, traveller, listing):
    host = await make_user(db, "host@example.com", role="traveller")
    db.add(Listing(owner_id=host.id, title="Garden Studio", price_per_night=1500))
    await db.flush()

    rows = await revenue_service.owner_rollups(db)

    by_email = {r["email"]: r for r in rows}
    assert by_email["host@example.com"]["listings_count"] == 1
    assert by_email["host@example.com"]["bookings_count"] == 0
    assert "guest@example.com" not in by_email
