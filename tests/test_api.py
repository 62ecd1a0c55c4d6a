from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from staymarket.core.security import create_access_token
from staymarket.database import get_db
from staymarket.main import app
from staymarket.models.listing import Listing
from staymarket.services.wallet_service import wallet_ledger
from tests.conftest import sign

CHECK_IN = date.today() + timedelta(days=30)
CHECK_OUT = CHECK_IN + timedelta(days=3)


def auth(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
async def client(db):
    async def override_get_db():
        yield db
        await db.commit()

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def stay(listing, wallet_amount=0) -> dict:
    return {
        "listing_id": str(listing.id),
        "check_in": CHECK_IN.isoformat(),
        "check_out": CHECK_OUT.isoformat(),
        "guests": 2,
        "wallet_amount": wallet_amount,
    }


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_quote(client, traveller, listing):
    response = await client.post(
        "/api/v1/bookings/quote", json=stay(listing), headers=auth(traveller)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["gross_amount"] == 6300
    assert body["amount_due"] == 6300
    assert body["commission"]["commission"] == 300


async def test_check_out_before_check_in_is_rejected(client, traveller, listing):
    payload = stay(listing)
    payload["check_out"] = payload["check_in"]

    response = await client.post("/api/v1/bookings/quote", json=payload, headers=auth(traveller))

    assert response.status_code == 422


async def test_wallet_checkout_then_cancel(client, db, traveller, listing):
    wallet_ledger.credit(db, traveller, 6300, "Top up")
    await db.commit()

    response = await client.post(
        "/api/v1/bookings/checkout", json=stay(listing, 6300), headers=auth(traveller)
    )
    assert response.status_code == 201
    body = response.json()
    assert body["requires_payment"] is False
    assert body["booking"]["payment_status"] == "confirmed"
    booking_id = body["booking"]["id"]

    response = await client.post(
        f"/api/v1/bookings/{booking_id}/cancel", headers=auth(traveller)
    )
    assert response.status_code == 200
    assert response.json()["fee"] == 1260
    assert response.json()["new_wallet_balance"] == 5040

    response = await client.get("/api/v1/wallet/", headers=auth(traveller))
    assert response.json()["balance"] == 5040


async def test_gateway_checkout_and_callback(client, traveller, listing, gateway):
    response = await client.post(
        "/api/v1/bookings/checkout", json=stay(listing), headers=auth(traveller)
    )
    order_id = response.json()["order_id"]
    assert response.json()["requires_payment"] is True

    callback = {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": "pay_api",
        "razorpay_signature": sign(order_id, "pay_api"),
    }
    first = await client.post("/api/v1/payments/callback", json=callback)
    second = await client.post("/api/v1/payments/callback", json=callback)

    assert first.status_code == 200
    assert first.json()["booking_status"] == "confirmed"
    assert first.json()["points_earned"] == 630
    assert second.json()["already_processed"] is True


async def test_forged_callback_is_rejected(client, traveller, listing, gateway):
    response = await client.post(
        "/api/v1/bookings/checkout", json=stay(listing), headers=auth(traveller)
    )
    callback = {
        "razorpay_order_id": response.json()["order_id"],
        "razorpay_payment_id": "pay_api",
        "razorpay_signature": "forged",
    }

    response = await client.post("/api/v1/payments/callback", json=callback)

    assert response.status_code == 402


async def test_admin_reports_require_admin(client, traveller, admin):
    response = await client.get("/api/v1/reports/owners", headers=auth(traveller))
    assert response.status_code == 403

    response = await client.get(
        "/api/v1/reports/revenue", params={"granularity": "month"}, headers=auth(admin)
    )
    assert response.status_code == 200
    assert len(response.json()["buckets"]) == 12


MONEY_FIELDS = {
    "gross_revenue",
    "gross_amount",
    "commission",
    "owner_commission",
    "platform_revenue",
    "net_platform_revenue",
    "owner_payout",
    "amount_due",
    "service_fee",
}


def money_values(node):
    """Every scalar value stored under a money key, at any depth."""
    if isinstance(node, list):
        for item in node:
            yield from money_values(item)
    elif isinstance(node, dict):
        for key, value in node.items():
            if isinstance(value, (dict, list)):
                yield from money_values(value)
            elif key in MONEY_FIELDS:
                yield key, value


async def test_money_fields_are_whole_units(client, db, traveller, manager, admin):
    odd = Listing(owner_id=manager.id, title="Odd Rate Room", price_per_night=1013)
    db.add(odd)
    wallet_ledger.credit(db, traveller, 1064, "Top up")
    await db.commit()
    one_night = {
        "listing_id": str(odd.id),
        "check_in": CHECK_IN.isoformat(),
        "check_out": (CHECK_IN + timedelta(days=1)).isoformat(),
        "guests": 1,
        "wallet_amount": 1064,
    }

    quote = await client.post("/api/v1/bookings/quote", json=one_night, headers=auth(traveller))
    checkout = await client.post(
        "/api/v1/bookings/checkout", json=one_night, headers=auth(traveller)
    )
    assert checkout.json()["booking"]["gross_amount"] == 1064

    responses = [
        quote,
        checkout,
        await client.get("/api/v1/reports/owners", headers=auth(admin)),
        await client.get("/api/v1/reports/top-hotels", headers=auth(admin)),
        await client.get(
            "/api/v1/reports/revenue", params={"granularity": "day"}, headers=auth(admin)
        ),
        await client.get("/api/v1/reports/my/earnings", headers=auth(manager)),
    ]

    for response in responses:
        assert response.status_code in (200, 201)
        values = list(money_values(response.json()))
        assert values
        for key, value in values:
            assert type(value) is int, (key, value)

    booking = checkout.json()["booking"]
    assert booking["owner_commission"] == 152
    assert booking["platform_revenue"] == 203
    rollup = (await client.get("/api/v1/reports/owners", headers=auth(admin))).json()[0]
    assert rollup["owner_payout"] == 861
