import os

os.environ.setdefault("ENVIRONMENT", "test")

from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

import staymarket.models  # noqa: E402,F401
from staymarket.core.immutability import register_immutability_enforcement  # noqa: E402
from staymarket.database import Base  # noqa: E402
from staymarket.gateways.base import GatewayType, OrderResult, PaymentGateway  # noqa: E402
from staymarket.gateways.razorpay import compute_signature  # noqa: E402
from staymarket.models.listing import Listing  # noqa: E402
from staymarket.models.user import User  # noqa: E402
from staymarket.services.gateway_service import gateway_service  # noqa: E402

register_immutability_enforcement()

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
TEST_SECRET = "test_secret"


class FakeGateway(PaymentGateway):
    """Gateway double that records orders and signs like Razorpay."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.orders: list[dict] = []

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.RAZORPAY

    async def create_order(self, amount_minor: int, currency: str, receipt: str) -> OrderResult:
        if self.fail:
            return OrderResult(success=False, error_message="gateway down")
        order_id = f"order_test_{len(self.orders) + 1}"
        self.orders.append(
            {"id": order_id, "amount": amount_minor, "currency": currency, "receipt": receipt}
        )
        return OrderResult(success=True, order_id=order_id)

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return signature == compute_signature(TEST_SECRET, order_id, payment_id)


def sign(order_id: str, payment_id: str) -> str:
    return compute_signature(TEST_SECRET, order_id, payment_id)


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def gateway():
    fake = FakeGateway()
    previous = gateway_service._gateway
    gateway_service.use(fake)
    yield fake
    gateway_service._gateway = previous


async def make_user(db, email: str, **fields) -> User:
    user = User(email=email, **fields)
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
async def manager(db):
    return await make_user(db, "owner@example.com", role="manager")


@pytest.fixture
async def listing(db, manager):
    listing = Listing(
        owner_id=manager.id,
        title="Lakeview Cottage",
        price_per_night=2000,
        rooms_single=1,
        rooms_double=2,
        rooms_triple=0,
    )
    db.add(listing)
    await db.flush()
    return listing


@pytest.fixture
async def traveller(db):
    return await make_user(db, "guest@example.com", role="traveller")


@pytest.fixture
async def member(db):
    return await make_user(
        db,
        "member@example.com",
        role="traveller",
        is_member=True,
        membership_expires_at=NOW + timedelta(days=20),
    )


@pytest.fixture
async def admin(db):
    return await make_user(db, "admin@example.com", role="admin")
