"""Revenue reporting endpoints (read-only)."""

from fastapi import APIRouter, Query

from staymarket.api.deps import CurrentAdmin, CurrentManager, DbSession
from staymarket.config import settings
from staymarket.domain.revenue import Granularity
from staymarket.schemas.reporting import (
    OwnerRollupRow,
    OwnerStatement,
    RevenueBucketResponse,
    RevenueSeriesResponse,
    TopHotelRow,
)
from staymarket.services.revenue_service import TOP_HOTELS_LIMIT, revenue_service

router = APIRouter()


# ============ PLATFORM REPORTS (Admin Only) ============


@router.get("/revenue", response_model=RevenueSeriesResponse)
async def get_revenue_series(
    current_user: CurrentAdmin,
    db: DbSession,
    granularity: Granularity = Query(default=Granularity.MONTH),
) -> RevenueSeriesResponse:
    """Revenue for the last 12 days, weeks, months or years (admin only)."""
    buckets = await revenue_service.revenue_series(db, granularity)
    return RevenueSeriesResponse(
        granularity=granularity.value,
        buckets=[RevenueBucketResponse(**b.as_dict()) for b in buckets],
        currency=settings.currency,
    )


@router.get("/top-hotels", response_model=list[TopHotelRow])
async def get_top_hotels(
    current_user: CurrentAdmin,
    db: DbSession,
    limit: int = Query(default=TOP_HOTELS_LIMIT, ge=1, le=50),
) -> list[TopHotelRow]:
    """Listings with the most confirmed bookings (admin only)."""
    rows = await revenue_service.top_hotels(db, limit)
    return [TopHotelRow(**row) for row in rows]


@router.get("/owners", response_model=list[OwnerRollupRow])
async def get_owner_rollups(current_user: CurrentAdmin, db: DbSession) -> list[OwnerRollupRow]:
    """Per-owner revenue, highest platform revenue first (admin only)."""
    rows = await revenue_service.owner_rollups(db)
    return [OwnerRollupRow(**row) for row in rows]


# ============ OWNER EARNINGS ============


@router.get("/my/earnings", response_model=OwnerStatement)
async def get_my_earnings(current_user: CurrentManager, db: DbSession) -> OwnerStatement:
    """Earnings statement for the current property owner."""
    data = await revenue_service.owner_statement(db, current_user.id)
    return OwnerStatement(**data)


@router.get("/my/revenue", response_model=RevenueSeriesResponse)
async def get_my_revenue_series(
    current_user: CurrentManager,
    db: DbSession,
    granularity: Granularity = Query(default=Granularity.MONTH),
) -> RevenueSeriesResponse:
    """Revenue series restricted to the current owner's listings."""
    buckets = await revenue_service.revenue_series(db, granularity, owner_id=current_user.id)
    return RevenueSeriesResponse(
        granularity=granularity.value,
        buckets=[RevenueBucketResponse(**b.as_dict()) for b in buckets],
        currency=settings.currency,
    )
