"""Wallet endpoints."""

from fastapi import APIRouter, Query

from staymarket.api.deps import CurrentUser, DbSession
from staymarket.config import settings
from staymarket.schemas.wallet import (
    RedeemRequest,
    RedeemResponse,
    WalletResponse,
    WalletTransactionResponse,
)
from staymarket.services.wallet_service import DEFAULT_HISTORY_LIMIT, wallet_ledger

router = APIRouter()


@router.get("/", response_model=WalletResponse)
async def get_wallet(current_user: CurrentUser, db: DbSession) -> WalletResponse:
    """Current wallet balance and reward points."""
    wallet = await wallet_ledger.get_wallet(db, current_user.id)
    return WalletResponse(balance=wallet.balance, points=wallet.points, currency=settings.currency)


@router.get("/transactions", response_model=list[WalletTransactionResponse])
async def list_transactions(
    current_user: CurrentUser,
    db: DbSession,
    limit: int = Query(default=DEFAULT_HISTORY_LIMIT, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[WalletTransactionResponse]:
    """Wallet history, most recent first."""
    entries = await wallet_ledger.transactions(db, current_user.id, limit=limit, offset=offset)
    return [WalletTransactionResponse.model_validate(e) for e in entries]


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_points(
    request: RedeemRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> RedeemResponse:
    """Convert reward points into wallet credit."""
    user = await wallet_ledger.lock_user(db, current_user.id)
    result = wallet_ledger.redeem_points(db, user, request.points)
    await db.flush()
    return RedeemResponse(
        points_redeemed=result.points_redeemed,
        amount_credited=result.amount_credited,
        wallet_balance=result.wallet_balance,
        reward_points=result.reward_points,
    )
