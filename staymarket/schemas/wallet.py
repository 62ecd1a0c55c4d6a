"""Wallet schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WalletResponse(BaseModel):
    balance: int
    points: int
    currency: str


class WalletTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    amount: int
    points: int | None
    description: str
    booking_id: UUID | None
    created_at: datetime


class RedeemRequest(BaseModel):
    points: int = Field(..., ge=1)


class RedeemResponse(BaseModel):
    points_redeemed: int
    amount_credited: int
    wallet_balance: int
    reward_points: int
