"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from staymarket.api.v1 import bookings, memberships, payments, reports, wallet

api_router = APIRouter()

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Payments
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# Wallet
api_router.include_router(wallet.router, prefix="/wallet", tags=["Wallet"])

# Memberships
api_router.include_router(memberships.router, prefix="/memberships", tags=["Memberships"])

# Reports
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
