#!/usr/bin/env python3
"""
Booking and payment flow script against a running sandbox API.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_book_and_pay.py --user-id <UUID> --listing-id <UUID> --check-in 2026-04-01 --check-out 2026-04-04
    python scripts/flow_book_and_pay.py --user-id <UUID> --listing-id <UUID> --check-in 2026-05-01 --check-out 2026-05-05 --wallet 2000 --cancel

Flow:
    1. Mint an access token for the traveller
    2. Quote the stay
    3. Check out (wallet portion reserved, gateway order opened)
    4. Simulate the signed gateway callback (sandbox key secret)
    5. Show the wallet
    6. Optionally cancel the booking
"""

import argparse
import json
import sys

import httpx

from staymarket.config import settings
from staymarket.core.security import create_access_token
from staymarket.gateways.razorpay import compute_signature

BASE_URL = "http://localhost:8000"


def api_request(token: str | None, method: str, endpoint: str, data: dict | None = None) -> dict:
    """Make an API request, authenticated when a token is given."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    url = f"{BASE_URL}{settings.api_prefix}{endpoint}"

    if method == "GET":
        response = httpx.get(url, headers=headers, timeout=10.0, follow_redirects=True)
    elif method == "POST":
        response = httpx.post(url, headers=headers, json=data or {}, timeout=10.0, follow_redirects=True)
    else:
        raise ValueError(f"Unknown method: {method}")

    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict, fields: list[str] | None = None):
    """Print result, optionally filtering fields."""
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False

    print(f"Status: {result['status']}")
    if fields:
        filtered = {k: result["data"].get(k) for k in fields if k in result["data"]}
        print(json.dumps(filtered, indent=2, default=str))
    else:
        print(json.dumps(result["data"], indent=2, default=str))
    return True


def main():
    parser = argparse.ArgumentParser(description="Booking and payment flow")
    parser.add_argument("--user-id", required=True, help="Traveller UUID")
    parser.add_argument("--listing-id", required=True, help="Listing UUID")
    parser.add_argument("--check-in", required=True, help="Check-in date (YYYY-MM-DD)")
    parser.add_argument("--check-out", required=True, help="Check-out date (YYYY-MM-DD)")
    parser.add_argument("--guests", type=int, default=2, help="Number of guests")
    parser.add_argument("--wallet", type=int, default=0, help="Wallet amount to apply")
    parser.add_argument("--cancel", action="store_true", help="Cancel the booking at the end")
    args = parser.parse_args()

    if not settings.razorpay_key_secret:
        print("ERROR: RAZORPAY_KEY_SECRET must be set to sign the simulated callback")
        sys.exit(1)

    # Step 1: Token
    print_step(1, "Mint access token")
    token = create_access_token({"sub": args.user_id})
    print(f"Token issued for {args.user_id}")

    stay = {
        "listing_id": args.listing_id,
        "check_in": args.check_in,
        "check_out": args.check_out,
        "guests": args.guests,
        "wallet_amount": args.wallet,
    }

    # Step 2: Quote
    print_step(2, "Quote the stay")
    quote = api_request(token, "POST", "/bookings/quote", stay)
    if not print_result(quote, ["nights", "service_fee", "gross_amount", "wallet_deduction", "amount_due"]):
        sys.exit(1)

    # Step 3: Checkout
    print_step(3, "Check out")
    checkout = api_request(token, "POST", "/bookings/checkout", stay)
    if not print_result(checkout, ["requires_payment", "order_id", "amount_due"]):
        sys.exit(1)
    booking_id = checkout["data"]["booking"]["id"]
    order_id = checkout["data"]["order_id"]

    # Step 4: Gateway callback
    print_step(4, "Simulate gateway callback")
    if order_id:
        payment_id = f"pay_sandbox_{booking_id[:8]}"
        callback = api_request(None, "POST", "/payments/callback", {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": compute_signature(settings.razorpay_key_secret, order_id, payment_id),
        })
        if not print_result(callback, ["booking_status", "points_earned", "already_processed"]):
            sys.exit(1)
    else:
        print("Paid from wallet, no gateway order")

    # Step 5: Wallet
    print_step(5, "Wallet")
    print_result(api_request(token, "GET", "/wallet/"))

    # Step 6: Cancel
    if args.cancel:
        print_step(6, "Cancel booking")
        cancel = api_request(token, "POST", f"/bookings/{booking_id}/cancel")
        if not print_result(cancel):
            sys.exit(1)

    print(f"\nDone. Booking {booking_id}")


if __name__ == "__main__":
    main()
