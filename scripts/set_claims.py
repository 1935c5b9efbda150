"""Assign portal custom claims (role, account, tier, currency) to a Firebase user."""
import argparse

from firebase_admin import auth

from dealer_portal.services.firebase import ensure_app

ROLES = ("ADMIN", "DISTRIBUTOR", "DEALER")


def build_claims(role: str, account_id=None, tier_id=None, currency=None) -> dict:
    claims = {"role": role}
    if account_id:
        claims["accountId"] = account_id
    if tier_id:
        claims["tierId"] = tier_id
    if currency:
        claims["currency"] = currency.upper()
    return claims


def set_claims(email: str, claims: dict) -> str:
    app = ensure_app()
    user = auth.get_user_by_email(email, app=app)
    auth.set_custom_user_claims(user.uid, claims, app=app)
    return user.uid


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("email", help="Email of an existing Firebase user")
    ap.add_argument("--role", choices=ROLES, default="DEALER")
    ap.add_argument("--account-id")
    ap.add_argument("--tier-id")
    ap.add_argument("--currency", default="USD")
    args = ap.parse_args()
    if args.role != "ADMIN" and not args.account_id:
        ap.error("--account-id is required for dealer and distributor users")
    claims = build_claims(args.role, args.account_id, args.tier_id, args.currency)
    uid = set_claims(args.email, claims)
    print(f"Updated custom claims for {args.email} ({uid}) -> {claims}")
