# dealer_portal/services/identity.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Header
from firebase_admin import auth
from pydantic import BaseModel

from .errors import ErrorKind, ServiceError
from .firebase import ensure_app

logger = logging.getLogger(__name__)

STAFF_ROLE = "ADMIN"


class Identity(BaseModel):
    """An authenticated caller plus the custom claims the portal relies on."""
    uid: str
    accountId: Optional[str] = None
    tierId: Optional[str] = None
    currency: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.role == STAFF_ROLE

    @classmethod
    def from_claims(cls, uid: str, claims: Optional[Dict[str, Any]]) -> "Identity":
        claims = claims or {}

        def _claim(name: str) -> Optional[str]:
            v = claims.get(name)
            if v is None or v == "":
                return None
            return str(v)

        return cls(
            uid=uid,
            accountId=_claim("accountId"),
            tierId=_claim("tierId"),
            currency=_claim("currency"),
            role=_claim("role"),
        )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_caller(id_token: str) -> Optional[Identity]:
    """
    Verify a Firebase ID token and load the user's current custom claims.

    Claims are read from the user record rather than the token so that a
    freshly re-configured account takes effect without a token refresh.
    Returns None when the token is not acceptable.
    """
    app = ensure_app()
    try:
        decoded = auth.verify_id_token(id_token, app=app)
        user = auth.get_user(decoded["uid"], app=app)
    except (auth.InvalidIdTokenError, auth.UserNotFoundError, ValueError) as e:
        # ExpiredIdTokenError / RevokedIdTokenError subclass InvalidIdTokenError
        logger.info("rejected id token: %s", e)
        return None
    except auth.CertificateFetchError as e:
        logger.exception("could not fetch token signing certificates")
        raise ServiceError(ErrorKind.INTERNAL, "Could not verify credentials") from e
    return Identity.from_claims(user.uid, user.custom_claims)


def get_identity(authorization: Optional[str] = Header(default=None)) -> Optional[Identity]:
    """FastAPI dependency: the verified caller, or None for anonymous requests."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    return verify_caller(token)
