"""
Caller identity from Firebase ID tokens.

Clients send `Authorization: Bearer <id token>`. The token is verified with
the Firebase Admin SDK and the admin role is read from the `admin` custom
claim, which set_admin.py grants.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

import config
from errors import AuthenticationError
from logger import get_logger

logger = get_logger("auth")


@dataclass(frozen=True)
class Caller:
    uid: str
    admin: bool = False
    name: Optional[str] = None
    email: Optional[str] = None


def _app():
    try:
        return firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate(config.FIREBASE_CREDENTIALS) if config.FIREBASE_CREDENTIALS else None
        options = {"projectId": config.FIREBASE_PROJECT_ID} if config.FIREBASE_PROJECT_ID else None
        logger.info("Initializing Firebase Admin app")
        return firebase_admin.initialize_app(cred, options)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an Authorization header value; None when the header is absent"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token


def caller_from_claims(claims: Dict[str, Any]) -> Caller:
    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise AuthenticationError("Token is invalid")
    return Caller(
        uid=uid,
        admin=claims.get("admin") is True,
        name=claims.get("name"),
        email=claims.get("email"),
    )


def verify_token(token: str) -> Caller:
    try:
        claims = firebase_auth.verify_id_token(token, app=_app())
    except firebase_auth.ExpiredIdTokenError as e:
        raise AuthenticationError("Token has expired") from e
    except (ValueError, firebase_auth.InvalidIdTokenError) as e:
        logger.info("Rejected ID token: %s", e)
        raise AuthenticationError("Token is invalid") from e
    except firebase_auth.CertificateFetchError as e:
        logger.warning("Could not fetch token signing certificates", exc_info=True)
        raise AuthenticationError("Token could not be verified") from e
    return caller_from_claims(claims)


def set_admin_claim(uid: str, admin: bool = True) -> Dict[str, Any]:
    """Set or clear the admin custom claim, keeping the user's other claims"""
    app = _app()
    user = firebase_auth.get_user(uid, app=app)
    claims = dict(user.custom_claims or {})
    if admin:
        claims["admin"] = True
    else:
        claims.pop("admin", None)
    firebase_auth.set_custom_user_claims(uid, claims or None, app=app)
    logger.info("Admin claim for %s set to %s", uid, admin)
    return claims
