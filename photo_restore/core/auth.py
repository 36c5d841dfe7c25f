"""Caller authentication, delegated to Clerk-issued session tokens.

Clerk signs a short-lived RS256 JWT for every signed-in browser session and
ships it either as a bearer token or in the `__session` cookie. We only
verify it and read the user id from `sub`; sessions themselves live at Clerk.
"""
from functools import lru_cache
from typing import Any, Dict, Optional

import jwt
import structlog
from fastapi import HTTPException, Request, status

from .config import settings

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "__session"


@lru_cache(maxsize=4)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(url)


def _signing_key(token: str):
    if settings.clerk_jwt_key:
        # PEM keys pasted into env files often carry escaped newlines
        return settings.clerk_jwt_key.replace("\\n", "\n")
    if settings.clerk_jwks_url:
        return _jwks_client(settings.clerk_jwks_url).get_signing_key_from_jwt(token).key
    raise jwt.InvalidKeyError("no_verification_key_configured")


def session_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE) or None


def verify_session_token(token: str) -> Dict[str, Any]:
    """Verify signature, expiry and authorized party; return the claims.

    Raises `jwt.PyJWTError` subclasses on any failure.
    """
    claims = jwt.decode(
        token,
        _signing_key(token),
        algorithms=["RS256"],
        leeway=settings.clerk_clock_skew,
        options={"require": ["exp", "sub"]},
    )
    parties = settings.clerk_authorized_parties
    if parties and claims.get("azp") not in parties:
        raise jwt.InvalidTokenError("unauthorized_party")
    return claims


def require_user(request: Request) -> str:
    """FastAPI dependency returning the authenticated Clerk user id."""
    token = session_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        claims = verify_session_token(token)
    except jwt.InvalidKeyError as e:
        logger.error("session_verification_unconfigured", error=str(e))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    except jwt.PyJWTError as e:
        logger.info("session_token_rejected", error=str(e))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return claims["sub"]
