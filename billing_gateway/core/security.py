# billing_gateway/core/security.py
from __future__ import annotations
import time
from typing import Optional, Dict, Any
import jwt
from fastapi import Header, HTTPException, status
from billing_gateway.core.settings import settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
            issuer=settings.JWT_ISSUER or None,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {e}")


def require_admin(authorization: Optional[str] = Header(default=None)) -> Dict[str, Any]:
    """Dependency for install/uninstall routes: a valid bearer JWT or 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Missing or invalid Authorization header")
    return verify_jwt_token(authorization.split("Bearer ", 1)[1].strip())


def mint_dev_token(*, sub: Optional[str] = None, ttl_seconds: int = 3600) -> str:
    """
    DEV ONLY: short-lived admin token for local testing.
    """
    now = int(time.time())
    claims: Dict[str, Any] = {"sub": sub or settings.DEV_JWT_SUBJECT, "iat": now, "exp": now + ttl_seconds}
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
