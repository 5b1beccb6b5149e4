"""
Authentication Utility - bearer token pass-through.

Provides:
- Bearer token extraction (optional and required variants)
- Unverified JWT claim reading with python-jose (role, expiry)
- FastAPI dependency yielding a BackendClient bound to the caller's token

Signatures are verified by the recruiting backend, which issued the token.
Here we only read claims to answer /auth/me and to turn away tokens that
have already expired without a round trip.
"""

import time
from typing import Iterator, Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import get_settings
from app.services.backend_client import BackendClient

# Bearer token extractor (missing header is not an error for public routes)
bearer_scheme = HTTPBearer(auto_error=False)


def read_token_claims(token: str) -> Optional[dict]:
    """Decode JWT claims without verifying the signature. None if malformed."""
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None


def is_token_expired(claims: dict, now: Optional[float] = None) -> bool:
    exp = claims.get("exp")
    if exp is None:
        return False
    try:
        return float(exp) <= (now if now is not None else time.time())
    except (TypeError, ValueError):
        return True


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    FastAPI dependency - caller's token, or None for anonymous calls.

    A token that is present but unreadable or expired is rejected with 401.
    """
    if credentials is None:
        return None

    claims = read_token_claims(credentials.credentials)
    if claims is None or is_token_expired(claims):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def require_token(token: Optional[str] = Depends(get_bearer_token)) -> str:
    """Dependency - route needs a signed-in caller."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def get_backend_client(token: Optional[str] = Depends(get_bearer_token)) -> Iterator[BackendClient]:
    """
    Dependency - backend client carrying the caller's token.
    Usage:
        @router.get("/x")
        def route(backend: BackendClient = Depends(get_backend_client)):
            ...
    """
    settings = get_settings()
    client = BackendClient(settings.backend_api_url, token=token, timeout=settings.backend_timeout_seconds)
    try:
        yield client
    finally:
        client.close()
