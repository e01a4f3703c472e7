# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Resolves the caller of every marketplace endpoint from the Supabase access
# token, and checks the admin role for review/approval endpoints.
#
# Token verification supports:
# - ES256 (asymmetric Supabase signing keys) via the project's JWKS
# - HS256 (legacy shared JWT secret)
#
# Usage:
#   from app.auth import get_current_user, require_admin, AuthUser
#
#   @router.get("/points/balance")
#   async def balance(user: AuthUser = Depends(get_current_user)):
#       ...
# =============================================================================

import logging
import time
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import AdminRequiredError, ConfigurationError
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict[str, Any] = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour

TOKEN_AUDIENCE = "authenticated"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _get_jwks_url() -> str:
    """JWKS endpoint of the Supabase project (https://<ref>.supabase.co)."""
    return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict[str, Any]:
    """
    Fetch the project's JWKS, cached for JWKS_CACHE_TTL seconds.

    A stale cache is served when the fetch fails.
    """
    global _jwks_cache, _jwks_cache_time

    now = time.time()
    if _jwks_cache and (now - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        response = httpx.get(_get_jwks_url(), timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = now
        logger.debug(f"Fetched JWKS ({len(_jwks_cache.get('keys', []))} keys)")
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        if not _jwks_cache:
            return {"keys": []}

    return _jwks_cache


def _hs256_key() -> tuple[str, str]:
    if not settings.SUPABASE_JWT_SECRET:
        raise ConfigurationError("SUPABASE_JWT_SECRET")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def _get_signing_key(token: str) -> tuple[Any, str]:
    """
    Pick the verification key for a token from its header.

    Returns:
        Tuple of (key, algorithm) to use for verification
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return _hs256_key()

    alg = header.get("alg", "HS256")
    kid = header.get("kid")

    if alg == "HS256":
        return _hs256_key()

    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"No JWKS key for alg={alg}, kid={kid}; falling back to HS256")
    return _hs256_key()


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and extract the caller.

    Raises:
        HTTPException: 401 if the token is invalid, expired or has no subject
    """
    try:
        signing_key, algorithm = _get_signing_key(token)
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience=TOKEN_AUDIENCE,
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise _unauthorized("Invalid token: malformed user ID")

    return AuthUser(id=user_uuid, email=payload.get("email"))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Authenticated caller from the Bearer token.

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    user = decode_access_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> Optional[AuthUser]:
    """
    Caller if a valid token is present, otherwise None.

    Invalid tokens are treated as anonymous rather than rejected.
    """
    if credentials is None:
        return None

    try:
        return decode_access_token(credentials.credentials)
    except HTTPException:
        return None


def is_admin_user(user: AuthUser | None) -> bool:
    """True if the caller's profile has the admin role."""
    return user is not None and SupabaseClient.is_admin(user.id)


async def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """
    Authenticated caller whose profile has role 'admin'.

    Raises:
        AdminRequiredError: 403 for any other caller
    """
    if not SupabaseClient.is_admin(user.id):
        logger.warning(f"Admin-only endpoint called by non-admin user {user.id}")
        raise AdminRequiredError()
    return user
