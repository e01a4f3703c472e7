# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Signup and login happen client-side with Supabase Auth. These routes let
# the front end check a stored token and load the caller's marketplace
# profile (role, company, license status) after signing in.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from app.responses import success_response
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me")
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Get the current user and their marketplace profile.

    The profile is null when the auth user exists but the profile row
    hasn't been created yet (registration still in progress).

    Raises:
        401: If not authenticated
    """
    profile = SupabaseClient.fetch_profile(user.id)
    if profile is None:
        logger.info(f"User {user.id} has no profile yet")

    return success_response({
        "id": str(user.id),
        "email": user.email,
        "isAdmin": bool(profile) and profile.get("role") == "admin",
        "profile": profile,
    })


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
    }
