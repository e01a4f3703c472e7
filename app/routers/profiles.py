# =============================================================================
# app/routers/profiles.py - Member Profile Endpoints
# =============================================================================
# Profile creation right after signup, self-service updates, and the admin
# member management screens (listing, license verification, deletion).
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user_optional, is_admin_user
from app.dependencies import AdminUser, CurrentUser
from app.exceptions import PermissionDeniedError
from app.responses import success_response
from core.models import LicenseVerificationStatus, RequestModel
from core.services.notification_service import NotificationService
from core.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class CreateProfileRequest(RequestModel):
    user_id: UUID
    email: str
    company_name: str
    business_number: str


class UpdateProfileRequest(RequestModel):
    """All fields optional here; the service reports which required ones are missing."""
    company_name: str | None = None
    business_number: str | None = None
    phone_number: str | None = None
    address: str | None = None
    account_number: str | None = None
    bank_name: str | None = None


class VerificationRequest(RequestModel):
    status: LicenseVerificationStatus


def _require_self_or_admin(user: AuthUser, user_id: UUID) -> None:
    if user.id != user_id and not is_admin_user(user):
        raise PermissionDeniedError("You can only access your own profile")


# =============================================================================
# Endpoints
# =============================================================================

@router.post("")
def create_profile(
    request: CreateProfileRequest,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Create the profile for a newly registered auth user.

    Callable before the first sign-in (email confirmation pending), so a
    token is optional; when one is sent it must belong to userId. The auth
    user's existence is always verified through the admin API.

    Blocks while polling for the auth user, so it runs in the threadpool.
    """
    if user is not None and user.id != request.user_id:
        raise PermissionDeniedError("You can only create your own profile")

    profile, created = ProfileService.create_profile(
        request.user_id,
        request.email,
        request.company_name,
        request.business_number,
    )

    if not created:
        return success_response(profile, "Profile already exists")

    NotificationService.registration(
        user_id=str(request.user_id),
        email=request.email,
        company_name=profile.get("company_name"),
        business_number=profile.get("business_number"),
    )
    return success_response(profile, "Profile created")


@router.get("")
async def list_profiles(
    admin: AdminUser,
    status: Annotated[str | None, Query(description="License verification status or all")] = None,
):
    """All member profiles (admin)."""
    users = ProfileService.list_profiles(status)
    return success_response(users=users, count=len(users))


@router.get("/admin-contact")
async def get_admin_contact(user: CurrentUser):
    """Admin bank account and phone number, shown on the point charge page."""
    return success_response(ProfileService.get_admin_contact())


@router.get("/{user_id}")
async def get_profile(
    user_id: Annotated[UUID, Path(description="Auth user UUID")],
    user: CurrentUser,
):
    """A member's profile (self or admin)."""
    _require_self_or_admin(user, user_id)
    return success_response(ProfileService.get_profile(user_id))


@router.put("/{user_id}")
async def update_profile(
    user_id: Annotated[UUID, Path(description="Auth user UUID")],
    request: UpdateProfileRequest,
    user: CurrentUser,
):
    """Update company and contact details (self or admin)."""
    _require_self_or_admin(user, user_id)
    profile = ProfileService.update_profile(user_id, request.model_dump())
    return success_response(profile, "Profile updated")


@router.post("/{user_id}/verification")
async def set_verification_status(
    user_id: Annotated[UUID, Path(description="Auth user UUID")],
    request: VerificationRequest,
    admin: AdminUser,
):
    """Record the outcome of a wholesale license review."""
    profile = ProfileService.set_verification_status(user_id, request.status)
    return success_response(profile, f"License verification {request.status.value}")


@router.delete("/{user_id}")
async def delete_user(
    user_id: Annotated[UUID, Path(description="Auth user UUID")],
    admin: AdminUser,
):
    """Delete a member's profile and auth account (admin)."""
    warning = ProfileService.delete_user(user_id, admin.id)
    if warning:
        return success_response(message="User deleted", warning=warning)
    return success_response(message="User deleted")
