# =============================================================================
# app/routers/admin.py - Admin Setup & Maintenance Endpoints
# =============================================================================
# Provisioning the first admin account, Auth maintenance (email
# confirmation, password resets), setup checks and the staging data reset.
# =============================================================================

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, Header

from app.auth import AuthUser, get_current_user_optional, is_admin_user
from app.config import settings
from app.dependencies import AdminUser
from app.exceptions import AdminRequiredError
from app.responses import success_response
from core.models import RequestModel
from core.services.admin_service import AdminService
from core.services.test_data_service import TestDataService

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateAdminRequest(RequestModel):
    email: str
    password: str
    company_name: str
    business_number: str


class ConfirmEmailRequest(RequestModel):
    user_id: str | None = None
    email: str | None = None


class ResetPasswordRequest(RequestModel):
    email: str
    password: str


def _setup_key_matches(setup_key: str | None) -> bool:
    expected = settings.ADMIN_SETUP_KEY
    return bool(expected) and bool(setup_key) and secrets.compare_digest(setup_key, expected)


@router.post("/create-admin")
def create_admin(
    request: CreateAdminRequest,
    user: AuthUser | None = Depends(get_current_user_optional),
    x_setup_key: Annotated[str | None, Header()] = None,
):
    """
    Create an admin account.

    Allowed for an existing admin, or for anyone presenting the
    X-Setup-Key header matching ADMIN_SETUP_KEY (first-time setup).
    """
    if not _setup_key_matches(x_setup_key) and not is_admin_user(user):
        raise AdminRequiredError()

    account = AdminService.create_admin(
        request.email,
        request.password,
        request.company_name,
        request.business_number,
    )
    return success_response(account, "Admin account created")


@router.get("/check-setup")
async def check_setup():
    """Check that the private documents bucket exists."""
    return success_response(AdminService.check_setup())


@router.post("/confirm-email")
async def confirm_email(request: ConfirmEmailRequest, admin: AdminUser):
    """Mark a user's email as confirmed (by userId or email)."""
    data = AdminService.confirm_email(request.user_id, request.email)
    return success_response(data, "Email confirmed")


@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest, admin: AdminUser):
    """Set a new password for a user."""
    AdminService.reset_password(request.email, request.password)
    return success_response(message="Password reset")


@router.post("/reset-test-data")
async def reset_test_data(admin: AdminUser):
    """Delete every non-admin member and their data (staging only)."""
    logger.warning(f"Test data reset requested by admin {admin.id}")
    result = TestDataService.reset()
    return success_response(result, f"Test data reset: {result['totalDeleted']} rows deleted")
