# =============================================================================
# core/services/admin_service.py - Admin Account & Setup Operations
# =============================================================================
# Operations that go through the Supabase Auth admin API (service key):
# creating the admin account, confirming emails, resetting passwords, and
# checking that the project's storage is set up.
# =============================================================================

import logging
import re
import time
from typing import Any

from app.config import settings
from app.exceptions import AuthAdminError, NotFoundError, ValidationFailedError
from core.models import LicenseVerificationStatus, UserRole
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

# The signup trigger normally creates the profile within a few seconds
PROFILE_POLL_ATTEMPTS = 50
PROFILE_POLL_INTERVAL_SECONDS = 0.1


def validate_credentials(email: str, password: str) -> None:
    """
    Raises:
        ValidationFailedError: Malformed email or password shorter than 6
    """
    if not EMAIL_PATTERN.match(email or ""):
        raise ValidationFailedError("Invalid email format", {"field": "email"})
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", {"field": "password"}
        )


class AdminService:
    """Admin account provisioning and Auth admin operations."""

    @staticmethod
    def find_user_id_by_email(email: str) -> str:
        """
        Look up an auth user by email.

        Raises:
            NotFoundError: No auth user with that email
            AuthAdminError: Listing users failed
        """
        client = SupabaseClient.get_client()
        try:
            users = client.auth.admin.list_users()
        except Exception as e:
            logger.error(f"Failed to list auth users: {e}")
            raise AuthAdminError("list users", str(e))

        for user in users or []:
            if getattr(user, "email", None) == email:
                return str(user.id)

        raise NotFoundError("User", email, code="USER_NOT_FOUND")

    @staticmethod
    def create_admin(
        email: str,
        password: str,
        company_name: str,
        business_number: str,
    ) -> dict[str, Any]:
        """
        Create a confirmed auth user and give its profile the admin role.

        Waits for the signup trigger to create the profile, then upserts
        role admin / license approved either way.

        Returns:
            Dict with id, email and role

        Raises:
            ValidationFailedError: Bad email or password
            AuthAdminError: Auth user creation or profile upsert failed
        """
        validate_credentials(email, password)
        client = SupabaseClient.get_client()

        try:
            response = client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
            })
        except Exception as e:
            logger.error(f"Failed to create admin auth user {email}: {e}")
            raise AuthAdminError("create admin account", str(e))

        if not response or not response.user:
            raise AuthAdminError("create admin account", "no user returned")

        user_id = str(response.user.id)

        for _ in range(PROFILE_POLL_ATTEMPTS):
            if SupabaseClient.fetch_profile(user_id, "id"):
                break
            time.sleep(PROFILE_POLL_INTERVAL_SECONDS)
        else:
            logger.warning(f"Signup trigger did not create profile for {user_id}; creating it")

        try:
            client.table("profiles").upsert({
                "id": user_id,
                "email": email,
                "company_name": company_name,
                "business_number": business_number,
                "role": UserRole.ADMIN.value,
                "license_verification_status": LicenseVerificationStatus.APPROVED.value,
            }, on_conflict="id").execute()
        except Exception as e:
            logger.error(f"Failed to write admin profile for {user_id}: {e}")
            raise AuthAdminError("write admin profile", str(e))

        logger.info(f"Created admin account {email} ({user_id})")
        return {"id": user_id, "email": email, "role": UserRole.ADMIN.value}

    @staticmethod
    def confirm_email(user_id: str | None = None, email: str | None = None) -> dict[str, Any]:
        """
        Mark a user's email as confirmed.

        Raises:
            ValidationFailedError: Neither user_id nor email given
            NotFoundError: No user with that email
            AuthAdminError: The update failed
        """
        if not user_id and not email:
            raise ValidationFailedError("userId or email is required")

        target_id = str(user_id) if user_id else AdminService.find_user_id_by_email(email)
        client = SupabaseClient.get_client()

        try:
            response = client.auth.admin.update_user_by_id(target_id, {"email_confirm": True})
        except Exception as e:
            logger.error(f"Failed to confirm email for {target_id}: {e}")
            raise AuthAdminError("confirm email", str(e))

        confirmed_email = getattr(getattr(response, "user", None), "email", None) or email
        logger.info(f"Confirmed email for user {target_id}")
        return {"id": target_id, "email": confirmed_email}

    @staticmethod
    def reset_password(email: str, password: str) -> None:
        """
        Set a new password for the user with this email.

        Raises:
            ValidationFailedError: Password shorter than 6
            NotFoundError: No user with that email
            AuthAdminError: The update failed
        """
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationFailedError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", {"field": "password"}
            )

        user_id = AdminService.find_user_id_by_email(email)
        client = SupabaseClient.get_client()

        try:
            client.auth.admin.update_user_by_id(user_id, {"password": password})
        except Exception as e:
            logger.error(f"Failed to reset password for {email}: {e}")
            raise AuthAdminError("reset password", str(e))

        logger.info(f"Password reset for {email}")

    @staticmethod
    def check_setup() -> dict[str, Any]:
        """
        Check that the documents bucket exists and is private.

        Returns:
            Dict with "ready" and per-check details
        """
        bucket_check: dict[str, Any] = {"exists": False, "isPrivate": False}

        try:
            client = SupabaseClient.get_client()
            buckets = client.storage.list_buckets()
            documents = next(
                (b for b in buckets or [] if getattr(b, "id", None) == settings.DOCUMENTS_BUCKET),
                None,
            )
            if documents is not None:
                bucket_check["exists"] = True
                bucket_check["isPrivate"] = not getattr(documents, "public", False)
        except Exception as e:
            logger.warning(f"Bucket check failed: {e}")
            bucket_check["error"] = str(e)

        ready = bucket_check["exists"] and bucket_check["isPrivate"]
        return {
            "ready": ready,
            "checks": {"bucket": bucket_check},
            "message": "Setup is complete" if ready else "Some setup steps are missing",
        }
