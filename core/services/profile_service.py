# =============================================================================
# core/services/profile_service.py - Member Profiles
# =============================================================================
# Profiles are created right after Supabase Auth signup. The auth user can
# take a moment to become visible to the admin API, so creation polls for
# it and retries inserts that fail on the profiles.id foreign key.
# =============================================================================

import logging
import time
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    DatabaseError,
    InvalidStateError,
    MissingFieldsError,
    NotFoundError,
    ProfileNotFoundError,
    ValidationFailedError,
)
from core.models import LicenseVerificationStatus, UserRole
from lib.supabase_client import SupabaseClient, is_foreign_key_violation
from lib.utils import (
    is_placeholder_business_number,
    is_placeholder_company,
    normalize_business_number,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

ADMIN_CONTACT_COLUMNS = "company_name, bank_name, account_number, phone_number"


def validate_company_fields(company_name: str | None, business_number: str | None) -> None:
    """
    Reject blank or placeholder company data.

    Raises:
        ValidationFailedError: Company name or business number is unusable
    """
    if is_placeholder_company(company_name):
        raise ValidationFailedError("Enter a valid company name", {"field": "companyName"})
    if is_placeholder_business_number(business_number):
        raise ValidationFailedError(
            "Enter a valid business registration number", {"field": "businessNumber"}
        )


def _auth_user_exists(user_id: str) -> bool:
    client = SupabaseClient.get_client()
    try:
        response = client.auth.admin.get_user_by_id(user_id)
        return bool(response and response.user)
    except Exception as e:
        logger.debug(f"Auth user {user_id} not visible yet: {e}")
        return False


class ProfileService:
    """Profile creation, lookup, updates and admin management."""

    @staticmethod
    def wait_for_auth_user(user_id: str | UUID) -> bool:
        """
        Poll the admin API until the auth user is visible.

        Tries PROFILE_CREATE_MAX_RETRIES times, PROFILE_CREATE_RETRY_DELAY_SECONDS apart.
        """
        attempts = settings.PROFILE_CREATE_MAX_RETRIES
        for attempt in range(1, attempts + 1):
            if _auth_user_exists(str(user_id)):
                return True
            if attempt < attempts:
                time.sleep(settings.PROFILE_CREATE_RETRY_DELAY_SECONDS)
        return False

    @staticmethod
    def create_profile(
        user_id: str | UUID,
        email: str,
        company_name: str,
        business_number: str,
    ) -> tuple[dict[str, Any], bool]:
        """
        Create the profile for a newly registered user.

        Args:
            user_id: Supabase auth user id
            email: Account email
            company_name: Registered company name
            business_number: Business registration number (hyphens removed)

        Returns:
            Tuple of (profile, created). created is False when the profile
            already existed.

        Raises:
            ValidationFailedError: Placeholder company data, or the auth
                user never became visible
            DatabaseError: Insert failed for a reason other than the FK race
        """
        validate_company_fields(company_name, business_number)
        user_id_str = str(user_id)

        if not ProfileService.wait_for_auth_user(user_id_str):
            logger.warning(f"Auth user {user_id_str} not found; profile not created")
            raise ValidationFailedError(
                "Auth user does not exist. Complete signup and email confirmation, then retry.",
                {"userId": user_id_str, "attempts": settings.PROFILE_CREATE_MAX_RETRIES},
            )

        existing = SupabaseClient.fetch_profile(user_id_str)
        if existing:
            logger.info(f"Profile already exists for {user_id_str}")
            return existing, False

        client = SupabaseClient.get_client()
        data = {
            "id": user_id_str,
            "email": email,
            "company_name": company_name.strip(),
            "business_number": normalize_business_number(business_number),
            "role": UserRole.USER.value,
            "license_verification_status": LicenseVerificationStatus.PENDING.value,
        }

        max_retries = settings.PROFILE_CREATE_MAX_RETRIES
        for attempt in range(1, max_retries + 1):
            try:
                response = client.table("profiles").insert(data).execute()
            except Exception as e:
                if not is_foreign_key_violation(e):
                    logger.error(f"Failed to create profile for {user_id_str}: {e}")
                    raise DatabaseError("create profile", str(e))

                if attempt == max_retries:
                    logger.error(f"Profile insert for {user_id_str} kept failing on FK: {e}")
                    raise ValidationFailedError(
                        "Auth user does not exist. Complete signup and email confirmation, then retry.",
                        {"userId": user_id_str, "attempts": max_retries},
                    )

                delay = settings.PROFILE_CREATE_RETRY_DELAY_SECONDS * attempt
                logger.warning(
                    f"Profile insert for {user_id_str} hit FK violation "
                    f"(attempt {attempt}/{max_retries}), retrying in {delay}s"
                )
                time.sleep(delay)
                continue

            if response.data:
                profile = response.data[0]
                logger.info(f"Created profile {user_id_str} ({profile.get('company_name')})")
                return profile, True

            raise DatabaseError("create profile", "insert returned no data")

        raise DatabaseError("create profile", "all retries failed")

    @staticmethod
    def get_profile(user_id: str | UUID) -> dict[str, Any]:
        """
        Raises:
            ProfileNotFoundError: No profile for this user
        """
        profile = SupabaseClient.fetch_profile(user_id)
        if not profile:
            raise ProfileNotFoundError(str(user_id))
        return profile

    @staticmethod
    def update_profile(user_id: str | UUID, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Update a member's company and contact details.

        company_name, business_number, phone_number, address and
        account_number are required; bank_name is optional.

        Raises:
            MissingFieldsError: A required field is absent or blank
            ValidationFailedError: Placeholder company data
            ProfileNotFoundError: No profile for this user
        """
        required = ["company_name", "business_number", "phone_number", "address", "account_number"]
        missing = [name for name in required if not (fields.get(name) or "").strip()]
        if missing:
            raise MissingFieldsError(missing)

        validate_company_fields(fields["company_name"], fields["business_number"])

        update = {name: fields[name].strip() for name in required}
        if fields.get("bank_name"):
            update["bank_name"] = fields["bank_name"].strip()
        update["updated_at"] = utc_now_iso()

        client = SupabaseClient.get_client()
        try:
            response = client.table("profiles").update(update).eq("id", str(user_id)).execute()
        except Exception as e:
            logger.error(f"Failed to update profile {user_id}: {e}")
            raise DatabaseError("update profile", str(e))

        if not response.data:
            raise ProfileNotFoundError(str(user_id))

        logger.info(f"Updated profile {user_id}")
        return response.data[0]

    @staticmethod
    def list_profiles(status: str | None = None) -> list[dict[str, Any]]:
        """All profiles newest first, optionally by license verification status."""
        client = SupabaseClient.get_client()
        query = client.table("profiles").select("*").order("created_at", desc=True)
        if status and status != "all":
            query = query.eq("license_verification_status", status)
        return query.execute().data or []

    @staticmethod
    def set_verification_status(
        user_id: str | UUID,
        status: LicenseVerificationStatus,
    ) -> dict[str, Any]:
        """
        Record the result of a wholesale license review.

        Raises:
            ProfileNotFoundError: No profile for this user
        """
        status = LicenseVerificationStatus(status)
        client = SupabaseClient.get_client()
        response = (
            client.table("profiles")
            .update({"license_verification_status": status.value, "updated_at": utc_now_iso()})
            .eq("id", str(user_id))
            .execute()
        )
        if not response.data:
            raise ProfileNotFoundError(str(user_id))

        logger.info(f"License verification for {user_id} set to {status.value}")
        return response.data[0]

    @staticmethod
    def delete_user(user_id: str | UUID, admin_user_id: str | UUID) -> str | None:
        """
        Delete a member's profile and auth account.

        Returns:
            A warning when the profile was deleted but the auth account
            could not be, otherwise None

        Raises:
            InvalidStateError: Self-deletion or deleting another admin
            ProfileNotFoundError: No profile for this user
            DatabaseError: Profile delete failed
        """
        user_id_str = str(user_id)
        if user_id_str == str(admin_user_id):
            raise InvalidStateError("You cannot delete your own account")

        profile = SupabaseClient.fetch_profile(user_id_str, "id, email, role")
        if not profile:
            raise ProfileNotFoundError(user_id_str)
        if profile.get("role") == UserRole.ADMIN.value:
            raise InvalidStateError("Other admins cannot be deleted")

        client = SupabaseClient.get_client()
        try:
            client.table("profiles").delete().eq("id", user_id_str).execute()
        except Exception as e:
            logger.error(f"Failed to delete profile {user_id_str}: {e}")
            raise DatabaseError("delete profile", str(e))

        try:
            client.auth.admin.delete_user(user_id_str)
        except Exception as e:
            logger.warning(f"Profile {user_id_str} deleted but auth user deletion failed: {e}")
            return "Profile was deleted but the auth account could not be removed"

        logger.info(f"Deleted user {user_id_str} ({profile.get('email')})")
        return None

    @staticmethod
    def get_admin_contact() -> dict[str, Any]:
        """
        Bank account and phone of the admin, for point charge deposits.

        Raises:
            NotFoundError: No admin profile exists
        """
        client = SupabaseClient.get_client()
        response = (
            client.table("profiles")
            .select(ADMIN_CONTACT_COLUMNS)
            .eq("role", UserRole.ADMIN.value)
            .limit(1)
            .execute()
        )
        if not response.data:
            raise NotFoundError("Admin profile", code="ADMIN_NOT_FOUND")
        return response.data[0]
