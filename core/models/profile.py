# =============================================================================
# core/models/profile.py - Profile Schemas
# =============================================================================
# A profile is the marketplace-side record of a Supabase auth user:
# company, business registration number, wholesale license status and role.
# Every member can both sell (upload sales lists) and buy (request purchases);
# admins review listings, purchase requests and license verifications.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field

from .base import RecordModel


class UserRole(str, Enum):
    """Marketplace role stored in profiles.role."""
    USER = "user"
    ADMIN = "admin"


class LicenseVerificationStatus(str, Enum):
    """
    Wholesale license review state.

    Flow: pending -> approved | rejected
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Profile(RecordModel):
    """
    Row of the profiles table.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "email": "buyer@pharm.co.kr",
            "company_name": "한빛약품",
            "business_number": "1234567890",
            "license_verification_status": "approved",
            "role": "user"
        }
    """

    id: UUID
    email: str
    company_name: str = Field(..., description="Registered company name")
    business_number: str = Field(..., description="Business registration number without hyphens")
    wholesale_license: str | None = None
    license_verification_status: LicenseVerificationStatus = LicenseVerificationStatus.PENDING
    phone_number: str | None = None
    address: str | None = None
    bank_name: str | None = None
    account_number: str | None = None
    role: UserRole = UserRole.USER
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdminContact(RecordModel):
    """Payment details shown to members who want to charge points."""

    company_name: str | None = None
    bank_name: str | None = None
    account_number: str | None = None
    phone_number: str | None = None
