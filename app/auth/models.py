# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database. The marketplace role lives in
    profiles.role and is checked by require_admin.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
