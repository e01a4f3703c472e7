# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for fetching:
# - Profiles (role checks, seller/buyer lookups)
# - Products, sales lists and purchase requests
# - Sales approval reports and point charge requests
# - Stored procedure (RPC) calls for the points ledger
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   profile = SupabaseClient.fetch_profile(user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no row matches
NOT_FOUND_CODE = "PGRST116"

# Postgres foreign key violation
FOREIGN_KEY_VIOLATION_CODE = "23503"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Errors should tell HOW to fix, not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def is_not_found(error: Exception) -> bool:
    """True if a Supabase error means "no rows" rather than a failure."""
    return NOT_FOUND_CODE in str(error)


def is_foreign_key_violation(error: Exception) -> bool:
    """True if a Supabase error is a foreign key constraint violation."""
    code = getattr(error, "code", None)
    text = str(error)
    return (
        code == FOREIGN_KEY_VIOLATION_CODE
        or FOREIGN_KEY_VIOLATION_CODE in text
        or "foreign key constraint" in text
    )


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        profile = SupabaseClient.fetch_profile("550e8400-...")
        if profile and profile["role"] == "admin":
            ...
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    @classmethod
    def _fetch_single(
        cls,
        table: str,
        row_id: str | UUID,
        columns: str = "*",
        error_code: str = "FETCH_FAILED",
    ) -> dict[str, Any] | None:
        """
        Fetch one row by primary key.

        Returns:
            Row dict, or None if no row has that id

        Raises:
            SupabaseClientError: If the query fails for any other reason
        """
        client = cls.get_client()
        row_id_str = cls._normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq("id", row_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if is_not_found(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code=error_code,
                suggestion=f"Check that the {table} table is accessible",
                details={"table": table, "id": row_id_str}
            )

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(cls, user_id: str | UUID, columns: str = "*") -> dict[str, Any] | None:
        """
        Fetch a user profile.

        Args:
            user_id: The auth user UUID (profiles.id)
            columns: Column list to select

        Returns:
            Profile dict, or None if the user has no profile yet
        """
        return cls._fetch_single("profiles", user_id, columns, "FETCH_PROFILE_FAILED")

    @classmethod
    def is_admin(cls, user_id: str | UUID) -> bool:
        """Check whether a user's profile carries the admin role."""
        profile = cls.fetch_profile(user_id, "role")
        return bool(profile) and profile.get("role") == "admin"

    # -------------------------------------------------------------------------
    # Marketplace Entities
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_product(cls, product_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a product by ID."""
        return cls._fetch_single("products", product_id, "*", "FETCH_PRODUCT_FAILED")

    @classmethod
    def fetch_sales_list(cls, list_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a sales list (including its JSON items) by ID."""
        return cls._fetch_single("sales_lists", list_id, "*", "FETCH_SALES_LIST_FAILED")

    @classmethod
    def fetch_purchase_request(
        cls,
        request_id: str | UUID,
        with_product: bool = False,
    ) -> dict[str, Any] | None:
        """
        Fetch a purchase request.

        Args:
            request_id: The purchase request UUID
            with_product: Embed the requested product under "product"

        Returns:
            Purchase request dict, or None if not found
        """
        columns = "*, product:products!purchase_requests_product_id_fkey(*)" if with_product else "*"
        return cls._fetch_single(
            "purchase_requests", request_id, columns, "FETCH_PURCHASE_REQUEST_FAILED"
        )

    @classmethod
    def fetch_report(cls, report_id: str | UUID, columns: str = "*") -> dict[str, Any] | None:
        """Fetch a sales approval report by ID."""
        return cls._fetch_single("sales_approval_reports", report_id, columns, "FETCH_REPORT_FAILED")

    @classmethod
    def fetch_point_charge_request(cls, request_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a point charge request by ID."""
        return cls._fetch_single(
            "point_charge_requests", request_id, "*", "FETCH_CHARGE_REQUEST_FAILED"
        )

    # -------------------------------------------------------------------------
    # Stored Procedures
    # -------------------------------------------------------------------------

    @classmethod
    def call_rpc(cls, function: str, params: dict[str, Any]) -> Any:
        """
        Call a Postgres function through PostgREST.

        The points procedures return a JSON object such as
        {"success": true, "balance_before": 0, "balance_after": 100, ...}
        or {"success": false, "code": "INSUFFICIENT_POINTS", ...}.

        Args:
            function: Function name (e.g. "charge_points")
            params: Named arguments (p_user_id, p_amount, ...)

        Returns:
            The function's return value (response.data)

        Raises:
            SupabaseClientError: If the call itself fails
        """
        client = cls.get_client()

        try:
            response = client.rpc(function, params).execute()
            logger.debug(f"RPC {function} returned: {response.data}")
            return response.data

        except Exception as e:
            logger.error(f"RPC {function} failed: {e}")
            raise SupabaseClientError(
                message=f"Stored procedure {function} failed: {e}",
                code="RPC_FAILED",
                suggestion="Check that the database migrations defining this function were applied",
                details={"function": function}
            )
