# =============================================================================
# core/services/ledger_service.py - Points Ledger Queries
# =============================================================================
# The ledger combines two sources:
# - Deposits: approved point charge requests (money actually received)
# - Transactions: every point movement written by the stored procedures
#   (charge, deduct, refund)
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from core.models import LedgerStatistics, PointChargeRequestStatus, PointTransactionType
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

DEPOSIT_COLUMNS = (
    "id, user_id, requested_amount, requested_points, status, description, "
    "admin_notes, created_at, reviewed_at, completed_at, "
    "user:profiles!point_charge_requests_user_id_fkey(company_name, email), "
    "admin:profiles!point_charge_requests_admin_user_id_fkey(company_name, email)"
)

TRANSACTION_COLUMNS = (
    "id, user_id, transaction_type, amount, balance_before, balance_after, "
    "reference_type, reference_id, description, admin_user_id, created_at, "
    "user:profiles!point_transactions_user_id_fkey(company_name, email), "
    "admin:profiles!point_transactions_admin_user_id_fkey(company_name, email)"
)


def _apply_filters(query, user_id: str | None, start_date: str | None, end_date: str | None):
    if user_id:
        query = query.eq("user_id", user_id)
    if start_date:
        query = query.gte("created_at", start_date)
    if end_date:
        query = query.lte("created_at", end_date)
    return query


def compute_ledger_statistics(
    deposits: list[dict[str, Any]],
    transactions: list[dict[str, Any]],
) -> LedgerStatistics:
    """Totals and counts over deposits and point transactions."""
    by_type: dict[str, list[dict[str, Any]]] = {t.value: [] for t in PointTransactionType}
    for tx in transactions:
        by_type.setdefault(tx.get("transaction_type"), []).append(tx)

    def total(rows: list[dict[str, Any]], column: str) -> int:
        return sum(int(row.get(column) or 0) for row in rows)

    charges = by_type[PointTransactionType.CHARGE.value]
    deducts = by_type[PointTransactionType.DEDUCT.value]
    refunds = by_type[PointTransactionType.REFUND.value]

    return LedgerStatistics(
        total_deposits=total(deposits, "requested_amount"),
        total_deposit_points=total(deposits, "requested_points"),
        total_charge_points=total(charges, "amount"),
        total_deduct_points=total(deducts, "amount"),
        total_refund_points=total(refunds, "amount"),
        deposit_count=len(deposits),
        transaction_count=len(transactions),
        charge_count=len(charges),
        deduct_count=len(deducts),
        refund_count=len(refunds),
    )


class LedgerService:
    """Deposit and transaction history with summary statistics."""

    @staticmethod
    def get_ledger(
        user_id: str | UUID | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any]:
        """
        Ledger for one user, or for everyone when user_id is None.

        Args:
            user_id: Restrict to this member
            start_date: Inclusive lower bound on created_at (ISO date/time)
            end_date: Inclusive upper bound on created_at

        Returns:
            Dict with deposits, transactions and statistics (camelCase keys)
        """
        client = SupabaseClient.get_client()
        user_id_str = str(user_id) if user_id else None

        deposit_query = (
            client.table("point_charge_requests")
            .select(DEPOSIT_COLUMNS)
            .eq("status", PointChargeRequestStatus.APPROVED.value)
            .order("created_at", desc=True)
        )
        deposits = _apply_filters(deposit_query, user_id_str, start_date, end_date).execute().data or []

        transaction_query = (
            client.table("point_transactions")
            .select(TRANSACTION_COLUMNS)
            .order("created_at", desc=True)
        )
        transactions = _apply_filters(transaction_query, user_id_str, start_date, end_date).execute().data or []

        statistics = compute_ledger_statistics(deposits, transactions)
        logger.debug(
            f"Ledger for {user_id_str or 'all users'}: "
            f"{statistics.deposit_count} deposits, {statistics.transaction_count} transactions"
        )

        return {
            "deposits": deposits,
            "transactions": transactions,
            "statistics": statistics.model_dump(by_alias=True),
        }
