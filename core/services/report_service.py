# =============================================================================
# core/services/report_service.py - Sales Approval Reports
# =============================================================================
# A report is issued to the seller when the admin approves a purchase. It is
# numbered SAR-YYYY-NNNN per calendar year and moves through
# sent -> confirmed -> shipped -> completed via admin actions.
#
# Sellers only see the buyer's identity once they have paid the commission
# in points (buyer_info_revealed).
# =============================================================================

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.exceptions import DatabaseError, PermissionDeniedError, ReportNotFoundError
from core.models import (
    REPORT_ACTION_TRANSITIONS,
    PurchaseRequestStatus,
    ReportAction,
    SalesApprovalReportStatus,
    UserRole,
    format_report_number,
    parse_report_sequence,
)
from lib.supabase_client import SupabaseClient
from lib.utils import embedded_row, utc_now_iso

logger = logging.getLogger(__name__)

LIST_COLUMNS = (
    "id, report_number, seller_id, buyer_id, product_id, product_name, quantity, "
    "unit_price, total_amount, commission, seller_amount, status, created_at, sent_at, "
    "confirmed_at, shipped_at, completed_at, tracking_number, shipping_address, notes, "
    "buyer_info_revealed, points_deducted, "
    "seller:profiles!sales_approval_reports_seller_id_fkey(id, email, company_name), "
    "buyer:profiles!sales_approval_reports_buyer_id_fkey(id, email, company_name), "
    "product:products!sales_approval_reports_product_id_fkey(id, product_name, specification, manufacturer)"
)

DETAIL_COLUMNS = (
    "*, "
    "seller:profiles!sales_approval_reports_seller_id_fkey"
    "(id, email, company_name, phone_number, address, business_number), "
    "buyer:profiles!sales_approval_reports_buyer_id_fkey"
    "(id, email, company_name, phone_number, address, business_number), "
    "product:products!sales_approval_reports_product_id_fkey"
    "(id, product_name, specification, manufacturer, expiry_date), "
    "purchase_request:purchase_requests!sales_approval_reports_purchase_request_id_fkey"
    "(id, requested_at, notes)"
)

# Fields that identify the buyer; withheld from sellers until revealed
BUYER_IDENTITY_FIELDS = ("buyer", "buyer_id", "shipping_address")


def redact_buyer(report: dict[str, Any]) -> dict[str, Any]:
    """Copy of a report without buyer identity, unless it was revealed."""
    if report.get("buyer_info_revealed"):
        return report
    return {key: (None if key in BUYER_IDENTITY_FIELDS else value) for key, value in report.items()}


def next_report_number(year: int | None = None) -> str:
    """The next SAR-YYYY-NNNN number for the year (0001 for the first)."""
    year = year or datetime.now(timezone.utc).year
    client = SupabaseClient.get_client()
    response = (
        client.table("sales_approval_reports")
        .select("report_number")
        .like("report_number", f"SAR-{year}-%")
        .order("report_number", desc=True)
        .limit(1)
        .execute()
    )
    last = response.data[0]["report_number"] if response.data else None
    return format_report_number(year, parse_report_sequence(last) + 1)


class ReportService:
    """Sales approval report issuing, queries, actions and diagnosis."""

    @staticmethod
    def create_report(
        purchase_request: dict[str, Any],
        product: dict[str, Any],
        purchase_order_id: str | None,
        commission: float,
    ) -> dict[str, Any]:
        """
        Issue the report for an approved purchase request.

        The report starts in status sent with sent_at set.

        Raises:
            DatabaseError: Insert failed
        """
        total_amount = float(purchase_request["total_price"])
        report_number = next_report_number()

        data = {
            "report_number": report_number,
            "purchase_request_id": purchase_request["id"],
            "purchase_order_id": purchase_order_id,
            "seller_id": product["seller_id"],
            "buyer_id": purchase_request["buyer_id"],
            "product_id": product["id"],
            "product_name": product["product_name"],
            "quantity": purchase_request["quantity"],
            "unit_price": float(product["selling_price"]),
            "total_amount": total_amount,
            "commission": commission,
            "seller_amount": total_amount - commission,
            "shipping_address": purchase_request.get("shipping_address"),
            "status": SalesApprovalReportStatus.SENT.value,
            "sent_at": utc_now_iso(),
        }

        client = SupabaseClient.get_client()
        try:
            response = client.table("sales_approval_reports").insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to create report {report_number}: {e}")
            raise DatabaseError("create sales approval report", str(e))

        if not response.data:
            raise DatabaseError("create sales approval report", "insert returned no data")

        report = response.data[0]
        logger.info(
            f"Issued report {report_number} for purchase request {purchase_request['id']} "
            f"to seller {product['seller_id']}"
        )
        return report

    @staticmethod
    def list_reports(
        user_id: str | UUID,
        is_admin: bool,
        seller_id: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Admins see all reports (filterable by seller and status); others see
        the reports where they are the seller.
        """
        client = SupabaseClient.get_client()
        query = client.table("sales_approval_reports").select(LIST_COLUMNS)

        if is_admin:
            if seller_id:
                query = query.eq("seller_id", seller_id)
        else:
            query = query.eq("seller_id", str(user_id))

        if status and status != "all":
            query = query.eq("status", status)

        reports = query.order("created_at", desc=True).execute().data or []
        if is_admin:
            return reports
        return [redact_buyer(report) for report in reports]

    @staticmethod
    def get_report(report_id: str | UUID, user_id: str | UUID, is_admin: bool) -> dict[str, Any]:
        """
        A report with seller, buyer, product and purchase request joined.

        Raises:
            ReportNotFoundError: No report with this id
            PermissionDeniedError: Caller is not admin, seller or buyer
        """
        report = SupabaseClient.fetch_report(report_id, DETAIL_COLUMNS)
        if not report:
            raise ReportNotFoundError(str(report_id))

        caller = str(user_id)
        if is_admin or str(report.get("buyer_id")) == caller:
            return report
        if str(report.get("seller_id")) == caller:
            return redact_buyer(report)
        raise PermissionDeniedError("You can only view reports for your own sales or purchases")

    @staticmethod
    def apply_action(
        report_id: str | UUID,
        action: ReportAction,
        tracking_number: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Move a report to the status for an action and stamp its timestamp.

        Raises:
            ReportNotFoundError: No report with this id
        """
        action = ReportAction(action)
        status, timestamp_column = REPORT_ACTION_TRANSITIONS[action]

        update: dict[str, Any] = {"status": status.value, timestamp_column: utc_now_iso()}
        if action is ReportAction.SHIP and tracking_number:
            update["tracking_number"] = tracking_number
        if notes is not None:
            update["notes"] = notes

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("sales_approval_reports").update(update).eq("id", str(report_id)).execute()
            )
        except Exception as e:
            logger.error(f"Failed to update report {report_id}: {e}")
            raise DatabaseError("update sales approval report", str(e))

        if not response.data:
            raise ReportNotFoundError(str(report_id))

        logger.info(f"Report {report_id}: {action.value} -> {status.value}")
        return response.data[0]

    @staticmethod
    def delete_report(report_id: str | UUID) -> bool:
        """
        Delete a report. Deleting a missing report is not an error.

        Returns:
            True if a row was deleted
        """
        client = SupabaseClient.get_client()
        try:
            response = client.table("sales_approval_reports").delete().eq("id", str(report_id)).execute()
        except Exception as e:
            logger.error(f"Failed to delete report {report_id}: {e}")
            raise DatabaseError("delete sales approval report", str(e))

        deleted = bool(response.data)
        logger.info(f"Delete report {report_id}: {'deleted' if deleted else 'already gone'}")
        return deleted

    # -------------------------------------------------------------------------
    # Diagnosis
    # -------------------------------------------------------------------------

    @staticmethod
    def diagnose(seller_id: str | None = None, purchase_request_id: str | None = None) -> dict[str, Any]:
        """
        Look for reports that failed to reach their seller.

        Always checks for approved purchase requests without a report and for
        reports whose seller profile is gone. With seller_id, also checks the
        seller's profile and reports; with purchase_request_id, checks that
        request and its report.

        Returns:
            Dict with checks, issues, recommendations and summary
        """
        client = SupabaseClient.get_client()
        checks: list[dict[str, Any]] = []
        issues: list[dict[str, Any]] = []
        recommendations: list[dict[str, Any]] = []

        def check(name: str, passed: bool, **details) -> None:
            checks.append({"name": name, "passed": passed, "details": details})

        def issue(severity: str, message: str, **details) -> None:
            issues.append({"severity": severity, "message": message, **details})

        # Approved requests without a report
        approved = (
            client.table("purchase_requests")
            .select("id")
            .eq("status", PurchaseRequestStatus.APPROVED.value)
            .execute()
        ).data or []
        all_reports = (
            client.table("sales_approval_reports").select("id, purchase_request_id, seller_id, status").execute()
        ).data or []
        reported = {r.get("purchase_request_id") for r in all_reports}
        missing = [r["id"] for r in approved if r["id"] not in reported]
        check("Approved purchase requests have reports", not missing, missingCount=len(missing))
        if missing:
            issue(
                "critical",
                f"{len(missing)} approved purchase requests have no sales approval report",
                purchaseRequestIds=missing,
            )
            recommendations.append({
                "action": "Re-run the approval of these purchase requests to issue their reports",
                "endpoint": "/api/v1/purchase-requests/{id}/review",
            })

        # Reports whose seller profile is missing
        seller_ids = sorted({r["seller_id"] for r in all_reports if r.get("seller_id")})
        known: set[str] = set()
        if seller_ids:
            known = {
                p["id"]
                for p in client.table("profiles").select("id").in_("id", seller_ids).execute().data or []
            }
        orphaned = [r["id"] for r in all_reports if r.get("seller_id") not in known]
        check("Reports reference existing sellers", not orphaned, orphanedCount=len(orphaned))
        if orphaned:
            issue("critical", f"{len(orphaned)} reports reference a missing seller profile", reportIds=orphaned)

        if seller_id:
            profile = SupabaseClient.fetch_profile(seller_id, "id, email, company_name, role")
            check("Seller profile exists", bool(profile), sellerId=seller_id)
            if not profile:
                issue("critical", "Seller profile does not exist", sellerId=seller_id)
            elif profile.get("role") == UserRole.ADMIN.value:
                issue("warning", "The seller is an admin account")

            seller_reports = [r for r in all_reports if r.get("seller_id") == seller_id]
            counts = Counter(r.get("status") for r in seller_reports)
            check("Reports exist for seller", bool(seller_reports), count=len(seller_reports),
                  statusCounts=dict(counts))
            if not seller_reports:
                issue("critical", "No sales approval reports found for this seller", sellerId=seller_id)
            elif not counts.get(SalesApprovalReportStatus.SENT.value):
                issue("warning", "None of the seller's reports is in status sent", statuses=sorted(counts))

        if purchase_request_id:
            request = SupabaseClient.fetch_purchase_request(purchase_request_id, with_product=True)
            check("Purchase request exists", bool(request), purchaseRequestId=purchase_request_id)
            if request:
                product = embedded_row(request.get("product"))
                if not product.get("seller_id"):
                    issue("critical", "The requested product has no seller_id",
                          purchaseRequestId=purchase_request_id)
                elif seller_id and product["seller_id"] != seller_id:
                    issue("critical", "The product's seller_id does not match the requested seller",
                          expected=seller_id, actual=product["seller_id"])

            request_reports = (
                client.table("sales_approval_reports")
                .select("id, report_number, status, sent_at")
                .eq("purchase_request_id", purchase_request_id)
                .order("created_at", desc=True)
                .execute()
            ).data or []
            check("Purchase request has a report", bool(request_reports), count=len(request_reports))
            if not request_reports:
                issue("critical", "No sales approval report was created for this purchase request",
                      purchaseRequestId=purchase_request_id)
                recommendations.append({
                    "action": "Re-run the approval of the purchase request to issue its report",
                    "endpoint": f"/api/v1/purchase-requests/{purchase_request_id}/review",
                })
            else:
                latest = request_reports[0]
                if latest.get("status") != SalesApprovalReportStatus.SENT.value:
                    issue("warning", "The latest report is not in status sent",
                          reportId=latest["id"], currentStatus=latest.get("status"))
                if not latest.get("sent_at"):
                    issue("warning", "The latest report has no sent_at", reportId=latest["id"])

        critical = sum(1 for i in issues if i["severity"] == "critical")
        warnings = sum(1 for i in issues if i["severity"] == "warning")
        passed = sum(1 for c in checks if c["passed"])

        if critical:
            status = "critical"
        elif warnings:
            status = "warning"
        else:
            status = "ok"

        logger.info(f"Report diagnosis: {passed}/{len(checks)} checks passed, status {status}")
        return {
            "timestamp": utc_now_iso(),
            "sellerId": seller_id,
            "purchaseRequestId": purchase_request_id,
            "checks": checks,
            "issues": issues,
            "recommendations": recommendations,
            "summary": {
                "totalChecks": len(checks),
                "passed": passed,
                "failed": len(checks) - passed,
                "criticalIssues": critical,
                "warnings": warnings,
                "status": status,
            },
        }
