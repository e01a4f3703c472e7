# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Admin notification emails. Each task renders a subject and body and logs
# the message; delivery is left to whatever relay reads the worker logs.
#
# Tasks:
# - send_registration_notification: A new member signed up
# - send_sales_list_notification: A seller submitted a sales list
# - send_purchase_request_notification: A buyer requested a purchase
# - send_inventory_analysis_notification: A member ran an inventory analysis
# =============================================================================

import logging
from typing import Any

from celery import shared_task

from app.config import settings
from lib.utils import format_company_name

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def deliver(subject: str, body: str) -> dict[str, Any]:
    """
    "Send" an email to the admin by logging it.

    Returns:
        Dict with to, subject and sent flag
    """
    recipient = settings.ADMIN_NOTIFICATION_EMAIL
    logger.info(f"Email to {recipient}: {subject}\n{body}")
    return {"sent": True, "to": recipient, "subject": subject}


def _won(amount: Any) -> str:
    try:
        return f"{float(amount):,.0f} KRW"
    except (TypeError, ValueError):
        return "-"


# =============================================================================
# Notification Tasks
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_registration_notification")
def send_registration_notification(
    self,
    user_id: str,
    email: str,
    company_name: str | None = None,
    business_number: str | None = None,
) -> dict[str, Any]:
    """Tell the admin a member registered and awaits license verification."""
    subject = f"[Marketplace] New member registration: {format_company_name(company_name)}"
    body = "\n".join([
        "A new member has registered and is waiting for license verification.",
        f"User ID: {user_id}",
        f"Email: {email}",
        f"Company: {format_company_name(company_name)}",
        f"Business number: {business_number or '-'}",
    ])
    return deliver(subject, body)


@shared_task(bind=True, name="workers.tasks.send_sales_list_notification")
def send_sales_list_notification(
    self,
    seller_id: str,
    sales_list_id: str,
    item_count: int = 0,
) -> dict[str, Any]:
    """Tell the admin a sales list was submitted."""
    subject = f"[Marketplace] Sales list submitted ({item_count} items)"
    body = "\n".join([
        "A seller submitted a sales list.",
        f"Sales list ID: {sales_list_id}",
        f"Seller ID: {seller_id}",
        f"Items: {item_count}",
    ])
    return deliver(subject, body)


@shared_task(bind=True, name="workers.tasks.send_purchase_request_notification")
def send_purchase_request_notification(
    self,
    purchase_request_id: str,
    buyer_id: str,
    product_name: str,
    quantity: int,
    total_price: float,
    commission: float | None = None,
    buyer_company_name: str | None = None,
    seller_id: str | None = None,
    seller_company_name: str | None = None,
) -> dict[str, Any]:
    """Tell the admin a purchase request is waiting for review."""
    subject = f"[Marketplace] Purchase request: {product_name} x {quantity}"
    lines = [
        "A buyer submitted a purchase request.",
        f"Purchase request ID: {purchase_request_id}",
        f"Buyer: {format_company_name(buyer_company_name)} ({buyer_id})",
        f"Product: {product_name}",
        f"Quantity: {quantity}",
        f"Total: {_won(total_price)}",
    ]
    if commission is not None:
        lines.append(f"Commission: {_won(commission)}")
    if seller_id:
        lines.append(f"Seller: {format_company_name(seller_company_name)} ({seller_id})")
    return deliver(subject, "\n".join(lines))


@shared_task(bind=True, name="workers.tasks.send_inventory_analysis_notification")
def send_inventory_analysis_notification(
    self,
    user_id: str,
    statistics: dict[str, Any],
    period: str | None = None,
    expiring_count: int | None = None,
    dead_stock_count: int | None = None,
) -> dict[str, Any]:
    """Send the admin a summary of a member's inventory analysis."""
    expiring = expiring_count if expiring_count is not None else statistics.get("expiring_count", 0)
    dead = dead_stock_count if dead_stock_count is not None else statistics.get("dead_stock_count", 0)

    subject = f"[Marketplace] Inventory analysis: {expiring} expiring, {dead} dead stock"
    lines = [
        "A member ran an inventory analysis.",
        f"User ID: {user_id}",
        f"Period: {period or '-'}",
        f"Total items: {statistics.get('total_items', 0)}",
        f"Expiring items: {expiring}",
        f"Dead stock items: {dead}",
    ]
    if "expiring_percentage" in statistics:
        lines.append(f"Expiring share: {statistics['expiring_percentage']}%")
    if "dead_stock_percentage" in statistics:
        lines.append(f"Dead stock share: {statistics['dead_stock_percentage']}%")
    return deliver(subject, "\n".join(lines))
