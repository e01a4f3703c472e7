# =============================================================================
# core/services/notification_service.py - Admin Notifications
# =============================================================================
# Enqueues notification emails on the Celery worker. Notifications are best
# effort: if the broker is unreachable the failure is logged and the request
# that triggered it still succeeds.
# =============================================================================

import logging
from typing import Any

from workers.tasks import (
    send_inventory_analysis_notification,
    send_purchase_request_notification,
    send_registration_notification,
    send_sales_list_notification,
)

logger = logging.getLogger(__name__)


def _enqueue(task, **kwargs) -> bool:
    try:
        result = task.delay(**kwargs)
    except Exception as e:
        logger.warning(f"Could not enqueue {task.name}: {e}")
        return False
    logger.debug(f"Enqueued {task.name} [{getattr(result, 'id', None)}]")
    return True


class NotificationService:
    """Best-effort admin notifications."""

    @staticmethod
    def registration(
        user_id: str,
        email: str,
        company_name: str | None = None,
        business_number: str | None = None,
    ) -> bool:
        return _enqueue(
            send_registration_notification,
            user_id=str(user_id),
            email=email,
            company_name=company_name,
            business_number=business_number,
        )

    @staticmethod
    def sales_list(seller_id: str, sales_list_id: str, item_count: int) -> bool:
        return _enqueue(
            send_sales_list_notification,
            seller_id=str(seller_id),
            sales_list_id=str(sales_list_id),
            item_count=item_count,
        )

    @staticmethod
    def purchase_request(
        purchase_request_id: str,
        buyer_id: str,
        product_name: str,
        quantity: int,
        total_price: float,
        commission: float | None = None,
        **extra: Any,
    ) -> bool:
        """
        Extra keyword arguments (buyer_company_name, seller_id,
        seller_company_name) are passed through to the task.
        """
        return _enqueue(
            send_purchase_request_notification,
            purchase_request_id=str(purchase_request_id),
            buyer_id=str(buyer_id),
            product_name=product_name,
            quantity=quantity,
            total_price=float(total_price),
            commission=commission,
            **extra,
        )

    @staticmethod
    def inventory_analysis(
        user_id: str,
        statistics: dict[str, Any],
        period: str | None = None,
        expiring_count: int | None = None,
        dead_stock_count: int | None = None,
    ) -> bool:
        return _enqueue(
            send_inventory_analysis_notification,
            user_id=str(user_id),
            statistics=statistics,
            period=period,
            expiring_count=expiring_count,
            dead_stock_count=dead_stock_count,
        )
