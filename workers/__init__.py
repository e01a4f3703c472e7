# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background notification delivery.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (admin notification emails)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info
#
#   # Or use the script
#   python scripts/start_worker.py
#
#   # Submit task (from API code, see NotificationService)
#   from workers.tasks import send_sales_list_notification
#   send_sales_list_notification.delay(seller_id, sales_list_id, item_count)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
