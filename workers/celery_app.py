# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# The notification worker. The API enqueues send_* tasks here through
# core.services.notification_service; nothing reads task results back.
#
# Usage:
#   celery -A workers.celery_app worker -Q default,notifications --loglevel=info
#   celery -A workers.celery_app inspect registered
# =============================================================================

import logging
import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, task_retry
from dotenv import load_dotenv

from app.config import settings

load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def broker_host(url: str) -> str:
    """Broker URL without credentials, for logs."""
    return url.rsplit("@", 1)[-1]


def create_celery_app() -> Celery:
    app = Celery(
        "marketplace_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")

    mode = "eager" if app.conf.task_always_eager else "broker"
    logger.info(f"Notification worker configured ({mode}): {broker_host(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Task lifecycle logging
# =============================================================================

@task_prerun.connect
def on_task_start(sender=None, task_id=None, task=None, **extra):
    logger.debug(f"Notification task started: {task.name} [{task_id}]")


@task_postrun.connect
def on_task_done(sender=None, task_id=None, task=None, state=None, **extra):
    logger.info(f"Notification task {state}: {task.name} [{task_id}]")


@task_retry.connect
def on_task_retry(sender=None, request=None, reason=None, **extra):
    logger.warning(f"Retrying {sender.name} [{request.id}]: {reason}")


@task_failure.connect
def on_task_failure(sender=None, task_id=None, exception=None, **extra):
    # The request that triggered the email has already succeeded
    logger.error(f"Notification dropped: {sender.name} [{task_id}] - {exception}")


if __name__ == "__main__":
    celery_app.start()
