# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness and readiness probes for load balancers.
#
# /health/ready touches the profiles table and confirms the documents bucket
# exists. A failing check makes the API "degraded" but still answers 200 so
# the probe output can be read.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, str]
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_database() -> None:
    SupabaseClient.get_client().table("profiles").select("id").limit(1).execute()


def _check_documents_bucket() -> None:
    buckets = SupabaseClient.get_client().storage.list_buckets() or []
    names = {getattr(bucket, "name", None) or getattr(bucket, "id", None) for bucket in buckets}
    if settings.DOCUMENTS_BUCKET not in names:
        raise LookupError(f"bucket '{settings.DOCUMENTS_BUCKET}' not found")


READINESS_CHECKS: dict[str, Callable[[], None]] = {
    "database": _check_database,
    "storage": _check_documents_bucket,
}


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Process is up; no dependencies are touched."""
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """Run every readiness check and report each result."""
    checks: dict[str, str] = {}
    for name, check in READINESS_CHECKS.items():
        try:
            check()
            checks[name] = "healthy"
        except Exception as e:
            logger.warning(f"Readiness check '{name}' failed: {e}")
            checks[name] = f"unhealthy: {str(e)[:80]}"

    ready = all(result == "healthy" for result in checks.values())
    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live")
async def liveness_check():
    return {"status": "alive", "timestamp": _now()}
