# =============================================================================
# app/routers/documents.py - Member Document Uploads
# =============================================================================
# Wholesale license and business registration uploaded at signup for the
# admin's license verification.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, File, UploadFile

from app.dependencies import CurrentUser
from app.responses import success_response
from core.services.storage_service import StorageService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def upload_documents(
    user: CurrentUser,
    license_file: Annotated[UploadFile, File(alias="licenseFile", description="Wholesale license")],
    business_file: Annotated[UploadFile, File(alias="businessFile", description="Business registration")],
):
    """
    Upload the caller's license and business registration documents.

    Accepts PDF and image files up to MAX_UPLOAD_SIZE_MB each.
    """
    paths = StorageService.upload_member_documents(
        user.id,
        (license_file.filename or "license", await license_file.read()),
        (business_file.filename or "business", await business_file.read()),
    )
    logger.info(f"Uploaded documents for {user.id}")
    return success_response(paths, "Documents uploaded")
