# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles uploads of member documents (wholesale license and business
# registration) to the private documents bucket.
# =============================================================================

import logging
import mimetypes
import time
from uuid import UUID

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def file_extension(filename: str) -> str:
    """Lowercase extension with the dot ("" when there is none)."""
    return "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def check_upload(filename: str, content: bytes, allowed_extensions: list[str]) -> str:
    """
    Validate an uploaded file's extension and size.

    Returns:
        The file extension

    Raises:
        InvalidFileTypeError: Extension not in allowed_extensions
        FileTooLargeError: Larger than MAX_UPLOAD_SIZE_MB
    """
    ext = file_extension(filename)
    if ext not in allowed_extensions:
        raise InvalidFileTypeError(filename, allowed_extensions)

    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

    return ext


class StorageService:
    """
    Service for Supabase Storage operations.

    Documents live at {user_id}/{kind}_{timestamp}{ext} in DOCUMENTS_BUCKET.
    """

    @staticmethod
    def document_path(user_id: str | UUID, kind: str, filename: str, timestamp: int | None = None) -> str:
        """Storage path for a member document, e.g. <uid>/license_1735689600000.pdf"""
        timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
        return f"{user_id}/{kind}_{timestamp}{file_extension(filename)}"

    @staticmethod
    def upload_document(path: str, content: bytes, filename: str) -> str:
        """
        Upload a document to the documents bucket.

        Args:
            path: Storage path within the bucket
            content: File bytes
            filename: Original filename (for the content type)

        Returns:
            Storage path where the file was uploaded

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        try:
            client.storage.from_(settings.DOCUMENTS_BUCKET).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"Storage upload failed for {path}: {e}")
            raise StorageUploadError(str(e))

        logger.info(f"Uploaded document to storage: {path} ({len(content)} bytes)")
        return path

    @staticmethod
    def upload_member_documents(
        user_id: str | UUID,
        license_file: tuple[str, bytes],
        business_file: tuple[str, bytes],
    ) -> dict[str, str]:
        """
        Validate and upload a member's license and business registration.

        Args:
            user_id: Owner of the documents
            license_file: (filename, content) of the wholesale license
            business_file: (filename, content) of the business registration

        Returns:
            Dict with licensePath and businessPath

        Raises:
            InvalidFileTypeError, FileTooLargeError: Validation failed
            StorageUploadError: An upload failed
        """
        allowed = settings.allowed_document_extensions_list
        for filename, content in (license_file, business_file):
            check_upload(filename, content, allowed)

        timestamp = int(time.time() * 1000)
        license_path = StorageService.upload_document(
            StorageService.document_path(user_id, "license", license_file[0], timestamp),
            license_file[1],
            license_file[0],
        )
        business_path = StorageService.upload_document(
            StorageService.document_path(user_id, "business", business_file[0], timestamp),
            business_file[1],
            business_file[0],
        )
        return {"licensePath": license_path, "businessPath": business_path}
