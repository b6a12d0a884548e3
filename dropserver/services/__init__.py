"""Service layer for business logic."""

from dropserver.services.storage_service import StorageService
from dropserver.services.upload_service import UploadService
from dropserver.services.shutdown_service import ShutdownService

__all__ = [
    "StorageService",
    "UploadService",
    "ShutdownService",
]
