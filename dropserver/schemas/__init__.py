"""Pydantic schemas for API requests and responses."""

from dropserver.schemas.files import (
    FileEntryResponse,
    StatusResponse,
    UploadResponse,
    BatchUploadResponse,
    serialize_entries
)
from dropserver.schemas.storage import (
    SetStorageRequest,
    SetStorageResponse,
    ShutdownResponse
)
from dropserver.schemas.common import ErrorResponse

__all__ = [
    "FileEntryResponse",
    "StatusResponse",
    "UploadResponse",
    "BatchUploadResponse",
    "serialize_entries",
    "SetStorageRequest",
    "SetStorageResponse",
    "ShutdownResponse",
    "ErrorResponse"
]
