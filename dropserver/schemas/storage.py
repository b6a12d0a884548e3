"""Pydantic schemas for operator endpoints."""

from typing import List, Optional

from pydantic import BaseModel

from dropserver.schemas.files import FileEntryResponse


class SetStorageRequest(BaseModel):
    """Request model for setting the storage root."""
    path: Optional[str] = None


class SetStorageResponse(BaseModel):
    """Response model for setting the storage root."""
    success: bool = True
    files: List[FileEntryResponse]


class ShutdownResponse(BaseModel):
    """Response model for shutdown acknowledgement."""
    success: bool = True
