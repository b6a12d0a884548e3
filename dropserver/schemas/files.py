"""Pydantic schemas for file endpoints and live events."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from dropserver.types import FileEntry


class FileEntryResponse(BaseModel):
    """A stored file as sent to viewers."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int
    modified_at: str = Field(alias="modifiedAt")
    time: str

    @classmethod
    def from_entry(cls, entry: FileEntry) -> "FileEntryResponse":
        return cls(
            name=entry.name,
            size=entry.size,
            modified_at=entry.modified_at.isoformat(),
            time=entry.modified_at.astimezone().strftime("%H:%M:%S"),
        )


def serialize_entries(entries) -> List[dict]:
    """Render entries as JSON-ready dicts in registry order."""
    return [FileEntryResponse.from_entry(entry).model_dump(by_alias=True) for entry in entries]


class StatusResponse(BaseModel):
    """Response model for /api/status."""
    model_config = ConfigDict(populate_by_name=True)

    storage_configured: bool = Field(alias="storageConfigured")
    is_admin: bool = Field(alias="isAdmin")
    files: List[FileEntryResponse]
    tunnel_url: str | None = Field(default=None, alias="tunnelUrl")


class UploadResponse(BaseModel):
    """Response model for single-file upload."""
    success: bool = True
    file: FileEntryResponse


class BatchUploadResponse(BaseModel):
    """Response model for multi-file upload."""
    success: bool = True
    files: List[FileEntryResponse]
