"""Operator-only API routes: storage configuration and shutdown."""

from typing import Optional

from fastapi import APIRouter, Depends

from dropserver.admin import require_admin
from dropserver.dependencies import get_shutdown_service, get_storage_service
from dropserver.exceptions import InvalidArgumentError
from dropserver.schemas.files import FileEntryResponse
from dropserver.schemas.storage import SetStorageRequest, SetStorageResponse, ShutdownResponse
from dropserver.services import ShutdownService, StorageService

router = APIRouter(prefix="/api", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.post("/set-storage", response_model=SetStorageResponse)
async def set_storage(
    request: Optional[SetStorageRequest] = None,
    storage_service: StorageService = Depends(get_storage_service)
):
    """
    Set the storage root and rebuild the file list from disk.

    Parameters:
        - path: Storage root; created along with its 'luutam' subdirectory if absent

    Raises:
        - 400: Path missing
        - 403: Caller is not on this host
        - 500: Directory could not be created or read
    """
    if request is None or not request.path:
        raise InvalidArgumentError("Path is required")

    files = await storage_service.configure(request.path)
    return SetStorageResponse(files=[FileEntryResponse.from_entry(entry) for entry in files])


@router.post("/shutdown", response_model=ShutdownResponse)
async def shutdown(shutdown_service: ShutdownService = Depends(get_shutdown_service)):
    """
    Acknowledge immediately, then after the grace period delete the
    working directory, stop the tunnel and exit the process.

    Raises:
        - 403: Caller is not on this host
    """
    shutdown_service.schedule()
    return ShutdownResponse()
