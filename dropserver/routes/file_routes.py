"""File listing, upload and download API routes."""

from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from starlette.datastructures import UploadFile

from common.constants import MAX_UPLOAD_BYTES, MULTIPART_OVERHEAD_BYTES
from dropserver.admin import is_admin_request
from dropserver.dependencies import get_storage_service, get_tunnel, get_upload_service
from dropserver.exceptions import InvalidArgumentError
from dropserver.schemas.files import (
    BatchUploadResponse,
    FileEntryResponse,
    StatusResponse,
    UploadResponse
)
from dropserver.services import StorageService, UploadService
from dropserver.storage import resolve_stored_file
from dropserver.tunnel import TunnelSupervisor

router = APIRouter(tags=["Files"])


@router.get("/api/status", response_model=StatusResponse)
async def get_status(
    request: Request,
    storage_service: StorageService = Depends(get_storage_service),
    tunnel: TunnelSupervisor = Depends(get_tunnel)
):
    """
    Report whether storage is set, whether the caller is the operator,
    the current file list and the public tunnel URL if one is known.
    """
    return StatusResponse(
        storage_configured=storage_service.configured,
        is_admin=is_admin_request(request),
        files=[FileEntryResponse.from_entry(entry) for entry in storage_service.list_files()],
        tunnel_url=tunnel.public_url,
    )


@router.get("/api/files", response_model=List[FileEntryResponse])
async def list_files(storage_service: StorageService = Depends(get_storage_service)):
    """
    List stored files, newest first.

    Raises:
        - 400: Storage not configured
    """
    storage_service.require_session()
    return [FileEntryResponse.from_entry(entry) for entry in storage_service.list_files()]


def _reject_oversized(request: Request) -> None:
    """
    Raises:
        InvalidArgumentError: If the declared body cannot hold a file under the ceiling
    """
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_UPLOAD_BYTES + MULTIPART_OVERHEAD_BYTES:
        raise InvalidArgumentError(f"Upload exceeds the {MAX_UPLOAD_BYTES} byte limit")


def _uploads_in(form, field: str) -> List[UploadFile]:
    uploads = [item for item in form.getlist(field) if isinstance(item, UploadFile)]
    if not uploads:
        raise InvalidArgumentError(f"No file in multipart field '{field}'")
    return uploads


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    request: Request,
    storage_service: StorageService = Depends(get_storage_service),
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Upload one file (multipart field 'file').

    The file is stored as <epochMillis>-<filename>. Storage and the
    declared length are checked before the body is read.

    Raises:
        - 400: Storage not configured, missing or unusable file, or too large
        - 500: Write failure
    """
    storage_service.require_session()
    _reject_oversized(request)

    async with request.form() as form:
        entry = await upload_service.ingest_one(_uploads_in(form, "file")[0])
    return UploadResponse(file=FileEntryResponse.from_entry(entry))


@router.post("/api/upload", response_model=BatchUploadResponse)
async def upload_files(
    request: Request,
    storage_service: StorageService = Depends(get_storage_service),
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Upload several files (multipart field 'files'), kept in arrival order.

    Raises:
        - 400: Storage not configured, missing or unusable file, or too large
        - 500: Write failure
    """
    storage_service.require_session()

    async with request.form() as form:
        entries = await upload_service.ingest_many(_uploads_in(form, "files"))
    return BatchUploadResponse(files=[FileEntryResponse.from_entry(entry) for entry in entries])


def _download(storage_service: StorageService, filename: str) -> FileResponse:
    session = storage_service.require_session()
    path = resolve_stored_file(session.luutam_path, filename)
    return FileResponse(path, filename=path.name, media_type="application/octet-stream")


@router.get("/api/download/{filename}")
async def download_file(
    filename: str,
    storage_service: StorageService = Depends(get_storage_service)
):
    """
    Download a stored file as an attachment.

    Raises:
        - 400: Storage not configured
        - 404: File not found
    """
    return _download(storage_service, filename)


@router.get("/files/{filename}")
async def get_file(
    filename: str,
    storage_service: StorageService = Depends(get_storage_service)
):
    """Same as /api/download/{filename}."""
    return _download(storage_service, filename)
