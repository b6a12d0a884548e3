"""Upload ingestion: persist incoming streams and register the results."""

from typing import List, Sequence

from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from common.constants import MAX_UPLOAD_BYTES
from common.logging_config import get_logger
from dropserver.exceptions import InvalidArgumentError, StorageError
from dropserver.registry import stat_entry
from dropserver.services.storage_service import StorageService
from dropserver.storage import StorageSession, clean_upload_name, write_upload
from dropserver.types import FileEntry

logger = get_logger(__name__)


class UploadService:
    """
    Writes uploads to the storage working directory.

    Disk writes run in the threadpool without holding the registry lock,
    so independent requests proceed in parallel; only the registration
    step is serialized. Bodies are not checksummed: a truncated stream is
    stored as-is.
    """

    def __init__(self, storage_service: StorageService):
        self.storage_service = storage_service

    async def ingest_one(self, upload: UploadFile) -> FileEntry:
        """
        Persist a single upload and register it.

        Raises:
            NotConfiguredError: If storage has not been set
            InvalidArgumentError: If the upload has no usable name or is too large
            StorageError: If the write fails
        """
        entries = await self.ingest_many([upload])
        return entries[0]

    async def ingest_many(self, uploads: Sequence[UploadFile]) -> List[FileEntry]:
        """
        Persist uploads in arrival order and register them together.

        If a file fails, the files already written are still registered
        and the error is raised afterwards; the failed file is not.

        Raises:
            NotConfiguredError: If storage has not been set
            InvalidArgumentError: If an upload has no usable name or is too large
            StorageError: If a write fails, or storage moved before registration
        """
        session = self.storage_service.require_session()

        written: List[FileEntry] = []
        failure = None
        for upload in uploads:
            try:
                written.append(await self._persist(session, upload))
            except (InvalidArgumentError, StorageError) as e:
                logger.error(f"Upload failed for {upload.filename!r}: {e}")
                failure = e
                break

        registered = await self.storage_service.register_uploads(session, written)

        if failure is not None:
            raise failure
        if len(registered) != len(written):
            raise StorageError("Storage was reconfigured during upload; files were not registered")
        return registered

    async def _persist(self, session: StorageSession, upload: UploadFile) -> FileEntry:
        original_name = clean_upload_name(upload.filename)
        if upload.size is not None and upload.size > MAX_UPLOAD_BYTES:
            raise InvalidArgumentError(f"{original_name} exceeds the {MAX_UPLOAD_BYTES} byte limit")

        await upload.seek(0)
        path = await run_in_threadpool(write_upload, session.luutam_path, original_name, upload.file)
        try:
            entry = await run_in_threadpool(stat_entry, path)
        except OSError as e:
            raise StorageError(f"Cannot stat {path.name} after writing: {e}") from e

        logger.info(f"Stored upload {entry.name} ({entry.size} bytes)")
        return entry
