"""Owner of the active storage session, its file registry, and the mutation lock."""

import asyncio
from typing import List, Optional, Sequence, Tuple

from fastapi.concurrency import run_in_threadpool

from common.logging_config import get_logger
from dropserver.broadcast import BroadcastHub, Viewer
from dropserver.events import FilesAdded, FilesReplaced
from dropserver.exceptions import NotConfiguredError, StorageError
from dropserver.registry import FileRegistry, rescan
from dropserver.storage import StorageSession, prepare_storage_root, remove_working_directory
from dropserver.types import FileEntry

logger = get_logger(__name__)


class StorageService:
    """
    Single mutator for the file registry.

    Every registry change and every viewer attachment happens under one
    asyncio.Lock, and the resulting events are published before the lock
    is released. Viewers therefore observe mutations in completion order,
    and a newly attached viewer's catch-up is never older than an event
    already sent to the others.
    """

    def __init__(self, hub: BroadcastHub):
        self.hub = hub
        self.registry = FileRegistry()
        self.session: Optional[StorageSession] = None
        self.lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return self.session is not None and self.session.configured

    def require_session(self) -> StorageSession:
        """
        Raises:
            NotConfiguredError: If storage has not been set yet
        """
        if not self.configured:
            raise NotConfiguredError("Storage not configured")
        return self.session

    def list_files(self) -> Tuple[FileEntry, ...]:
        """Current registry snapshot; empty while unconfigured."""
        return self.registry.snapshot()

    async def configure(self, path: str) -> Tuple[FileEntry, ...]:
        """
        Point storage at a new root and rebuild the registry from disk.

        Replaces any previous session. Files left under an old root are
        not touched.

        Raises:
            InvalidArgumentError: If path is empty
            StorageError: If the directories cannot be created or scanned
        """
        async with self.lock:
            session = await run_in_threadpool(prepare_storage_root, path)
            entries = await run_in_threadpool(rescan, session.luutam_path)

            previous = self.session
            self.session = session
            snapshot = self.registry.replace(entries)
            self.hub.publish(FilesReplaced(snapshot))

        if previous and previous.root_path != session.root_path:
            logger.info(f"Storage moved from {previous.root_path} to {session.root_path}")
        logger.info(f"Storage configured at {session.root_path} ({len(snapshot)} files)")
        return snapshot

    async def register_uploads(
        self,
        session: StorageSession,
        entries: Sequence[FileEntry]
    ) -> List[FileEntry]:
        """
        Insert freshly written files at the head of the registry, in
        arrival order, then publish the delta followed by the full list.

        Entries written under a session that has since been replaced are
        not registered.

        Returns:
            The entries actually registered

        Raises:
            StorageError: If a name is already registered; the registry is left unchanged
        """
        if not entries:
            return []

        async with self.lock:
            if self.session is not session:
                logger.warning(
                    f"Storage was reconfigured during upload; not registering {len(entries)} files"
                )
                return []

            try:
                self.registry.prepend(entries)
            except ValueError as e:
                raise StorageError(f"Cannot register uploads: {e}") from e

            self.hub.publish(FilesAdded(tuple(entries)))
            self.hub.publish(FilesReplaced(self.registry.snapshot()))

        logger.info(f"Registered {len(entries)} uploaded files")
        return list(entries)

    async def attach_viewer(self, viewer: Viewer) -> None:
        """
        Attach a viewer and queue its catch-up: the full list twice, as a
        'file-updated' and as a 'files-uploaded' event.
        """
        async with self.lock:
            snapshot = self.registry.snapshot()
            self.hub.attach(viewer)
            viewer.push(FilesReplaced(snapshot))
            viewer.push(FilesAdded(snapshot))

    async def teardown(self) -> None:
        """
        Delete the working directory (best-effort), drop the session and
        empty the registry.
        """
        async with self.lock:
            session = self.session
            if session is not None:
                removed = await run_in_threadpool(remove_working_directory, session)
                if not removed:
                    logger.error(f"Working directory {session.luutam_path} was not fully removed")
            self.session = None
            self.registry.clear()
            self.hub.publish(FilesReplaced(()))
