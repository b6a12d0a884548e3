"""One-way shutdown: acknowledge, wait a grace period, clean up, exit."""

import asyncio
import os
import signal
from typing import Callable, Optional

from common.logging_config import get_logger
from dropserver.services.storage_service import StorageService
from dropserver.tunnel import TunnelSupervisor

logger = get_logger(__name__)


def terminate_process() -> None:
    """Ask the ASGI server to exit the way Ctrl+C would."""
    os.kill(os.getpid(), signal.SIGTERM)


class ShutdownService:
    """
    Schedules the terminal teardown once. The timer is not cancellable;
    later requests while it is pending are acknowledged and ignored.
    """

    def __init__(
        self,
        storage_service: StorageService,
        tunnel: TunnelSupervisor,
        grace_seconds: float,
        terminate: Callable[[], None] = terminate_process
    ):
        self.storage_service = storage_service
        self.tunnel = tunnel
        self.grace_seconds = grace_seconds
        self.terminate = terminate
        self._task: Optional[asyncio.Task] = None

    @property
    def scheduled(self) -> bool:
        return self._task is not None

    def schedule(self) -> bool:
        """
        Start the shutdown timer.

        Returns:
            False if a shutdown was already scheduled
        """
        if self._task is not None:
            logger.info("Shutdown already in progress")
            return False

        logger.warning(f"Shutdown requested; exiting in {self.grace_seconds}s")
        self._task = asyncio.create_task(self._run())
        return True

    async def _run(self) -> None:
        await asyncio.sleep(self.grace_seconds)

        try:
            await self.storage_service.teardown()
        except Exception as e:
            logger.error(f"Error deleting files: {e}", exc_info=True)

        self.tunnel.stop()
        logger.info("Shutdown cleanup complete, terminating")
        self.terminate()
