"""Publish/subscribe fan-out of live events to connected viewers."""

import asyncio
import itertools
from typing import List, Optional, Set

from common.logging_config import get_logger
from dropserver.config import VIEWER_QUEUE_SIZE
from dropserver.events import LiveEvent

logger = get_logger(__name__)

_viewer_ids = itertools.count(1)


class Viewer:
    """
    One connected viewer: a bounded queue of pending events.

    The hub pushes without waiting; the connection's pump drains the
    queue at the viewer's own pace.
    """

    def __init__(self, max_pending: int = VIEWER_QUEUE_SIZE):
        self.viewer_id = next(_viewer_ids)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def push(self, event: LiveEvent) -> bool:
        """Enqueue an event. Returns False if the viewer is closed or full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def next_event(self) -> Optional[LiveEvent]:
        """Wait for the next event; None once the viewer has been closed."""
        event = await self._queue.get()
        if event is None:
            return None
        return event

    def pending(self) -> List[LiveEvent]:
        """Drain and return everything queued so far without waiting."""
        events = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is not None:
                events.append(event)
        return events

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Discard the backlog so the close marker always fits.
        discarded = self.pending()
        if discarded:
            logger.debug(f"Viewer {self.viewer_id} closed with {len(discarded)} undelivered events")
        self._queue.put_nowait(None)


class BroadcastHub:
    """
    Set of attached viewers. publish() never blocks: a viewer whose queue
    is full is dropped and closed, the others are unaffected.
    """

    def __init__(self, max_pending: int = VIEWER_QUEUE_SIZE):
        self.max_pending = max_pending
        self._viewers: Set[Viewer] = set()

    def open_viewer(self) -> Viewer:
        return Viewer(self.max_pending)

    def attach(self, viewer: Viewer) -> None:
        self._viewers.add(viewer)
        logger.info(f"Viewer {viewer.viewer_id} connected ({len(self._viewers)} total)")

    def detach(self, viewer: Viewer) -> None:
        if viewer in self._viewers:
            self._viewers.discard(viewer)
            logger.info(f"Viewer {viewer.viewer_id} disconnected ({len(self._viewers)} total)")

    def publish(self, event: LiveEvent) -> int:
        """
        Deliver an event to every attached viewer.

        Returns:
            Number of viewers the event was queued for
        """
        delivered = 0
        for viewer in list(self._viewers):
            if viewer.push(event):
                delivered += 1
                continue
            logger.warning(f"Dropping viewer {viewer.viewer_id}: event backlog full")
            self.detach(viewer)
            viewer.close()
        return delivered

    @property
    def viewer_count(self) -> int:
        return len(self._viewers)
