"""Tests for the push channel handler outside of a real server."""

import asyncio
from types import SimpleNamespace

import pytest
from fastapi import WebSocketDisconnect

from dropserver.broadcast import BroadcastHub
from dropserver.routes.live_routes import live_updates
from dropserver.services import StorageService


class BrokenSocket:
    """WebSocket whose sends fail, followed by a client disconnect."""

    def __init__(self, state):
        self.app = SimpleNamespace(state=state)
        self.send_failed = asyncio.Event()
        self.sent = []

    async def accept(self):
        pass

    async def send_json(self, data):
        self.sent.append(data)
        self.send_failed.set()
        raise ConnectionResetError('peer went away')

    async def receive_text(self):
        await self.send_failed.wait()
        raise WebSocketDisconnect(code=1006)

    async def close(self):
        pass


class TestLiveUpdates:

    @pytest.mark.asyncio
    async def test_send_failure_then_disconnect(self):
        hub = BroadcastHub()
        state = SimpleNamespace(
            hub=hub,
            storage_service=StorageService(hub),
            tunnel=SimpleNamespace(public_url=None)
        )
        websocket = BrokenSocket(state)

        await asyncio.wait_for(live_updates(websocket), timeout=5)

        assert websocket.sent == [{'event': 'file-updated', 'data': []}]
        assert hub.viewer_count == 0
