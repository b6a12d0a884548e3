"""Push channel: a WebSocket delivering live events to each viewer."""

import asyncio
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from common.logging_config import get_logger
from dropserver.broadcast import Viewer
from dropserver.events import TunnelAvailable, to_message

logger = get_logger(__name__)

router = APIRouter(tags=["Live"])


async def _pump(websocket: WebSocket, viewer: Viewer) -> None:
    """Forward queued events until the viewer is closed or the send fails."""
    while True:
        event = await viewer.next_event()
        if event is None:
            with suppress(RuntimeError):
                await websocket.close()
            return
        try:
            await websocket.send_json(to_message(event))
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info(f"Viewer {viewer.viewer_id} send failed: {e}")
            return


@router.websocket("/ws")
async def live_updates(websocket: WebSocket):
    """
    On connect the viewer receives the full file list (as 'file-updated'
    and again as 'files-uploaded'), then the public URL if one is known,
    then every later event. Client messages are ignored.
    """
    state = websocket.app.state
    hub = state.hub

    await websocket.accept()
    viewer = hub.open_viewer()
    await state.storage_service.attach_viewer(viewer)

    public_url = state.tunnel.public_url
    if public_url:
        viewer.push(TunnelAvailable(public_url))

    sender = asyncio.create_task(_pump(websocket, viewer))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.detach(viewer)
        viewer.close()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.info(f"Viewer {viewer.viewer_id} sender ended with {type(e).__name__}: {e}")
