"""Bridge route relaying /bridge/* to the public tunnel URL."""

from fastapi import APIRouter, Depends, Request

from dropserver.bridge import TunnelBridge
from dropserver.dependencies import get_bridge

router = APIRouter(prefix="/bridge", tags=["Bridge"])

BRIDGE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("", methods=BRIDGE_METHODS, include_in_schema=False)
@router.api_route("/{path:path}", methods=BRIDGE_METHODS, include_in_schema=False)
async def bridge(request: Request, path: str = "", bridge: TunnelBridge = Depends(get_bridge)):
    """
    Relay the request to <publicUrl>/<path>.

    Raises:
        - 503: No public URL discovered yet, or upstream unreachable
    """
    return await bridge.forward(request, path)
