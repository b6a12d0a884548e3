"""Request-forwarding bridge from /bridge to the discovered public tunnel URL."""

from typing import Callable, Optional

import httpx
from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from common.logging_config import get_logger
from dropserver.exceptions import BridgeUnavailableError

logger = get_logger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}


def _forwardable(headers, drop=()) -> dict:
    return {
        key: value
        for key, value in headers.items()
        if key.lower() not in HOP_BY_HOP_HEADERS and key.lower() not in drop
    }


class TunnelBridge:
    """
    Relays requests to the current upstream URL.

    The upstream is read on every request, so the bridge goes inert by
    itself when the tunnel exits and the URL is cleared.
    """

    def __init__(
        self,
        target: Callable[[], Optional[str]],
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._target = target
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=None,
                verify=False,
                follow_redirects=False
            )
        return self._client

    def upstream_url(self, path: str, query: str) -> str:
        """
        Raises:
            BridgeUnavailableError: If no public URL is known
        """
        base = self._target()
        if not base:
            raise BridgeUnavailableError("Tunnel URL not available")
        url = f"{base.rstrip('/')}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{query}"
        return url

    async def forward(self, request: Request, path: str) -> StreamingResponse:
        """
        Relay one request upstream and stream the response back.

        Raises:
            BridgeUnavailableError: If no URL is known or the upstream is unreachable
        """
        url = self.upstream_url(path, request.url.query)

        has_body = "content-length" in request.headers or "transfer-encoding" in request.headers
        upstream_request = self.client.build_request(
            request.method,
            url,
            headers=_forwardable(request.headers, drop={"host", "content-length"}),
            content=request.stream() if has_body else None
        )

        try:
            upstream = await self.client.send(upstream_request, stream=True)
        except httpx.HTTPError as e:
            logger.warning(f"Bridge request to {url} failed: {e}")
            raise BridgeUnavailableError(f"Upstream unreachable: {e}") from e

        logger.debug(f"Bridged {request.method} /{path} -> {url} [{upstream.status_code}]")
        return StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            headers=_forwardable(upstream.headers),
            background=BackgroundTask(upstream.aclose)
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
