"""Entry point for the drop server."""

import asyncio
import time
import uuid
from pathlib import Path
from typing import Callable, Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import FileResponse, JSONResponse

from common.logging_config import setup_logging
from common.network import get_network_ip
from dropserver.bridge import TunnelBridge
from dropserver.broadcast import BroadcastHub
from dropserver.config import (
    CLOUDFLARED_BIN,
    DROP_HOST,
    DROP_PORT,
    SHUTDOWN_GRACE_SECONDS,
    STATIC_DIR,
    TUNNEL_ENABLED,
    TUNNEL_STOP_TIMEOUT_SECONDS,
    VIEWER_QUEUE_SIZE
)
from dropserver.exceptions import (
    DropException,
    InvalidArgumentError,
    NotConfiguredError,
    ForbiddenError,
    StorageError,
    NotFoundError,
    BridgeUnavailableError
)
from dropserver.routes import admin_router, bridge_router, file_router, live_router
from dropserver.schemas import ErrorResponse
from dropserver.services import ShutdownService, StorageService, UploadService
from dropserver.services.shutdown_service import terminate_process
from dropserver.tunnel import TunnelSupervisor

logger = setup_logging('dropserver')


def _error_response(request: Request, exc: Exception, status_code: int, code: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if status_code >= 500:
        logger.error(message, exc_info=exc)
    else:
        logger.warning(message)
    return JSONResponse(status_code=status_code, content=ErrorResponse(detail=str(exc), code=code).model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto HTTP status codes."""

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_ARGUMENT")

    @app.exception_handler(NotConfiguredError)
    async def not_configured_handler(request: Request, exc: NotConfiguredError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "NOT_CONFIGURED")

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        return _error_response(request, exc, status.HTTP_403_FORBIDDEN, "FORBIDDEN")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "NOT_FOUND")

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "STORAGE_ERROR")

    @app.exception_handler(BridgeUnavailableError)
    async def bridge_unavailable_handler(request: Request, exc: BridgeUnavailableError):
        return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "BRIDGE_UNAVAILABLE")

    @app.exception_handler(DropException)
    async def drop_exception_handler(request: Request, exc: DropException):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")


def create_app(
    port: int = DROP_PORT,
    tunnel_enabled: bool = TUNNEL_ENABLED,
    tunnel_command: Optional[Sequence[str]] = None,
    shutdown_grace: float = SHUTDOWN_GRACE_SECONDS,
    terminate: Callable[[], None] = terminate_process,
    static_dir: Path = STATIC_DIR
) -> FastAPI:
    """
    Build the application and the services it owns.

    Each call yields an independent storage session, registry, viewer
    hub and tunnel supervisor, held on app.state.
    """
    app = FastAPI(
        title="LAN Drop",
        description="Drop files to this machine from any device on the network",
        version="1.0.0"
    )

    hub = BroadcastHub(max_pending=VIEWER_QUEUE_SIZE)
    storage_service = StorageService(hub)
    tunnel = TunnelSupervisor(
        hub,
        port=port,
        binary=CLOUDFLARED_BIN,
        enabled=tunnel_enabled,
        command=tunnel_command
    )

    app.state.hub = hub
    app.state.storage_service = storage_service
    app.state.upload_service = UploadService(storage_service)
    app.state.tunnel = tunnel
    app.state.bridge = TunnelBridge(lambda: tunnel.public_url)
    app.state.shutdown_service = ShutdownService(
        storage_service,
        tunnel,
        grace_seconds=shutdown_grace,
        terminate=terminate
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        client = request.client.host if request.client else 'unknown'
        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}] [client={client}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id
        return response

    @app.on_event("startup")
    async def startup_event():
        network_ip = get_network_ip()
        logger.info(f"Use this URL to access the admin control panel: http://localhost:{port}")
        logger.info(f"Use this URL to access from other devices on the same LAN: http://{network_ip}:{port}")

        if not await tunnel.start():
            logger.info("cloudflared not running (either not found or disabled).")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Drop server shutting down...")
        tunnel.stop()
        try:
            await asyncio.wait_for(tunnel.wait_closed(), timeout=TUNNEL_STOP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"cloudflared did not exit within {TUNNEL_STOP_TIMEOUT_SECONDS}s")
        await app.state.bridge.aclose()

    register_exception_handlers(app)

    app.include_router(file_router)
    app.include_router(admin_router)
    app.include_router(live_router)
    app.include_router(bridge_router)

    @app.get("/")
    async def root():
        """
        Serve the web UI when installed, otherwise a service banner.
        """
        index = Path(static_dir) / "index.html"
        if index.is_file():
            return FileResponse(index)
        return {"message": "LAN Drop API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Liveness check. Returns 200 if the service is up.
        """
        return {
            "status": "healthy",
            "storageConfigured": storage_service.configured,
            "viewers": hub.viewer_count,
            "tunnel": tunnel.status.value
        }

    return app


app = create_app()


def main() -> None:
    """
    Start the server with uvicorn.
    """
    uvicorn.run(app, host=DROP_HOST, port=DROP_PORT)


if __name__ == "__main__":
    main()
