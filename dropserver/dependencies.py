"""FastAPI dependencies resolving the per-application services from app.state."""

from fastapi import Request

from dropserver.bridge import TunnelBridge
from dropserver.services import ShutdownService, StorageService, UploadService
from dropserver.tunnel import TunnelSupervisor


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def get_shutdown_service(request: Request) -> ShutdownService:
    return request.app.state.shutdown_service


def get_tunnel(request: Request) -> TunnelSupervisor:
    return request.app.state.tunnel


def get_bridge(request: Request) -> TunnelBridge:
    return request.app.state.bridge
