"""API routes package."""

from dropserver.routes.admin_routes import router as admin_router
from dropserver.routes.bridge_routes import router as bridge_router
from dropserver.routes.file_routes import router as file_router
from dropserver.routes.live_routes import router as live_router

__all__ = ["admin_router", "bridge_router", "file_router", "live_router"]
