"""Configuration settings for the drop server."""

import os
from pathlib import Path

from common.constants import DEFAULT_PORT


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


DROP_HOST = os.environ.get("DROP_HOST", "0.0.0.0")

DROP_PORT = int(os.environ.get("DROP_PORT", str(DEFAULT_PORT)))

TUNNEL_ENABLED = not _env_flag("DISABLE_CLOUDFLARED")

CLOUDFLARED_BIN = os.environ.get("CLOUDFLARED_BIN", "cloudflared")

SHUTDOWN_GRACE_SECONDS = float(os.environ.get("DROP_SHUTDOWN_GRACE_SECONDS", "1.0"))

VIEWER_QUEUE_SIZE = int(os.environ.get("DROP_VIEWER_QUEUE_SIZE", "256"))

TUNNEL_STOP_TIMEOUT_SECONDS = float(os.environ.get("DROP_TUNNEL_STOP_TIMEOUT_SECONDS", "5.0"))

STATIC_DIR = Path(os.environ.get("DROP_STATIC_DIR", Path(__file__).resolve().parent.parent / "public"))
