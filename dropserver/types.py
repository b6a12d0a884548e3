"""Drop server data type definitions."""

import enum
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FileEntry:
    """
    A stored file as seen by viewers. Identity is the on-disk name.
    """
    name: str
    size: int
    modified_at: datetime


class TunnelStatus(str, enum.Enum):
    DISABLED = "disabled"
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
