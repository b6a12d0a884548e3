"""Live events pushed to viewers.

A closed set of variants, each with a fixed wire name and payload shape:

    FilesReplaced  -> "file-updated"        list of entries (full registry)
    FilesAdded     -> "files-uploaded"      list of entries (just added)
    TunnelAvailable -> "cloudflare-url"     public URL string
    TunnelStopped  -> "cloudflare-stopped"  {"code": int|None, "signal": str|None}
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from dropserver.schemas.files import serialize_entries
from dropserver.types import FileEntry


@dataclass(frozen=True)
class FilesReplaced:
    files: Tuple[FileEntry, ...]

    event_name: ClassVar[str] = "file-updated"

    def payload(self) -> Any:
        return serialize_entries(self.files)


@dataclass(frozen=True)
class FilesAdded:
    files: Tuple[FileEntry, ...]

    event_name: ClassVar[str] = "files-uploaded"

    def payload(self) -> Any:
        return serialize_entries(self.files)


@dataclass(frozen=True)
class TunnelAvailable:
    url: str

    event_name: ClassVar[str] = "cloudflare-url"

    def payload(self) -> Any:
        return self.url


@dataclass(frozen=True)
class TunnelStopped:
    code: Optional[int]
    signal: Optional[str]

    event_name: ClassVar[str] = "cloudflare-stopped"

    def payload(self) -> Any:
        return {"code": self.code, "signal": self.signal}


LiveEvent = Union[FilesReplaced, FilesAdded, TunnelAvailable, TunnelStopped]


def to_message(event: LiveEvent) -> Dict[str, Any]:
    """Render an event as the JSON object sent over the push channel."""
    return {"event": event.event_name, "data": event.payload()}
