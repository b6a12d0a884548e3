"""In-memory ordered registry of stored files, and the directory rescan that rebuilds it."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Tuple

from common.logging_config import get_logger
from dropserver.exceptions import StorageError
from dropserver.types import FileEntry

logger = get_logger(__name__)


def stat_entry(path: Path) -> FileEntry:
    """
    Build a FileEntry from a file on disk.

    Raises:
        FileNotFoundError: If the file vanished
        OSError: If stat fails for another reason
    """
    st = path.stat()
    return FileEntry(
        name=path.name,
        size=st.st_size,
        modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )


def rescan(luutam_path: Path) -> List[FileEntry]:
    """
    List regular files directly under luutam_path, newest first.

    A file removed between listing and stat is skipped rather than
    failing the whole scan.

    Args:
        luutam_path: Storage working directory

    Returns:
        Entries sorted by descending modification time

    Raises:
        StorageError: If the directory cannot be listed or a file cannot be stat'ed
    """
    try:
        children = list(luutam_path.iterdir())
    except OSError as e:
        raise StorageError(f"Cannot list {luutam_path}: {e}") from e

    entries = []
    for child in children:
        try:
            if not child.is_file():
                continue
            entries.append(stat_entry(child))
        except FileNotFoundError:
            logger.warning(f"Skipping {child.name}: removed during rescan")
        except OSError as e:
            raise StorageError(f"Cannot stat {child}: {e}") from e

    entries.sort(key=lambda entry: entry.modified_at, reverse=True)
    logger.info(f"Rescanned {luutam_path}: {len(entries)} files")
    return entries


class FileRegistry:
    """
    Ordered sequence of FileEntry, newest first, with unique names.

    Every mutation swaps in a new tuple, so a reader holding the result
    of snapshot() is never affected by later mutations. The registry
    itself is not locked; StorageService serializes mutators.
    """

    def __init__(self):
        self._entries: Tuple[FileEntry, ...] = ()

    def snapshot(self) -> Tuple[FileEntry, ...]:
        return self._entries

    def replace(self, entries: Iterable[FileEntry]) -> Tuple[FileEntry, ...]:
        """Replace the whole registry (used after a full rescan)."""
        entries = tuple(entries)
        names = [entry.name for entry in entries]
        if len(set(names)) != len(names):
            raise ValueError("Registry entries must have unique names")
        self._entries = entries
        return self._entries

    def insert_at_head(self, entry: FileEntry) -> Tuple[FileEntry, ...]:
        """
        Prepend a freshly written file.

        Raises:
            ValueError: If an entry with the same name is already registered
        """
        return self.prepend([entry])

    def prepend(self, entries: Iterable[FileEntry]) -> Tuple[FileEntry, ...]:
        """
        Insert a batch at the head as if each were inserted in order, so
        the last one ends up first. Nothing changes if any name clashes.

        Raises:
            ValueError: If a name is already registered or repeated in the batch
        """
        entries = tuple(entries)
        names = [entry.name for entry in entries]
        clashes = [name for name in names if name in self]
        if clashes or len(set(names)) != len(names):
            raise ValueError(f"Files already registered: {clashes or names}")
        self._entries = tuple(reversed(entries)) + self._entries
        return self._entries

    def clear(self) -> None:
        self._entries = ()

    def __contains__(self, name: str) -> bool:
        return any(entry.name == name for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
