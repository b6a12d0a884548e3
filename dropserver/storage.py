"""Manages the storage root on disk: layout, uploaded file writes, lookup and removal."""

import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from common.constants import STORAGE_SUBDIR, STREAM_PIECE_SIZE
from common.logging_config import get_logger
from dropserver.exceptions import InvalidArgumentError, NotFoundError, StorageError

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageSession:
    """
    The active storage root. At most one is live per process.
    """
    root_path: Path
    luutam_path: Path
    configured: bool = True


def prepare_storage_root(path: str) -> StorageSession:
    """
    Create the storage root and its working subdirectory if absent.

    Args:
        path: Operator-supplied storage root

    Returns:
        Configured StorageSession for the root

    Raises:
        InvalidArgumentError: If path is empty
        StorageError: If either directory cannot be created
    """
    if not path or not path.strip():
        raise InvalidArgumentError("Path is required")

    root = Path(path).expanduser()
    luutam = root / STORAGE_SUBDIR
    try:
        root.mkdir(parents=True, exist_ok=True)
        luutam.mkdir(exist_ok=True)
    except OSError as e:
        raise StorageError(f"Cannot prepare storage at {root}: {e}") from e

    return StorageSession(root_path=root, luutam_path=luutam)


def clean_upload_name(filename: Optional[str]) -> str:
    """
    Reduce a client-supplied filename to its final path component.

    Raises:
        InvalidArgumentError: If nothing usable remains
    """
    name = (filename or "").replace("\\", "/").split("/")[-1].strip()
    if name in ("", ".", ".."):
        raise InvalidArgumentError("Uploaded file has no usable name")
    return name


def write_upload(luutam_path: Path, original_name: str, source: BinaryIO) -> Path:
    """
    Copy an incoming stream to <epochMillis>-<original_name>.

    If that name is taken the millisecond prefix is advanced until a free
    name is found. A failed write removes the partial file.

    Args:
        luutam_path: Storage working directory
        original_name: Cleaned client filename
        source: Readable binary stream positioned at the start of the body

    Returns:
        Path of the written file

    Raises:
        StorageError: If the file cannot be created or written
    """
    stamp = int(time.time() * 1000)
    while True:
        target = luutam_path / f"{stamp}-{original_name}"
        try:
            out = open(target, "xb")
        except FileExistsError:
            stamp += 1
            continue
        except OSError as e:
            raise StorageError(f"Cannot create {target.name}: {e}") from e
        break

    try:
        with out:
            shutil.copyfileobj(source, out, STREAM_PIECE_SIZE)
    except OSError as e:
        try:
            target.unlink()
        except OSError as unlink_error:
            logger.warning(f"Could not remove partial upload {target.name}: {unlink_error}")
        raise StorageError(f"Failed writing {target.name}: {e}") from e

    return target


def resolve_stored_file(luutam_path: Path, filename: str) -> Path:
    """
    Map a download name to a regular file inside the working directory.

    Raises:
        NotFoundError: If the name escapes the directory or no such file exists
    """
    if not filename or "/" in filename or "\\" in filename or filename in (".", ".."):
        raise NotFoundError("File not found")

    path = luutam_path / filename
    if not path.is_file():
        raise NotFoundError("File not found")
    return path


def remove_working_directory(session: StorageSession) -> bool:
    """
    Recursively delete the working subdirectory. Best-effort.

    Returns:
        True if the directory is gone afterwards, False if removal failed
    """
    if not session.luutam_path.exists():
        return True
    try:
        shutil.rmtree(session.luutam_path)
    except OSError as e:
        logger.error(f"Error deleting files in {session.luutam_path}: {e}")
        return False
    logger.info(f"Removed {session.luutam_path}")
    return True
