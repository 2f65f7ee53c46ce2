"""
Filesystem operations for the artifact pipeline.

This module implements the filesystem primitives used while downloading and
installing release archives:
- Directory creation with a domain error on failure
- Locked, atomic file writes (temp file + fsync + os.replace)
- Recursive directory copy that merges into an existing tree

CRITICAL: Downloaded artifacts must never be left half-written. The pattern is:
1. Write to a sibling ".part" file under an exclusive lock
2. fsync, then atomically rename onto the final path
"""

from __future__ import annotations

import fcntl
import os
import shutil
from pathlib import Path

from release_upgrader.errors import DirectoryNotExistsError
from release_upgrader.logging import get_logger

logger = get_logger(__name__)


def ensure_directory(path: Path, *, parents: bool = True, mode: int = 0o755) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.
        parents: If True, create parent directories as needed.
        mode: Directory permissions (default 0o755).

    Returns:
        The directory path.

    Raises:
        DirectoryNotExistsError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=parents, mode=mode, exist_ok=True)
        return path
    except OSError as e:
        raise DirectoryNotExistsError(
            f'Directory "{path}" was not created',
            details={"path": str(path), "error": str(e)},
        ) from e


def atomic_write_bytes(path: Path, data: bytes) -> int:
    """
    Write bytes to a file atomically while holding an exclusive lock.

    The data goes to "<path>.part" first and is renamed onto ``path`` only
    after a successful fsync, so readers never observe a partial file.

    Args:
        path: Final destination path. Its parent directory must exist.
        data: Bytes to write.

    Returns:
        Number of bytes written.

    Raises:
        OSError: If the file cannot be written or renamed.
    """
    temp_path = path.with_name(f"{path.name}.part")

    try:
        with open(temp_path, "wb") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                written = f.write(data)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise

    logger.debug(
        "Wrote file atomically",
        extra={"path": str(path), "bytes": written},
    )
    return written


def copy_tree(source: Path, destination: Path) -> Path:
    """
    Recursively copy a directory tree into ``destination``.

    Existing directories are merged and existing files with the same name
    are overwritten; files already in ``destination`` that the source does
    not contain are left untouched.

    Args:
        source: Directory to copy from.
        destination: Directory to copy into (created if missing).

    Returns:
        The destination path.

    Raises:
        OSError: If the source is not a directory or any copy fails
            (``shutil.Error`` collects per-file failures).
    """
    if not source.is_dir():
        raise NotADirectoryError(f"Not a directory: {source}")

    shutil.copytree(source, destination, dirs_exist_ok=True)

    logger.debug(
        "Copied directory tree",
        extra={"source": str(source), "destination": str(destination)},
    )
    return destination
