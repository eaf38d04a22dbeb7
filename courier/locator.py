"""Selects the most recent backup file from the backup folder."""

import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union

from common.types import BackupFile
from courier.exceptions import BackupNotFoundError

logger = logging.getLogger(__name__)


def locate_latest(folder: Union[str, Path]) -> BackupFile:
    """
    Find the most recently modified regular file directly inside a folder.

    Subdirectories are not descended into. Symlinks are followed, so a link
    to a regular file counts while a link to a directory does not. Equal
    modification times are broken by the lexicographically greatest name.

    Args:
        folder: Backup folder to scan

    Returns:
        Snapshot of the selected backup

    Raises:
        BackupNotFoundError: If the folder is missing, unreadable or empty
    """
    path = Path(folder)

    if not path.exists():
        logger.warning(f"Backup folder does not exist: {path}")
        raise BackupNotFoundError(f"Backup folder does not exist: {path}")

    if not path.is_dir():
        logger.warning(f"Backup folder path is not a directory: {path}")
        raise BackupNotFoundError(f"Backup folder path is not a directory: {path}")

    best: Optional[Tuple[Tuple[int, str], os.DirEntry, os.stat_result]] = None

    try:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    st = entry.stat(follow_symlinks=True)
                except OSError as e:
                    # Removed or dangling while we were scanning
                    logger.debug(f"Skipping unreadable entry {entry.name}: {e}")
                    continue

                if not stat.S_ISREG(st.st_mode):
                    continue

                key = (st.st_mtime_ns, entry.name)
                if best is None or key > best[0]:
                    best = (key, entry, st)
    except OSError as e:
        logger.warning(f"Failed to read backup folder {path}: {e}")
        raise BackupNotFoundError(f"Failed to read backup folder: {path}") from e

    if best is None:
        logger.info(f"No backup files found in {path}")
        raise BackupNotFoundError(f"No backup files found in {path}")

    _, entry, st = best
    backup = BackupFile(
        path=path / entry.name,
        size=st.st_size,
        modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    )
    logger.debug(f"Selected backup {backup.name} ({backup.size} bytes)")
    return backup
