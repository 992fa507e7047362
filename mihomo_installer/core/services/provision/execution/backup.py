"""
L4 Execution — Timestamped backups.

Before the installer overwrites one of its files, the previous
version is copied to ``<path>.bak_<YYYYmmdd_HHMMSS>`` beside it.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path

from mihomo_installer.core.services.provision.data.constants import BACKUP_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


def backup_path_for(path: Path, ts: str) -> Path:
    """``<path>.bak_<ts>``, with ``.N`` added if that name is taken."""
    candidate = path.with_name(f"{path.name}.bak_{ts}")
    n = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.bak_{ts}.{n}")
        n += 1
    return candidate


def backup_file(path: Path, *, now: float | None = None) -> Path | None:
    """Copy ``path`` to a timestamped sibling, preserving metadata.

    Returns:
        The backup path, or None if ``path`` is not an existing file.
    """
    if not path.is_file():
        return None
    ts = time.strftime(BACKUP_TIMESTAMP_FORMAT, time.localtime(now))
    dest = backup_path_for(path, ts)
    shutil.copy2(path, dest)
    logger.info("Backup: %s -> %s", path, dest)
    return dest


def list_backups(path: Path) -> list[Path]:
    """Existing backups of ``path``, oldest name first."""
    return sorted(path.parent.glob(f"{path.name}.bak_*"))
