"""
Recovery Repair — clear a half-finished install before reinstalling.

Installing on top of a partial previous attempt merges old and new
files; removing the directory first avoids that.  Removal is
best-effort: a locked file is logged and the pipeline carries on (the
following install may then fail on its own terms).
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
from pathlib import Path

from devbootstrap.core.errors import CorruptInstall
from devbootstrap.core.services.preconditions import marker_present

logger = logging.getLogger(__name__)


def _clear_readonly(func, path, _exc) -> None:
    """``rmtree`` onerror hook: retry once after clearing the read-only bit."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


def find_corruption(target_dir: Path, marker: Path, *, executable: bool = False) -> CorruptInstall | None:
    """Classify ``target_dir``: present without a usable ``marker`` is corrupt."""
    if not target_dir.exists() or marker_present(marker, executable=executable):
        return None
    problem = "not executable" if marker.exists() else "missing"
    return CorruptInstall(
        f"Incomplete install at {target_dir} ({marker.name} {problem}); removing it before reinstalling",
        details=[str(marker)],
    )


def repair(target_dir: Path, marker: Path, *, executable: bool = False) -> bool:
    """Remove ``target_dir`` if it exists without a usable ``marker``.

    Returns:
        True if the directory was removed.  False when there was nothing
        to do (no directory, or marker present) or removal failed.
    """
    corruption = find_corruption(target_dir, marker, executable=executable)
    if corruption is None:
        return False

    logger.warning(corruption.message)
    try:
        if target_dir.is_dir() and not target_dir.is_symlink():
            if sys.version_info >= (3, 12):
                shutil.rmtree(target_dir, onexc=_clear_readonly)
            else:
                shutil.rmtree(target_dir, onerror=_clear_readonly)
        else:
            target_dir.unlink()
    except OSError as e:
        logger.warning("Could not fully remove %s: %s; continuing", target_dir, e)
        return False

    logger.info("Removed %s", target_dir)
    return True
