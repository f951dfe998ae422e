"""
Step preconditions — "is the target state already there?"

Directory installs are judged by a marker file, not by the directory:
a directory without its marker is a half-finished install
("corrupted"), which is different from "absent".
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from enum import Enum
from pathlib import Path


class InstallState(str, Enum):
    ABSENT = "absent"
    CORRUPTED = "corrupted"
    SATISFIED = "satisfied"


def marker_present(marker: Path, *, executable: bool = False) -> bool:
    """Whether ``marker`` exists (and, optionally, is executable)."""
    if not marker.exists():
        return False
    if executable and marker.is_file() and os.name != "nt":
        return os.access(marker, os.X_OK)
    return True


def directory_state(target_dir: Path, markers: Iterable[Path], *, executable: bool = False) -> InstallState:
    """Classify a directory install.

    SATISFIED iff every marker is present.  CORRUPTED when the directory
    exists but a marker is missing.  ABSENT when there is no directory.
    """
    if all(marker_present(m, executable=executable) for m in markers):
        return InstallState.SATISFIED
    if target_dir.exists():
        return InstallState.CORRUPTED
    return InstallState.ABSENT
