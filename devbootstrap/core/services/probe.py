"""
Environment Probe — where is a tool right now?

Read-only.  Three tiers, checked in order:

1. the run's in-process PATH
2. the PATH persisted in the durable user/machine store (a previous
   installer may have updated it without this process seeing it)
3. well-known install locations from the toolchain catalog

Results are never cached: a step earlier in the same run may have just
installed the tool.
"""

from __future__ import annotations

import glob
import logging
import shutil
from collections.abc import Sequence
from pathlib import Path

from devbootstrap.core.models.environment import EnvironmentState
from devbootstrap.core.models.target import ToolPresence
from devbootstrap.core.persistence.env_store import DurableEnvStore
from devbootstrap.core.services.host import expand_template

logger = logging.getLogger(__name__)


def _which_in(tool: str, directories: Sequence[str]) -> str | None:
    # One directory at a time: the run's PATH separator need not be os.pathsep.
    for directory in directories:
        found = shutil.which(tool, path=directory)
        if found:
            return found
    return None


def locate(
    tool: str,
    state: EnvironmentState,
    store: DurableEnvStore | None,
    fallbacks: Sequence[str] = (),
    *,
    home: Path | None = None,
) -> ToolPresence:
    """Find ``tool``.  Never raises; a falsy result means NotFound."""
    found = _which_in(tool, state.path_entries())
    if found:
        return ToolPresence(tool=tool, path=Path(found), source="process")

    if store is not None:
        try:
            durable = [expand_template(p, state, home or Path.home()) for p in store.path_entries()]
        except Exception as e:
            logger.debug("Durable store unreadable while probing %s: %s", tool, e)
            durable = []
        found = _which_in(tool, durable)
        if found:
            logger.debug("Found %s via durable PATH: %s", tool, found)
            return ToolPresence(tool=tool, path=Path(found), source="durable")

    candidates: list[str] = []
    for template in fallbacks:
        expanded = expand_template(template, state, home or Path.home())
        if any(ch in expanded for ch in "*?["):
            candidates.extend(sorted(glob.glob(expanded), reverse=True))
        else:
            candidates.append(expanded)
    found = _which_in(tool, candidates)
    if found:
        logger.debug("Found %s at fallback location: %s", tool, found)
        return ToolPresence(tool=tool, path=Path(found), source="fallback")

    return ToolPresence(tool=tool)
