"""
Environment Propagator — the only writer of environment state.

Updates the in-process ``EnvironmentState`` so later steps (and their
child processes) see new tools immediately, and writes the durable
store so future terminal sessions see them too.

PATH membership is an exact substring test on the joined PATH string.
That tolerates re-runs without duplicates; the cost is that a segment
that happens to be a substring of an existing entry counts as present,
which filesystem tool directories make unlikely in practice.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbootstrap.core.models.environment import PATH_VAR, EnvironmentState
from devbootstrap.core.persistence.env_store import DurableEnvStore

logger = logging.getLogger(__name__)


class EnvironmentPropagator:
    """Single writer for the run's environment (in-process and durable)."""

    def __init__(self, state: EnvironmentState, store: DurableEnvStore):
        self.state = state
        self.store = store
        self.persisted_paths: list[str] = []

    def ensure_on_path(self, segment: str | Path, *, persist: bool = True) -> bool:
        """Append ``segment`` to PATH if absent.

        Returns:
            True if the in-process PATH changed.
        """
        segment = str(segment)
        changed = False
        current = self.state.path
        if segment not in current:
            self.state.set(PATH_VAR, f"{current}{self.state.pathsep}{segment}" if current else segment)
            logger.info("PATH += %s", segment)
            changed = True

        if persist:
            try:
                if self.store.add_path(segment):
                    self.persisted_paths.append(segment)
                    logger.info("Persisted PATH segment %s", segment)
            except OSError as e:
                logger.warning("Could not persist PATH segment %s: %s", segment, e)
        return changed

    def set_variable(self, name: str, value: str | Path, *, persist: bool = True) -> None:
        """Set ``name`` in-process and, if ``persist``, in the durable store.

        The durable value is rewritten only when it differs, so calling
        this on every run leaves an up-to-date store untouched.
        """
        value = str(value)
        self.state.set(name, value)
        if not persist:
            return
        try:
            if self.store.get(name) == value:
                return
            self.store.set(name, value)
            logger.info("Persisted %s=%s", name, value)
        except OSError as e:
            logger.warning("Could not persist %s: %s", name, e)
