"""
In-process environment state.

The bootstrap never mutates ``os.environ``.  Instead one
``EnvironmentState`` is created at process start, threaded through
every step, and handed to every child process.  A tool directory added
by step N is therefore visible to the executable lookup and to the
subprocesses of step N+1 without a shell restart.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

PATH_VAR = "PATH"


@dataclass
class EnvironmentState:
    """Variable name → value for the running bootstrap process."""

    variables: dict[str, str] = field(default_factory=dict)
    pathsep: str = os.pathsep

    @classmethod
    def from_process(cls) -> EnvironmentState:
        """Snapshot the current process environment."""
        return cls(variables=dict(os.environ))

    @property
    def case_insensitive(self) -> bool:
        """Windows variable names ignore case: ``%ProgramData%`` is ``PROGRAMDATA``."""
        return self.pathsep == ";"

    def _key(self, name: str) -> str:
        if name in self.variables or not self.case_insensitive:
            return name
        folded = name.upper()
        for key in self.variables:
            if key.upper() == folded:
                return key
        return name

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.variables.get(self._key(name), default)

    def set(self, name: str, value: str) -> None:
        self.variables[self._key(name)] = value

    @property
    def path(self) -> str:
        """The joined searchable-executable path string."""
        return self.get(PATH_VAR) or ""

    def path_entries(self) -> list[str]:
        return [p for p in self.path.split(self.pathsep) if p]

    def as_environ(self) -> dict[str, str]:
        """A copy suitable for ``subprocess.run(env=...)``."""
        return dict(self.variables)
