"""
Project target and tool-presence models.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict


class ProjectTarget(BaseModel):
    """The repository being provisioned, resolved once per run.

    ``version_pin`` comes from the cloned project's FVM config, or the
    fallback default when that file is absent or unreadable.
    """

    model_config = ConfigDict(frozen=True)

    repo_url: str
    project_dir: Path
    ssh_dir: Path
    version_pin: str
    pin_source: Literal["config", "default"] = "default"

    @property
    def flutter_sdk_bin(self) -> Path:
        """Where ``fvm use`` links the pinned Flutter SDK's bin directory."""
        return self.project_dir / ".fvm" / "flutter_sdk" / "bin"


@dataclass(frozen=True)
class ToolPresence:
    """Result of probing for one executable.

    Falsy when the tool was not found.  ``source`` records which probe
    tier found it: the in-process PATH, the durable store's PATH, or a
    well-known fallback location.
    """

    tool: str
    path: Path | None = None
    source: Literal["process", "durable", "fallback"] | None = None

    def __bool__(self) -> bool:
        return self.path is not None
