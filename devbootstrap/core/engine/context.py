"""
Step context — everything a step may touch, passed explicitly.

One ``StepContext`` is built per run.  Steps read configuration and the
toolbox from it, write environment changes through its propagator, and
report warnings through ``warn``.  Nothing here is global.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from devbootstrap.adapters.registry import Toolbox
from devbootstrap.core.config.loader import BootstrapConfig
from devbootstrap.core.errors import ToolNotFound
from devbootstrap.core.models.environment import EnvironmentState
from devbootstrap.core.models.step import StepOutcome
from devbootstrap.core.models.target import ProjectTarget, ToolPresence
from devbootstrap.core.models.toolchain import HostProfile, Toolchain
from devbootstrap.core.persistence.env_store import DurableEnvStore
from devbootstrap.core.services.archive import Downloader, download_file
from devbootstrap.core.services.host import expand_path
from devbootstrap.core.services.package_installer import PackageInstaller
from devbootstrap.core.services.probe import locate
from devbootstrap.core.services.propagator import EnvironmentPropagator
from devbootstrap.core.services.repair import find_corruption, repair
from devbootstrap.ui.console import Console
from devbootstrap.ui.prompt import Prompter

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    config: BootstrapConfig
    toolchain: Toolchain
    host: str
    state: EnvironmentState
    store: DurableEnvStore
    tools: Toolbox
    prompter: Prompter
    console: Console
    downloader: Downloader = download_file
    target: ProjectTarget | None = None
    notes: list[str] = field(default_factory=list)

    propagator: EnvironmentPropagator = field(init=False)
    installer: PackageInstaller = field(init=False)
    _outcome: StepOutcome | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.propagator = EnvironmentPropagator(self.state, self.store)
        self.installer = PackageInstaller(self.tools.packages, self.propagator, warn=self.warn)

    # ── Derived locations ──────────────────────────────────────────

    @property
    def home(self) -> Path:
        return self.config.home

    @property
    def windows(self) -> bool:
        return self.host == "windows"

    @property
    def profile(self) -> HostProfile:
        return self.toolchain.host_profile(self.host)

    @property
    def sdk_root(self) -> Path:
        return self.expand(self.toolchain.android.sdk_root.pick(self.host))

    def expand(self, template: str) -> Path:
        return expand_path(template, self.state, self.home)

    # ── Step bookkeeping ───────────────────────────────────────────

    def begin(self, outcome: StepOutcome | None) -> None:
        self._outcome = outcome

    def warn(self, message: str) -> None:
        """Report a non-fatal problem for the current step."""
        logger.warning(message)
        self.console.warn(message)
        if self._outcome is not None:
            self._outcome.warnings.append(message)

    def repair_install(self, target_dir: Path, marker: Path, *, executable: bool = False) -> bool:
        """Clear a corrupt install under ``target_dir``, reporting it as a warning."""
        corruption = find_corruption(target_dir, marker, executable=executable)
        if corruption is None:
            return False
        self.warn(corruption.message)
        return repair(target_dir, marker, executable=executable)

    # ── Tool lookup ────────────────────────────────────────────────

    def locate(self, tool: str) -> ToolPresence:
        return locate(
            tool,
            self.state,
            self.store,
            self.toolchain.fallbacks_for(tool),
            home=self.home,
        )

    def adopt(self, presence: ToolPresence) -> None:
        """Put a tool found outside the in-process PATH onto it."""
        if presence and presence.source != "process":
            self.propagator.ensure_on_path(presence.path.parent, persist=False)

    def require_tool(self, tool: str) -> Path:
        """Locate ``tool`` across every probe tier or fail.

        A tool found only on the durable PATH or at a fallback location
        is adopted into the in-process PATH, which is what a terminal
        restart would have done.

        Raises:
            ToolNotFound: If no tier has it.
        """
        presence = self.locate(tool)
        if not presence:
            raise ToolNotFound(tool)
        self.adopt(presence)
        return presence.path
