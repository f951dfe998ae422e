"""
Adapter contracts — the narrow interfaces between pipeline and tools.

The pipeline only talks to external tools through these contracts.
Concrete adapters shell out via ``CommandRunner``; the fakes in
``devbootstrap.adapters.mock`` implement the same contracts for tests.

Adapters NEVER raise for a tool failure: the outcome goes in a Receipt
and the calling service classifies it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.toolchain import KeystoreSettings, PackageRepository


class ToolAdapter(ABC):
    """Base for every adapter.

    To create a new adapter:
        1. Subclass the matching contract below
        2. Implement ``name`` and the contract's operations
        3. Wire it up in ``devbootstrap.adapters.registry.build_toolbox``
    """

    executable: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g. 'apt', 'git', 'sdkmanager')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying executable can be resolved right now."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class PackageManager(ToolAdapter):
    """Host package manager: batch install and presence queries."""

    needs_bootstrap: bool = False

    @abstractmethod
    def install(self, packages: Sequence[str]) -> Receipt:
        """Install all ``packages`` in one batched call."""

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Whether ``package`` is already installed."""

    def prepare_repositories(self, repositories: Sequence[PackageRepository]) -> Receipt:
        """Register extra package sources.  No-op unless overridden."""
        return Receipt.skip(tool=self.name, operation="repositories", reason="not supported")

    def bootstrap(self) -> Receipt:
        """Install the package manager itself."""
        return Receipt.skip(tool=self.name, operation="bootstrap", reason="ships with the OS")

    def install_root(self) -> Path | None:
        """Directory the bootstrap installs into (None = OS-provided)."""
        return None

    def entry_point(self) -> Path | None:
        """The binary whose presence proves the bootstrap completed."""
        return None


class VersionControl(ToolAdapter):
    """git plus the ssh-agent primitives the clone recovery needs."""

    @abstractmethod
    def clone(self, url: str, dest: Path) -> Receipt:
        ...

    @abstractmethod
    def agent_running(self) -> bool:
        ...

    @abstractmethod
    def start_agent(self) -> dict[str, str] | None:
        """Start ssh-agent; return the variables to export, or None on failure."""

    @abstractmethod
    def add_key(self, key_path: Path) -> Receipt:
        ...


class LanguageSdk(ToolAdapter):
    """The Dart SDK."""

    @abstractmethod
    def version(self) -> str | None:
        """Installed SDK version, or None when it cannot be determined."""

    @abstractmethod
    def activate_global(self, package: str) -> Receipt:
        """``dart pub global activate <package>``."""


class PinManager(ToolAdapter):
    """FVM — installs and selects the pinned Flutter version per project."""

    @abstractmethod
    def install(self, version: str, project_dir: Path) -> Receipt:
        ...

    @abstractmethod
    def use(self, version: str, project_dir: Path) -> Receipt:
        ...


class SdkManager(ToolAdapter):
    """Android ``sdkmanager``."""

    @abstractmethod
    def accept_licenses(self, responses: int) -> Receipt:
        """Feed exactly ``responses`` affirmative answers to the license prompts."""

    @abstractmethod
    def install_components(self, components: Sequence[str]) -> Receipt:
        ...


class BuildTool(ToolAdapter):
    """Flutter, driven through the pin manager inside the project."""

    @abstractmethod
    def configure(self, sdk_root: Path) -> Receipt:
        ...

    @abstractmethod
    def fetch_dependencies(self) -> Receipt:
        ...

    @abstractmethod
    def build(self, variant: str) -> Receipt:
        ...

    @abstractmethod
    def self_diagnose(self) -> Receipt:
        ...


class CredentialTool(ToolAdapter):
    """``keytool`` — generates the debug signing keystore."""

    @abstractmethod
    def generate(self, keystore: Path, settings: KeystoreSettings) -> Receipt:
        ...


class SwapManager(ToolAdapter):
    """Linux swap inspection and creation."""

    @abstractmethod
    def total_swap_kib(self) -> int:
        ...

    @abstractmethod
    def create_swapfile(self, path: str, size_mib: int) -> Receipt:
        ...

