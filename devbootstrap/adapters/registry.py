"""
Adapter registry — one bundle of adapters per run.

The pipeline never constructs adapters itself; it receives a
``Toolbox``.  Production code builds it with ``build_toolbox`` for the
detected host, tests hand in fakes from ``devbootstrap.adapters.mock``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from devbootstrap.adapters.android.sdkmanager import SdkManagerAdapter
from devbootstrap.adapters.base import (
    BuildTool,
    CredentialTool,
    LanguageSdk,
    PackageManager,
    PinManager,
    SdkManager,
    SwapManager,
    VersionControl,
)
from devbootstrap.adapters.languages.dart import DartAdapter
from devbootstrap.adapters.languages.flutter import FlutterAdapter, FvmAdapter
from devbootstrap.adapters.packages.apt import AptAdapter
from devbootstrap.adapters.packages.choco import ChocoAdapter
from devbootstrap.adapters.packages.pacman import PacmanAdapter
from devbootstrap.adapters.shell.command import CommandRunner
from devbootstrap.adapters.shell.swap import LinuxSwapAdapter
from devbootstrap.adapters.signing.keytool import KeytoolAdapter
from devbootstrap.adapters.vcs.git import GitAdapter
from devbootstrap.core.models.toolchain import Toolchain
from devbootstrap.core.services.host import expand_path

logger = logging.getLogger(__name__)


@dataclass
class Toolbox:
    """Every external tool the pipeline drives."""

    packages: PackageManager
    vcs: VersionControl
    dart: LanguageSdk
    fvm: PinManager
    sdkmanager: SdkManager
    flutter: BuildTool
    keytool: CredentialTool
    swap: SwapManager | None = None

    def status(self) -> dict[str, bool]:
        """Availability of each adapter's executable right now."""
        tools = [self.packages, self.vcs, self.dart, self.fvm, self.sdkmanager, self.flutter, self.keytool]
        if self.swap is not None:
            tools.append(self.swap)
        result: dict[str, bool] = {}
        for tool in tools:
            try:
                result[tool.name] = tool.is_available()
            except Exception:
                result[tool.name] = False
        return result


def build_package_manager(host: str, runner: CommandRunner, toolchain: Toolchain, home: Path) -> PackageManager:
    profile = toolchain.host_profile(host)
    if profile.package_manager == "apt":
        return AptAdapter(runner)
    if profile.package_manager == "pacman":
        return PacmanAdapter(runner)
    if profile.bootstrap is None:
        raise ValueError(f"Host '{host}' uses {profile.package_manager} but has no bootstrap settings")
    install_root = expand_path(profile.bootstrap.install_root, runner.state, home)
    return ChocoAdapter(
        runner,
        install_root=install_root,
        entry_point=install_root / profile.bootstrap.entry_point,
        bootstrap_url=profile.bootstrap.url,
    )


def build_toolbox(
    host: str,
    runner: CommandRunner,
    toolchain: Toolchain,
    *,
    sdk_root: Path,
    project_dir: Path,
    home: Path,
) -> Toolbox:
    """Wire the concrete adapters for ``host``."""
    windows = host == "windows"
    toolbox = Toolbox(
        packages=build_package_manager(host, runner, toolchain, home),
        vcs=GitAdapter(runner, windows=windows),
        dart=DartAdapter(runner),
        fvm=FvmAdapter(runner),
        sdkmanager=SdkManagerAdapter(runner, sdk_root, windows=windows),
        flutter=FlutterAdapter(runner, project_dir),
        keytool=KeytoolAdapter(runner),
        swap=None if windows else LinuxSwapAdapter(runner),
    )
    logger.debug("Toolbox for %s: %s", host, toolbox.status())
    return toolbox
