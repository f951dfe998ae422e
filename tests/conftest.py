"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import io
import json
import os
import zipfile
from pathlib import Path

import pytest

from devbootstrap.adapters.mock import (
    FakeDart,
    FakeFlutter,
    FakeFvm,
    FakeKeytool,
    FakePackageManager,
    FakeSdkManager,
    FakeSwap,
    FakeVcs,
    MemoryEnvStore,
    ScriptedPrompter,
)
from devbootstrap.adapters.registry import Toolbox
from devbootstrap.core.config.loader import BootstrapConfig, load_toolchain
from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.models.environment import EnvironmentState
from devbootstrap.core.models.toolchain import Toolchain
from devbootstrap.core.services.host import expand_path
from devbootstrap.ui.console import Console


def build_zip(entries: dict[str, tuple[bytes, int]]) -> bytes:
    """Zip ``name -> (content, unix mode)``; names ending in / are dirs."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, (content, mode) in entries.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = (mode & 0xFFFF) << 16
            zf.writestr(info, content)
    return buf.getvalue()


def cmdline_tools_zip(top: str = "cmdline-tools", launcher: str = "sdkmanager") -> bytes:
    """A minimal Android command-line tools archive."""
    return build_zip({
        f"{top}/bin/{launcher}": (b"#!/bin/sh\nexit 0\n", 0o755),
        f"{top}/lib/sdkmanager-classpath.jar": (b"jar", 0o644),
        f"{top}/source.properties": (b"Pkg.Revision=12.0\n", 0o644),
    })


@pytest.fixture
def toolchain() -> Toolchain:
    """The shipped catalog without host-specific fallback locations."""
    return load_toolchain().model_copy(update={"fallback_locations": {}})


class FakeMachine:
    """A fresh machine made of fakes under ``tmp_path``.

    ``host="debian"`` gives a Linux box with apt already present.
    ``host="windows"`` gives upper-cased environment names, a ``;``
    PATH separator and a package manager that has to be bootstrapped
    into ``%ProgramData%/chocolatey`` first.
    """

    def __init__(self, tmp_path: Path, toolchain: Toolchain, host: str = "debian"):
        self.toolchain = toolchain
        self.host = host
        self.windows = host == "windows"
        self.home = tmp_path / "home"
        self.home.mkdir()
        self.bin_dir = tmp_path / "usr" / "bin"
        self.bin_dir.mkdir(parents=True)
        self.project_dir = tmp_path / "work" / "ezpartyph-flutter"
        self.store = MemoryEnvStore()
        self.downloads: list[str] = []

        if self.windows:
            self.base_variables = {
                "PATH": str(self.bin_dir),
                "USERPROFILE": str(self.home),
                "LOCALAPPDATA": str(self.home / "AppData" / "Local"),
                "PROGRAMDATA": str(tmp_path / "ProgramData"),
            }
            self.pathsep = ";"
        else:
            self.base_variables = {"PATH": str(self.bin_dir), "HOME": str(self.home)}
            self.pathsep = os.pathsep

        self.sdk_root = self.expand(toolchain.android.sdk_root.pick(host))
        self.archive = cmdline_tools_zip(launcher="sdkmanager.bat" if self.windows else "sdkmanager")

        profile = toolchain.host_profile(host)
        if self.windows:
            self.install_root = self.expand(profile.bootstrap.install_root)
            packages = FakePackageManager(
                self.bin_dir,
                provides={"git": ["git"], "dart-sdk": ["dart"], "temurin17": ["keytool"]},
                needs_bootstrap=True,
                install_root=self.install_root,
            )
        else:
            self.install_root = None
            packages = FakePackageManager(
                self.bin_dir,
                provides={"git": ["git"], "dart": ["dart"], "openjdk-17-jdk": ["keytool"]},
            )

        self.tools = Toolbox(
            packages=packages,
            vcs=FakeVcs(
                [True],
                files={".fvm/fvm_config.json": json.dumps({"flutterSdkVersion": "3.29.0"})},
            ),
            dart=FakeDart(self.expand(toolchain.pub_cache_bin.pick(host))),
            fvm=FakeFvm(self.home / "fvm" / "versions", windows=self.windows),
            sdkmanager=FakeSdkManager(self.sdk_root, windows=self.windows),
            flutter=FakeFlutter(),
            keytool=FakeKeytool(),
            swap=None if self.windows else FakeSwap(total_kib=0),
        )

    def state(self) -> EnvironmentState:
        return EnvironmentState(variables=dict(self.base_variables), pathsep=self.pathsep)

    def expand(self, template: str) -> Path:
        return expand_path(template, self.state(), self.home)

    def downloader(self, url: str, dest: Path) -> None:
        self.downloads.append(url)
        dest.write_bytes(self.archive)

    def context(self, prompter: ScriptedPrompter | None = None, host: str | None = None) -> StepContext:
        """A new run: fresh in-process environment, same durable store."""
        config = BootstrapConfig(project_dir=self.project_dir, home=self.home)
        return StepContext(
            config=config,
            toolchain=self.toolchain,
            host=host or self.host,
            state=self.state(),
            store=self.store,
            tools=self.tools,
            prompter=prompter or ScriptedPrompter(),
            console=Console(),
            downloader=self.downloader,
        )

    def side_effects(self) -> dict[str, int]:
        """Counts of every install-type call made so far."""
        t = self.tools
        return {
            "package_installs": len(t.packages.install_calls),
            "bootstraps": t.packages.bootstrap_calls,
            "clones": len(t.vcs.clones),
            "activations": len(t.dart.activations),
            "fvm_installs": len(t.fvm.installs),
            "fvm_uses": len(t.fvm.uses),
            "downloads": len(self.downloads),
            "license_runs": len(t.sdkmanager.license_calls),
            "component_installs": len(t.sdkmanager.component_calls),
            "keystores": len(t.keytool.generated),
            "swapfiles": len(t.swap.created) if t.swap is not None else 0,
        }


@pytest.fixture
def machine(tmp_path: Path, toolchain: Toolchain) -> FakeMachine:
    return FakeMachine(tmp_path, toolchain)


@pytest.fixture
def windows_machine(tmp_path: Path, toolchain: Toolchain) -> FakeMachine:
    return FakeMachine(tmp_path, toolchain, host="windows")
