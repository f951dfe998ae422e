"""
Fake adapters for tests.

Each fake implements the same contract as its real counterpart and
records every call.  Fakes that "install" something leave the same
marker on disk the real tool would (an executable on a bin directory,
``platform-tools/adb``, a ``.git`` directory...), so the pipeline's
preconditions and probe see a realistic machine.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Sequence
from pathlib import Path

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
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.toolchain import KeystoreSettings, PackageRepository
from devbootstrap.core.persistence.env_store import DurableEnvStore


def make_executable(directory: Path, name: str) -> Path:
    """Create a runnable no-op script ``directory/name``."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def _result(tool: str, operation: str, ok: bool, error: str = "simulated failure") -> Receipt:
    if ok:
        return Receipt.success(tool=tool, operation=operation)
    return Receipt.failure(tool=tool, operation=operation, error=error, return_code=1)


# ── Durable store / prompter ───────────────────────────────────────


class MemoryEnvStore(DurableEnvStore):
    """Durable store held in memory."""

    def __init__(self, variables: dict[str, str] | None = None, path: Sequence[str] = ()):
        self.variables = dict(variables or {})
        self.path = list(path)
        self.writes = 0

    def get(self, name: str) -> str | None:
        return self.variables.get(name)

    def set(self, name: str, value: str) -> None:
        self.variables[name] = value
        self.writes += 1

    def path_entries(self) -> list[str]:
        return list(self.path)

    def add_path(self, segment: str) -> bool:
        if segment in os.pathsep.join(self.path):
            return False
        self.path.append(segment)
        self.writes += 1
        return True


class ScriptedPrompter:
    """Answers prompts from a list; records what was asked.

    A ``None`` answer behaves like a closed stdin.
    """

    def __init__(self, answers: Sequence[str | None] = ()):
        self.answers = list(answers)
        self.asked: list[str] = []

    def ask(self, prompt: str, default: str = "") -> str:
        self.asked.append(prompt)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {prompt!r}")
        answer = self.answers.pop(0)
        if answer is None:
            raise EOFError(prompt)
        return answer or default


# ── Package manager ────────────────────────────────────────────────


class FakePackageManager(PackageManager):
    """In-memory package database.

    ``provides`` maps a package to the executables it puts in ``bin_dir``.
    """

    executable = "fakepkg"

    def __init__(
        self,
        bin_dir: Path,
        *,
        provides: dict[str, list[str]] | None = None,
        installed: Sequence[str] = (),
        fail_packages: Sequence[str] = (),
        needs_bootstrap: bool = False,
        install_root: Path | None = None,
        bootstrap_ok: bool = True,
    ):
        self.bin_dir = bin_dir
        self.provides = provides or {}
        self.installed = set(installed)
        self.fail_packages = set(fail_packages)
        self.needs_bootstrap = needs_bootstrap
        self._install_root = install_root
        self.bootstrap_ok = bootstrap_ok
        self.install_calls: list[list[str]] = []
        self.bootstrap_calls = 0
        self.repository_calls: list[list[str]] = []

    @property
    def name(self) -> str:
        return "fakepkg"

    def is_available(self) -> bool:
        if not self.needs_bootstrap:
            return True
        entry = self.entry_point()
        return entry is not None and entry.is_file()

    def install_root(self) -> Path | None:
        return self._install_root

    def entry_point(self) -> Path | None:
        if self._install_root is None:
            return None
        return self._install_root / "bin" / self.executable

    def bootstrap(self) -> Receipt:
        self.bootstrap_calls += 1
        if not self.bootstrap_ok:
            return _result(self.name, "bootstrap", False, "could not download install script")
        if self._install_root is not None:
            make_executable(self._install_root / "bin", self.executable)
        return _result(self.name, "bootstrap", True)

    def prepare_repositories(self, repositories: Sequence[PackageRepository]) -> Receipt:
        self.repository_calls.append([r.name for r in repositories])
        return _result(self.name, "repositories", True)

    def install(self, packages: Sequence[str]) -> Receipt:
        self.install_calls.append(list(packages))
        failed = [p for p in packages if p in self.fail_packages]
        for package in packages:
            if package in self.fail_packages:
                continue
            self.installed.add(package)
            for exe in self.provides.get(package, []):
                make_executable(self.bin_dir, exe)
        if failed:
            return _result(self.name, "install", False, f"unable to locate package {failed[0]}")
        return _result(self.name, "install", True)

    def is_installed(self, package: str) -> bool:
        return package in self.installed


# ── Version control ────────────────────────────────────────────────


class FakeVcs(VersionControl):
    """Clone results are scripted; a successful clone writes ``files``."""

    executable = "git"

    def __init__(
        self,
        clone_results: Sequence[bool] = (True,),
        *,
        files: dict[str, str] | None = None,
        agent_running: bool = False,
        agent_env: dict[str, str] | None = None,
        agent_starts: bool = True,
        add_key_ok: bool = True,
    ):
        self.clone_results = list(clone_results)
        self.files = files or {}
        self._agent_running = agent_running
        self.agent_env = agent_env if agent_env is not None else {
            "SSH_AUTH_SOCK": "/tmp/ssh-fake/agent.1",
            "SSH_AGENT_PID": "4242",
        }
        self.agent_starts = agent_starts
        self.add_key_ok = add_key_ok
        self.clones: list[tuple[str, Path]] = []
        self.agent_start_calls = 0
        self.keys_added: list[Path] = []

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return True

    def clone(self, url: str, dest: Path) -> Receipt:
        self.clones.append((url, dest))
        ok = self.clone_results.pop(0) if self.clone_results else False
        if ok:
            (dest / ".git").mkdir(parents=True, exist_ok=True)
            for rel, content in self.files.items():
                target = dest / rel
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content, encoding="utf-8")
        return _result(self.name, "clone", ok, "Permission denied (publickey).")

    def agent_running(self) -> bool:
        return self._agent_running

    def start_agent(self) -> dict[str, str] | None:
        self.agent_start_calls += 1
        if not self.agent_starts:
            return None
        self._agent_running = True
        return dict(self.agent_env)

    def add_key(self, key_path: Path) -> Receipt:
        self.keys_added.append(key_path)
        return _result(self.name, "add_key", self.add_key_ok, "bad passphrase")


# ── Dart / FVM / Flutter ───────────────────────────────────────────


class FakeDart(LanguageSdk):
    """``activate_global`` drops a launcher into ``pub_cache_bin``."""

    executable = "dart"

    def __init__(self, pub_cache_bin: Path, *, sdk_version: str = "3.5.0", activate_ok: bool = True):
        self.pub_cache_bin = pub_cache_bin
        self.sdk_version = sdk_version
        self.activate_ok = activate_ok
        self.activations: list[str] = []

    @property
    def name(self) -> str:
        return "dart"

    def is_available(self) -> bool:
        return True

    def version(self) -> str | None:
        return self.sdk_version

    def activate_global(self, package: str) -> Receipt:
        self.activations.append(package)
        if self.activate_ok:
            make_executable(self.pub_cache_bin, package)
        return _result(self.name, "activate", self.activate_ok)


class FakeFvm(PinManager):
    """Caches versions under ``cache_dir`` and links them like FVM does."""

    executable = "fvm"

    def __init__(self, cache_dir: Path, *, install_ok: bool = True, windows: bool = False):
        self.cache_dir = cache_dir
        self.install_ok = install_ok
        self.launcher = "flutter.bat" if windows else "flutter"
        self.installs: list[str] = []
        self.uses: list[str] = []

    @property
    def name(self) -> str:
        return "fvm"

    def is_available(self) -> bool:
        return True

    def install(self, version: str, project_dir: Path) -> Receipt:
        self.installs.append(version)
        if self.install_ok:
            make_executable(self.cache_dir / version / "bin", self.launcher)
        return _result(self.name, "install", self.install_ok)

    def use(self, version: str, project_dir: Path) -> Receipt:
        self.uses.append(version)
        link = project_dir / ".fvm" / "flutter_sdk"
        link.parent.mkdir(parents=True, exist_ok=True)
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(self.cache_dir / version, target_is_directory=True)
        return _result(self.name, "use", True)


class FakeFlutter(BuildTool):
    executable = "fvm"

    def __init__(self, *, build_ok: bool = True, doctor_ok: bool = True, pub_get_ok: bool = True):
        self.build_ok = build_ok
        self.doctor_ok = doctor_ok
        self.pub_get_ok = pub_get_ok
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "flutter"

    def is_available(self) -> bool:
        return True

    def configure(self, sdk_root: Path) -> Receipt:
        self.calls.append(f"config --android-sdk {sdk_root}")
        return _result(self.name, "configure", True)

    def fetch_dependencies(self) -> Receipt:
        self.calls.append("pub get")
        return _result(self.name, "pub_get", self.pub_get_ok)

    def build(self, variant: str) -> Receipt:
        self.calls.append(f"build apk --{variant}")
        return _result(self.name, "build", self.build_ok, "Gradle task assembleDebug failed")

    def self_diagnose(self) -> Receipt:
        self.calls.append("doctor")
        return _result(self.name, "doctor", self.doctor_ok)


# ── Android / signing / swap ───────────────────────────────────────


class FakeSdkManager(SdkManager):
    """``install_components`` creates ``platform-tools/adb`` (``adb.exe`` on Windows)."""

    executable = "sdkmanager"

    def __init__(
        self,
        sdk_root: Path,
        *,
        licenses_ok: bool = True,
        install_ok: bool = True,
        windows: bool = False,
    ):
        self.sdk_root = sdk_root
        self.adb = "adb.exe" if windows else "adb"
        self.licenses_ok = licenses_ok
        self.install_ok = install_ok
        self.license_calls: list[int] = []
        self.component_calls: list[list[str]] = []

    @property
    def name(self) -> str:
        return "sdkmanager"

    def is_available(self) -> bool:
        return True

    def accept_licenses(self, responses: int) -> Receipt:
        self.license_calls.append(responses)
        return _result(self.name, "licenses", self.licenses_ok)

    def install_components(self, components: Sequence[str]) -> Receipt:
        self.component_calls.append(list(components))
        if self.install_ok:
            make_executable(self.sdk_root / "platform-tools", self.adb)
        return _result(self.name, "install", self.install_ok)


class FakeKeytool(CredentialTool):
    executable = "keytool"

    def __init__(self) -> None:
        self.generated: list[Path] = []

    @property
    def name(self) -> str:
        return "keytool"

    def is_available(self) -> bool:
        return True

    def generate(self, keystore: Path, settings: KeystoreSettings) -> Receipt:
        self.generated.append(keystore)
        keystore.write_bytes(b"fake-keystore")
        return _result(self.name, "generate", True)


class FakeSwap(SwapManager):
    executable = "swapon"

    def __init__(self, total_kib: int = 0, *, create_ok: bool = True):
        self.total_kib = total_kib
        self.create_ok = create_ok
        self.created: list[tuple[str, int]] = []

    @property
    def name(self) -> str:
        return "swap"

    def is_available(self) -> bool:
        return True

    def total_swap_kib(self) -> int:
        return self.total_kib

    def create_swapfile(self, path: str, size_mib: int) -> Receipt:
        self.created.append((path, size_mib))
        if self.create_ok:
            self.total_kib += size_mib * 1024
        return _result(self.name, "create", self.create_ok)
