"""
Flutter adapters — FVM as the pin manager, Flutter as the build tool.

Flutter is always invoked as ``fvm flutter ...`` inside the project so
the project's pinned SDK is the one that runs.
"""

from __future__ import annotations

from pathlib import Path

from devbootstrap.adapters.base import BuildTool, PinManager
from devbootstrap.adapters.shell.command import CommandBacked, CommandRunner
from devbootstrap.core.models.action import Receipt


class FvmAdapter(CommandBacked, PinManager):
    executable = "fvm"

    @property
    def name(self) -> str:
        return "fvm"

    def install(self, version: str, project_dir: Path) -> Receipt:
        return self._run(["fvm", "install", version], "install", cwd=str(project_dir), capture=False)

    def use(self, version: str, project_dir: Path) -> Receipt:
        # --force skips fvm's interactive "are you sure" questions.
        return self._run(["fvm", "use", version, "--force"], "use", cwd=str(project_dir), capture=False)


class FlutterAdapter(CommandBacked, BuildTool):
    executable = "fvm"

    def __init__(self, runner: CommandRunner, project_dir: Path):
        super().__init__(runner)
        self.project_dir = project_dir

    @property
    def name(self) -> str:
        return "flutter"

    def _flutter(self, args: list[str], operation: str, **kwargs) -> Receipt:
        return self._run(["fvm", "flutter", *args], operation, cwd=str(self.project_dir), **kwargs)

    def configure(self, sdk_root: Path) -> Receipt:
        return self._flutter(["config", "--android-sdk", str(sdk_root)], "configure")

    def fetch_dependencies(self) -> Receipt:
        return self._flutter(["pub", "get"], "fetch_dependencies", capture=False)

    def build(self, variant: str) -> Receipt:
        return self._flutter(["build", "apk", f"--{variant}"], "build", capture=False)

    def self_diagnose(self) -> Receipt:
        return self._flutter(["doctor"], "self_diagnose", capture=False)
