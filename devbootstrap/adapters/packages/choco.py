"""
Chocolatey adapter — Windows hosts.

Chocolatey does not ship with Windows, so this is the one package
manager the pipeline has to bootstrap itself.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from devbootstrap.adapters.base import PackageManager
from devbootstrap.adapters.shell.command import CommandBacked, CommandRunner
from devbootstrap.core.models.action import Receipt

_BOOTSTRAP_SCRIPT = (
    "Set-ExecutionPolicy Bypass -Scope Process -Force; "
    "[System.Net.ServicePointManager]::SecurityProtocol = "
    "[System.Net.ServicePointManager]::SecurityProtocol -bor 3072; "
    "iex ((New-Object System.Net.WebClient).DownloadString('{url}'))"
)


class ChocoAdapter(CommandBacked, PackageManager):
    """``choco install -y`` from an elevated shell."""

    executable = "choco"
    needs_bootstrap = True

    def __init__(self, runner: CommandRunner, *, install_root: Path, entry_point: Path, bootstrap_url: str):
        super().__init__(runner)
        self._install_root = install_root
        self._entry_point = entry_point
        self._bootstrap_url = bootstrap_url

    @property
    def name(self) -> str:
        return "choco"

    def install_root(self) -> Path | None:
        return self._install_root

    def entry_point(self) -> Path | None:
        return self._entry_point

    def bootstrap(self) -> Receipt:
        return self._run(
            [
                "powershell", "-NoProfile", "-InputFormat", "None", "-ExecutionPolicy", "Bypass",
                "-Command", _BOOTSTRAP_SCRIPT.format(url=self._bootstrap_url),
            ],
            "bootstrap",
            capture=False,
        )

    def _choco(self) -> str:
        # Right after a bootstrap choco is not on any PATH yet.
        if self.runner.which("choco") is None and self._entry_point.is_file():
            return str(self._entry_point)
        return "choco"

    def install(self, packages: Sequence[str]) -> Receipt:
        if not packages:
            return Receipt.skip(tool=self.name, operation="install", reason="nothing to install")
        return self._run([self._choco(), "install", "-y", "--no-progress", *packages], "install", capture=False)

    def is_installed(self, package: str) -> bool:
        r = self._run([self._choco(), "list", "--exact", "--limit-output", package], "query")
        return r.ok and any(
            line.lower().startswith(f"{package.lower()}|") for line in r.output.splitlines()
        )
