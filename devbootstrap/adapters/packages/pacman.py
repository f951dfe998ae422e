"""
pacman adapter — Arch hosts.
"""

from __future__ import annotations

from collections.abc import Sequence

from devbootstrap.adapters.base import PackageManager
from devbootstrap.adapters.shell.command import CommandBacked
from devbootstrap.core.models.action import Receipt


class PacmanAdapter(CommandBacked, PackageManager):
    """``pacman -S --needed`` with sudo."""

    executable = "pacman"

    @property
    def name(self) -> str:
        return "pacman"

    def install(self, packages: Sequence[str]) -> Receipt:
        if not packages:
            return Receipt.skip(tool=self.name, operation="install", reason="nothing to install")
        return self._run(
            ["pacman", "-Syu", "--noconfirm", "--needed", *packages],
            "install",
            needs_sudo=True,
            capture=False,
        )

    def is_installed(self, package: str) -> bool:
        return self._run(["pacman", "-Q", package], "query").ok
