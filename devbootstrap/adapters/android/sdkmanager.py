"""
Android sdkmanager adapter.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from devbootstrap.adapters.base import SdkManager
from devbootstrap.adapters.shell.command import CommandBacked, CommandRunner
from devbootstrap.core.models.action import Receipt


def sdkmanager_candidates(sdk_root: Path, *, windows: bool = False) -> list[Path]:
    """Where a normalized SDK keeps ``sdkmanager``.

    Some archive versions end up one level deeper
    (``latest/cmdline-tools/bin``); both layouts count.
    """
    name = "sdkmanager.bat" if windows else "sdkmanager"
    latest = sdk_root / "cmdline-tools" / "latest"
    return [latest / "bin" / name, latest / "cmdline-tools" / "bin" / name]


class SdkManagerAdapter(CommandBacked, SdkManager):
    executable = "sdkmanager"

    def __init__(self, runner: CommandRunner, sdk_root: Path, *, windows: bool = False):
        super().__init__(runner)
        self.sdk_root = sdk_root
        self.windows = windows

    @property
    def name(self) -> str:
        return "sdkmanager"

    def _binary(self) -> str:
        for candidate in sdkmanager_candidates(self.sdk_root, windows=self.windows):
            if candidate.is_file():
                return str(candidate)
        return self.executable

    def is_available(self) -> bool:
        return any(p.is_file() for p in sdkmanager_candidates(self.sdk_root, windows=self.windows))

    def accept_licenses(self, responses: int) -> Receipt:
        # A fixed number of answers: any prompt past the bound stays
        # unanswered and sdkmanager exits non-zero.
        return self._run(
            [self._binary(), f"--sdk_root={self.sdk_root}", "--licenses"],
            "licenses",
            input_text="y\n" * responses,
        )

    def install_components(self, components: Sequence[str]) -> Receipt:
        return self._run(
            [self._binary(), f"--sdk_root={self.sdk_root}", "--install", *components],
            "install",
            capture=False,
        )
