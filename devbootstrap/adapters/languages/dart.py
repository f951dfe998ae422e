"""
Dart adapter — the language SDK FVM is installed with.
"""

from __future__ import annotations

from devbootstrap.adapters.base import LanguageSdk
from devbootstrap.adapters.shell.command import CommandBacked
from devbootstrap.core.models.action import Receipt


class DartAdapter(CommandBacked, LanguageSdk):
    executable = "dart"

    @property
    def name(self) -> str:
        return "dart"

    def version(self) -> str | None:
        """``dart --version`` → ``"3.5.0"`` (None if unavailable)."""
        r = self._run(["dart", "--version"], "version")
        if r.failed:
            return None
        # "Dart SDK version: 3.5.0 (stable) ..." (older SDKs print to stderr)
        text = r.output or r.metadata.get("stderr", "")
        marker = "version:"
        if marker in text:
            return text.split(marker, 1)[1].split()[0]
        return None

    def activate_global(self, package: str) -> Receipt:
        return self._run(["dart", "pub", "global", "activate", package], "activate", capture=False)
