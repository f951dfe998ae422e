"""
apt adapter — Debian / Ubuntu hosts.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence
from pathlib import Path

from devbootstrap.adapters.base import PackageManager
from devbootstrap.adapters.shell.command import CommandBacked
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.toolchain import PackageRepository

logger = logging.getLogger(__name__)

SOURCES_DIR = Path("/etc/apt/sources.list.d")


class AptAdapter(CommandBacked, PackageManager):
    """``apt-get`` with sudo.  Installs stream to the terminal."""

    executable = "apt-get"

    def __init__(self, runner, sources_dir: Path = SOURCES_DIR):
        super().__init__(runner)
        self.sources_dir = sources_dir

    @property
    def name(self) -> str:
        return "apt"

    def install(self, packages: Sequence[str]) -> Receipt:
        if not packages:
            return Receipt.skip(tool=self.name, operation="install", reason="nothing to install")
        update = self._run(["apt-get", "update"], "update", needs_sudo=True, capture=False)
        if update.failed:
            return update
        return self._run(
            ["apt-get", "install", "-y", *packages],
            "install",
            needs_sudo=True,
            capture=False,
        )

    def is_installed(self, package: str) -> bool:
        r = self._run(["dpkg-query", "-W", "-f=${Status}", package], "query")
        return r.ok and "install ok installed" in r.output

    def prepare_repositories(self, repositories: Sequence[PackageRepository]) -> Receipt:
        """Add signed apt sources (key + list file) that are not yet configured."""
        added: list[str] = []
        for repo in repositories:
            list_file = self.sources_dir / f"{repo.name}.list"
            if list_file.is_file():
                logger.debug("apt source %s already configured", repo.name)
                continue

            key = self._run(
                [
                    "sh", "-c",
                    f"wget -qO- {shlex.quote(repo.key_url)}"
                    f" | gpg --dearmor --yes -o {shlex.quote(repo.keyring)}",
                ],
                "repositories",
                needs_sudo=True,
            )
            if key.failed:
                return key

            source = self._run(
                ["tee", str(list_file)],
                "repositories",
                input_text=repo.source.strip() + "\n",
                needs_sudo=True,
            )
            if source.failed:
                return source
            added.append(repo.name)

        if not added:
            return Receipt.skip(tool=self.name, operation="repositories", reason="already configured")
        logger.info("Added apt sources: %s", ", ".join(added))
        return Receipt.success(tool=self.name, operation="repositories", metadata={"added": added})
