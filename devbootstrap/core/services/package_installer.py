"""
Package installer — make sure the host package manager exists, then
install a batch of packages with it.

Windows is the interesting case: Chocolatey has to be bootstrapped
first, and a previous bootstrap that died halfway (install root present,
``choco.exe`` missing) has to be cleared before retrying.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from devbootstrap.adapters.base import PackageManager
from devbootstrap.core.errors import NetworkFailure
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.toolchain import PackageRepository
from devbootstrap.core.services.preconditions import marker_present
from devbootstrap.core.services.propagator import EnvironmentPropagator
from devbootstrap.core.services.repair import find_corruption, repair

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Wraps a ``PackageManager`` with bootstrap and batching policy."""

    def __init__(
        self,
        manager: PackageManager,
        propagator: EnvironmentPropagator,
        *,
        warn: Callable[[str], None] = logger.warning,
    ):
        self.manager = manager
        self.propagator = propagator
        self.warn = warn

    def ensure_manager(self) -> bool:
        """Bootstrap the package manager if it is not already present.

        Returns:
            True if a bootstrap ran.

        Raises:
            NetworkFailure: If the bootstrap itself failed.
        """
        if not self.manager.needs_bootstrap:
            return False

        entry_point = self.manager.entry_point()
        install_root = self.manager.install_root()
        if self.manager.is_available() or (entry_point and marker_present(entry_point, executable=True)):
            if entry_point:
                self.propagator.ensure_on_path(entry_point.parent, persist=False)
            return False

        if install_root is not None and entry_point is not None:
            corruption = find_corruption(install_root, entry_point, executable=True)
            if corruption is not None:
                self.warn(corruption.message)
                repair(install_root, entry_point, executable=True)

        logger.info("Bootstrapping %s", self.manager.name)
        receipt = self.manager.bootstrap()
        if receipt.failed:
            raise NetworkFailure(
                f"Could not install {self.manager.name}: {receipt.error}",
                details=[receipt.metadata.get("command", "")] if receipt.metadata.get("command") else None,
            )

        if entry_point is not None:
            self.propagator.ensure_on_path(entry_point.parent, persist=True)
        return True

    def missing(self, packages: Sequence[str]) -> list[str]:
        """The subset of ``packages`` not installed yet, order preserved."""
        return [p for p in packages if not self.manager.is_installed(p)]

    def install(
        self,
        packages: Sequence[str],
        repositories: Sequence[PackageRepository] = (),
    ) -> Receipt:
        """Install whatever in ``packages`` is missing, in one batched call.

        A failed install comes back as a failed Receipt; the caller
        decides whether that is fatal.
        """
        self.ensure_manager()

        todo = self.missing(packages)
        if not todo:
            return Receipt.skip(tool=self.manager.name, operation="install", reason="all packages present")

        if repositories:
            repo_receipt = self.manager.prepare_repositories(repositories)
            if repo_receipt.failed:
                logger.warning("Could not register package sources: %s", repo_receipt.error)

        logger.info("Installing with %s: %s", self.manager.name, " ".join(todo))
        receipt = self.manager.install(todo)
        receipt.metadata.setdefault("packages", todo)
        return receipt
