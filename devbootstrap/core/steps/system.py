"""
System-level steps: core packages and (Linux) swap space.
"""

from __future__ import annotations

import logging

from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.models.step import PipelineStep

logger = logging.getLogger(__name__)


# ── install_core_packages ──────────────────────────────────────────


def _core_packages_satisfied(ctx: StepContext) -> bool:
    manager = ctx.tools.packages
    if manager.needs_bootstrap and not ctx.locate(manager.executable):
        entry_point = manager.entry_point()
        if entry_point is None or not entry_point.is_file():
            return False
    return not ctx.installer.missing(ctx.profile.core_packages)


def _install_core_packages(ctx: StepContext) -> None:
    # A bootstrap failure raises NetworkFailure and stops the run.
    receipt = ctx.installer.install(ctx.profile.core_packages)
    if receipt.failed:
        ctx.warn(f"Some core packages failed to install ({receipt.error}); continuing")
    elif receipt.ok:
        ctx.console.info(f"Installed: {' '.join(receipt.metadata.get('packages', []))}")


def _propagate_package_manager(ctx: StepContext) -> None:
    entry_point = ctx.tools.packages.entry_point()
    if entry_point is not None and entry_point.is_file():
        ctx.propagator.ensure_on_path(entry_point.parent, persist=False)


INSTALL_CORE_PACKAGES = PipelineStep(
    name="install_core_packages",
    description="Install package manager and core packages",
    is_satisfied=_core_packages_satisfied,
    action=_install_core_packages,
    propagate=_propagate_package_manager,
)


# ── ensure_swap ────────────────────────────────────────────────────


def _swap_satisfied(ctx: StepContext) -> bool:
    swap = ctx.tools.swap
    if swap is None:
        return True
    total = swap.total_swap_kib()
    logger.debug("Swap total: %d KiB", total)
    return total >= ctx.toolchain.swap.min_kib


def _create_swap(ctx: StepContext) -> None:
    settings = ctx.toolchain.swap
    ctx.console.info(f"Less than {settings.min_kib // 1024 // 1024} GiB swap; creating {settings.path}")
    receipt = ctx.tools.swap.create_swapfile(settings.path, settings.size_mib)
    if receipt.failed:
        ctx.warn(f"Could not create swap file {settings.path}: {receipt.error}")


ENSURE_SWAP = PipelineStep(
    name="ensure_swap",
    description="Ensure at least 2 GiB of swap",
    is_satisfied=_swap_satisfied,
    action=_create_swap,
    fatal=False,
)
