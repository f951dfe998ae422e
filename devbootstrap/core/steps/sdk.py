"""
Language SDK steps: Dart + FVM, then the pinned Flutter version.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.errors import StepFailed
from devbootstrap.core.models.step import PipelineStep
from devbootstrap.core.models.target import ProjectTarget

logger = logging.getLogger(__name__)


# ── install_dart_fvm ───────────────────────────────────────────────


def _pub_cache_bin(ctx: StepContext) -> Path:
    return ctx.expand(ctx.toolchain.pub_cache_bin.pick(ctx.host))


def _dart_fvm_satisfied(ctx: StepContext) -> bool:
    return bool(ctx.locate("dart")) and bool(ctx.locate("fvm"))


def _install_dart_fvm(ctx: StepContext) -> None:
    if not ctx.locate("dart"):
        receipt = ctx.installer.install(ctx.profile.language_sdk_packages, ctx.profile.repositories)
        if receipt.failed:
            ctx.warn(f"Dart SDK install reported a failure: {receipt.error}")
    ctx.require_tool("dart")

    # `dart pub global activate` drops the fvm launcher here.
    ctx.propagator.ensure_on_path(_pub_cache_bin(ctx), persist=True)
    if ctx.locate("fvm"):
        return
    receipt = ctx.tools.dart.activate_global("fvm")
    if receipt.failed:
        raise StepFailed(f"dart pub global activate fvm failed: {receipt.error}")
    ctx.require_tool("fvm")


def _propagate_dart_fvm(ctx: StepContext) -> None:
    ctx.propagator.ensure_on_path(_pub_cache_bin(ctx), persist=True)
    ctx.adopt(ctx.locate("dart"))
    ctx.adopt(ctx.locate("fvm"))


INSTALL_DART_FVM = PipelineStep(
    name="install_dart_fvm",
    description="Install the Dart SDK and FVM",
    is_satisfied=_dart_fvm_satisfied,
    action=_install_dart_fvm,
    propagate=_propagate_dart_fvm,
)


# ── install_flutter ────────────────────────────────────────────────


def _require_target(ctx: StepContext) -> ProjectTarget:
    if ctx.target is None:
        raise StepFailed("Flutter version pin has not been resolved")
    return ctx.target


def _flutter_binary(ctx: StepContext, target: ProjectTarget) -> Path:
    return target.flutter_sdk_bin / ("flutter.bat" if ctx.windows else "flutter")


def linked_flutter_version(target: ProjectTarget) -> str | None:
    """Version FVM currently links into the project (its cache dir name)."""
    link = target.project_dir / ".fvm" / "flutter_sdk"
    if not link.exists():
        return None
    return link.resolve().name


def _flutter_satisfied(ctx: StepContext) -> bool:
    target = ctx.target
    if target is None or not _flutter_binary(ctx, target).exists():
        return False
    return linked_flutter_version(target) == target.version_pin


def _install_flutter(ctx: StepContext) -> None:
    target = _require_target(ctx)
    ctx.require_tool("fvm")

    receipt = ctx.tools.fvm.install(target.version_pin, target.project_dir)
    if receipt.failed:
        raise StepFailed(f"fvm install {target.version_pin} failed: {receipt.error}")
    receipt = ctx.tools.fvm.use(target.version_pin, target.project_dir)
    if receipt.failed:
        raise StepFailed(f"fvm use {target.version_pin} failed: {receipt.error}")
    ctx.console.info(f"Flutter {target.version_pin} linked into {target.project_dir}")


def _propagate_flutter(ctx: StepContext) -> None:
    if ctx.target is not None:
        ctx.propagator.ensure_on_path(ctx.target.flutter_sdk_bin, persist=True)


INSTALL_FLUTTER = PipelineStep(
    name="install_flutter",
    description="Install the pinned Flutter SDK via FVM",
    is_satisfied=_flutter_satisfied,
    action=_install_flutter,
    propagate=_propagate_flutter,
)
