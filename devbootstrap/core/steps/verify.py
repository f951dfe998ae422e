"""
verify_toolchain — point Flutter at the SDK, fetch dependencies, try a
debug build and run ``flutter doctor``.

Every failure here is a ``DiagnosticFailure``: reported, never fatal.
"""

from __future__ import annotations

import logging

from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.errors import DiagnosticFailure
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.step import PipelineStep

logger = logging.getLogger(__name__)


def _check(ctx: StepContext, receipt: Receipt, what: str) -> bool:
    if receipt.ok:
        return True
    failure = DiagnosticFailure(f"{what} failed: {receipt.error}")
    ctx.warn(failure.message)
    return False


def _verify(ctx: StepContext) -> None:
    flutter = ctx.tools.flutter
    ctx.require_tool("fvm")

    _check(ctx, flutter.configure(ctx.sdk_root), "flutter config --android-sdk")
    if _check(ctx, flutter.fetch_dependencies(), "flutter pub get"):
        _check(ctx, flutter.build("debug"), "Debug APK build")
    _check(ctx, flutter.self_diagnose(), "flutter doctor")

    dart_version = ctx.tools.dart.version()
    target = ctx.target
    ctx.notes.extend([
        f"Dart SDK:        {dart_version or 'unknown'}",
        f"Flutter (pin):   {target.version_pin if target else 'unknown'}",
        f"Android SDK:     {ctx.sdk_root}",
        f"Debug keystore:  {ctx.expand(ctx.toolchain.debug_keystore.path)}",
        f"Project:         {ctx.config.project_dir}",
    ])


VERIFY_TOOLCHAIN = PipelineStep(
    name="verify_toolchain",
    description="Verify the toolchain",
    is_satisfied=lambda ctx: False,
    action=_verify,
)
