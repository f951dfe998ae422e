"""
Android steps: command-line tools + SDK components, then the debug keystore.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbootstrap.adapters.android.sdkmanager import sdkmanager_candidates
from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.errors import StepFailed
from devbootstrap.core.models.step import PipelineStep
from devbootstrap.core.services.archive import install_archive
from devbootstrap.core.services.preconditions import InstallState, directory_state, marker_present

logger = logging.getLogger(__name__)

SDK_VARIABLES = ("ANDROID_SDK_ROOT", "ANDROID_HOME")


# ── install_android_sdk ────────────────────────────────────────────


def _adb(ctx: StepContext) -> Path:
    return ctx.sdk_root / "platform-tools" / ("adb.exe" if ctx.windows else "adb")


def _sdkmanager(ctx: StepContext) -> Path | None:
    for candidate in sdkmanager_candidates(ctx.sdk_root, windows=ctx.windows):
        if marker_present(candidate, executable=True):
            return candidate
    return None


def _android_satisfied(ctx: StepContext) -> bool:
    return marker_present(_adb(ctx), executable=True) and _sdkmanager(ctx) is not None


def _repair_cmdline_tools(ctx: StepContext) -> None:
    """Clear a cmdline-tools directory left without a runnable sdkmanager."""
    cmdline_dir = ctx.sdk_root / "cmdline-tools"
    candidates = sdkmanager_candidates(ctx.sdk_root, windows=ctx.windows)
    state = directory_state(cmdline_dir, candidates[:1], executable=True)
    if state == InstallState.CORRUPTED and _sdkmanager(ctx) is None:
        ctx.repair_install(cmdline_dir, candidates[0], executable=True)


def _install_android_sdk(ctx: StepContext) -> None:
    settings = ctx.toolchain.android
    sdk_root = ctx.sdk_root
    sdk_root.mkdir(parents=True, exist_ok=True)

    if _sdkmanager(ctx) is None:
        url = settings.cmdline_tools_url.pick(ctx.host)
        ctx.console.info(f"Downloading Android command-line tools to {sdk_root}")
        # NetworkFailure / StepFailed from here are fatal.
        install_archive(url, sdk_root / "cmdline-tools" / "latest", downloader=ctx.downloader)
        if _sdkmanager(ctx) is None:
            raise StepFailed(f"sdkmanager not found under {sdk_root / 'cmdline-tools' / 'latest'} after extraction")

    _export_sdk_location(ctx)

    receipt = ctx.tools.sdkmanager.accept_licenses(settings.license_accept_limit)
    if receipt.failed:
        ctx.warn(f"Not all Android SDK licenses were accepted: {receipt.error}")

    receipt = ctx.tools.sdkmanager.install_components(settings.components)
    if receipt.failed:
        raise StepFailed(f"sdkmanager --install failed: {receipt.error}")


def _export_sdk_location(ctx: StepContext) -> None:
    sdk_root = ctx.sdk_root
    for name in SDK_VARIABLES:
        ctx.propagator.set_variable(name, str(sdk_root), persist=True)
    ctx.propagator.ensure_on_path(sdk_root / "platform-tools", persist=True)
    manager = _sdkmanager(ctx)
    if manager is not None:
        ctx.propagator.ensure_on_path(manager.parent, persist=True)


INSTALL_ANDROID_SDK = PipelineStep(
    name="install_android_sdk",
    description="Install the Android SDK",
    is_satisfied=_android_satisfied,
    action=_install_android_sdk,
    recover=_repair_cmdline_tools,
    propagate=_export_sdk_location,
)


# ── generate_debug_keystore ────────────────────────────────────────


def _keystore_path(ctx: StepContext) -> Path:
    return ctx.expand(ctx.toolchain.debug_keystore.path)


def _generate_keystore(ctx: StepContext) -> None:
    presence = ctx.locate("keytool")
    if not presence:
        ctx.warn("keytool not found; skipping debug keystore generation")
        return
    ctx.adopt(presence)

    keystore = _keystore_path(ctx)
    keystore.parent.mkdir(parents=True, exist_ok=True)
    receipt = ctx.tools.keytool.generate(keystore, ctx.toolchain.debug_keystore)
    if receipt.failed:
        raise StepFailed(f"keytool failed: {receipt.error}")
    ctx.console.info(f"Debug keystore created at {keystore}")


GENERATE_DEBUG_KEYSTORE = PipelineStep(
    name="generate_debug_keystore",
    description="Generate the Android debug keystore",
    is_satisfied=lambda ctx: _keystore_path(ctx).exists(),
    action=_generate_keystore,
)
