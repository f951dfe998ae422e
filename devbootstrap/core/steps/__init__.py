"""
The provisioning steps, in run order.
"""

from __future__ import annotations

from devbootstrap.core.models.step import PipelineStep
from devbootstrap.core.steps.android import GENERATE_DEBUG_KEYSTORE, INSTALL_ANDROID_SDK
from devbootstrap.core.steps.project import CLONE_PROJECT, DETECT_FLUTTER_VERSION
from devbootstrap.core.steps.sdk import INSTALL_DART_FVM, INSTALL_FLUTTER
from devbootstrap.core.steps.system import ENSURE_SWAP, INSTALL_CORE_PACKAGES
from devbootstrap.core.steps.verify import VERIFY_TOOLCHAIN


def build_steps(host: str) -> list[PipelineStep]:
    """The fixed step list for ``host``.  Swap is a Linux-only concern."""
    steps = [INSTALL_CORE_PACKAGES]
    if host != "windows":
        steps.append(ENSURE_SWAP)
    steps += [
        CLONE_PROJECT,
        DETECT_FLUTTER_VERSION,
        INSTALL_DART_FVM,
        INSTALL_FLUTTER,
        INSTALL_ANDROID_SDK,
        GENERATE_DEBUG_KEYSTORE,
        VERIFY_TOOLCHAIN,
    ]
    return steps


__all__ = ["build_steps"]
