"""
Project steps: clone the repository, then read its Flutter version pin.
"""

from __future__ import annotations

from pathlib import Path

from devbootstrap.core.config.loader import BootstrapConfig
from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.errors import CredentialFailure
from devbootstrap.core.models.step import PipelineStep
from devbootstrap.core.models.target import ProjectTarget
from devbootstrap.core.services.clone_recovery import (
    REASON_ADD_FAILED,
    REASON_DECLINED,
    REASON_KEY_MISSING,
    REASON_RETRY_FAILED,
    CloneRecoveryFlow,
)
from devbootstrap.core.services.version_pin import PinResult, detect_version_pin


def resolve_target(config: BootstrapConfig, pin: PinResult) -> ProjectTarget:
    """Freeze the run's project target once the version pin is known."""
    return ProjectTarget(
        repo_url=config.repo_url,
        project_dir=config.project_dir,
        ssh_dir=config.ssh_dir,
        version_pin=pin.version,
        pin_source=pin.source,
    )


# ── clone_project ──────────────────────────────────────────────────


def _git_marker(ctx: StepContext) -> Path:
    return ctx.config.project_dir / ".git"


def _clone_satisfied(ctx: StepContext) -> bool:
    return _git_marker(ctx).exists()


def _clear_partial_clone(ctx: StepContext) -> None:
    ctx.repair_install(ctx.config.project_dir, _git_marker(ctx))


_ABORT_HINTS = {
    REASON_DECLINED: "Load your SSH key with the commands above, then re-run devbootstrap.",
    REASON_KEY_MISSING: "Check the key filename; it is looked up in {ssh_dir}.",
    REASON_ADD_FAILED: "Check the key passphrase, then re-run devbootstrap.",
    REASON_RETRY_FAILED: "Please check your repository URL and key permissions.",
}


def _clone(ctx: StepContext) -> None:
    ctx.require_tool("git")
    ctx.config.project_dir.parent.mkdir(parents=True, exist_ok=True)

    flow = CloneRecoveryFlow(
        ctx.tools.vcs,
        ctx.propagator,
        ctx.prompter,
        ctx.console,
        default_key=ctx.toolchain.ssh.default_key,
    )
    result = flow.run(ctx.config.repo_url, ctx.config.project_dir, ctx.config.ssh_dir)
    if not result.cloned:
        # The recovery flow has already printed any manual instructions.
        hint = _ABORT_HINTS.get(result.reason, "")
        raise CredentialFailure(
            f"Could not clone {ctx.config.repo_url}: {result.reason}",
            hint=hint.format(ssh_dir=ctx.config.ssh_dir),
        )


CLONE_PROJECT = PipelineStep(
    name="clone_project",
    description="Clone the project repository",
    is_satisfied=_clone_satisfied,
    action=_clone,
    recover=_clear_partial_clone,
)


# ── detect_flutter_version ─────────────────────────────────────────


def _detect(ctx: StepContext) -> None:
    pin = detect_version_pin(ctx.config.project_dir, ctx.toolchain.version_pin)
    if pin.warning is not None:
        ctx.warn(pin.warning.message)
    ctx.target = resolve_target(ctx.config, pin)
    ctx.console.info(f"Flutter version: {pin.version} ({pin.source})")


DETECT_FLUTTER_VERSION = PipelineStep(
    name="detect_flutter_version",
    description="Detect the pinned Flutter version",
    is_satisfied=lambda ctx: ctx.target is not None,
    action=_detect,
    fatal=False,
)
