"""
Bootstrap error taxonomy.

Every failure a step can raise is one of these.  The orchestrator and
the CLI only need to know the class to decide between "warn and carry
on" and "print in red and exit 1":

    ConfigMissing       recoverable   falls back to a default
    ToolNotFound        fatal         after one PATH reload attempt
    CorruptInstall      recoverable   via Recovery Repair
    NetworkFailure      fatal         no retry
    CredentialFailure   fatal         manual recovery instructions
    DiagnosticFailure   absorbed      warned, run still succeeds
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for all classified bootstrap failures."""

    recoverable: bool = False

    def __init__(self, message: str, *, hint: str = "", details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = list(details or [])

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigMissing(BootstrapError):
    """A config artifact is missing or unparseable; a default applies."""

    recoverable = True


class ToolNotFound(BootstrapError):
    """A required executable could not be located, even after a PATH reload."""

    def __init__(self, tool: str, *, hint: str = "", details: list[str] | None = None):
        super().__init__(
            f"Required tool '{tool}' was not found",
            hint=hint or "Restart your terminal so the updated PATH is loaded, then re-run.",
            details=details,
        )
        self.tool = tool


class CorruptInstall(BootstrapError):
    """An install directory exists without its marker file."""

    recoverable = True


class NetworkFailure(BootstrapError):
    """A download or bootstrap fetch failed."""

    def __init__(self, message: str, *, hint: str = "", details: list[str] | None = None):
        super().__init__(
            message,
            hint=hint or "Check your network connection (and proxy settings), then re-run.",
            details=details,
        )


class CredentialFailure(BootstrapError):
    """Repository access could not be established."""


class DiagnosticFailure(BootstrapError):
    """A verification command failed; reported, never fatal."""

    recoverable = True


class StepFailed(BootstrapError):
    """A step failed for a reason outside the classified kinds."""
