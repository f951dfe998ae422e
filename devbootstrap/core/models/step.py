"""
Pipeline step model and per-run step outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal

if TYPE_CHECKING:
    from devbootstrap.core.engine.context import StepContext


@dataclass(frozen=True)
class PipelineStep:
    """One named, idempotent unit of provisioning work.

    ``is_satisfied`` is evaluated fresh right before the step runs.
    When it returns True the action is skipped entirely.  ``recover``
    runs before ``action`` and clears a half-installed target.
    ``propagate`` runs last whether the action ran or not, so PATH and
    SDK variables are rewritten on every run.
    """

    name: str
    description: str
    is_satisfied: Callable[[StepContext], bool]
    action: Callable[[StepContext], None]
    recover: Callable[[StepContext], None] | None = None
    propagate: Callable[[StepContext], None] | None = None
    fatal: bool = True


@dataclass
class StepOutcome:
    """What happened to one step during a run."""

    name: str
    status: Literal["ran", "skipped", "warned", "failed"] = "ran"
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "warnings": self.warnings,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }
