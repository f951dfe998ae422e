"""
Pipeline orchestrator.

Runs the fixed, linear step list.  For each step:

    is_satisfied? ──yes──▶ skipped
         │ no
         ▼
    recover → action
         │
         ▼
    propagate (always)

A ``BootstrapError`` from a fatal step stops the run at that step.
Recoverable errors, and any error from a non-fatal step, become
warnings and the run carries on.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from devbootstrap.core.engine.context import StepContext
from devbootstrap.core.errors import BootstrapError, StepFailed
from devbootstrap.core.models.step import PipelineStep, StepOutcome

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """What happened in one run."""

    outcomes: list[StepOutcome] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    error: BootstrapError | None = None
    failed_step: str | None = None
    path_changed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "failed_step": self.failed_step,
            "error": self.error.message if self.error else None,
            "error_kind": self.error.kind if self.error else None,
            "steps": [o.to_dict() for o in self.outcomes],
            "notes": self.notes,
        }


def _run_step(step: PipelineStep, ctx: StepContext, outcome: StepOutcome) -> None:
    if step.is_satisfied(ctx):
        logger.info("Step %s already satisfied", step.name)
        ctx.console.info(f"{step.description}: already done")
        outcome.status = "skipped"
    else:
        if step.recover is not None:
            step.recover(ctx)
        step.action(ctx)
        outcome.status = "ran"

    if step.propagate is not None:
        step.propagate(ctx)


def run_pipeline(steps: Sequence[PipelineStep], ctx: StepContext) -> PipelineReport:
    """Run ``steps`` in order and return the report.  Never raises a
    ``BootstrapError``; a fatal one is recorded on the report instead.
    """
    report = PipelineReport()
    total = len(steps)

    for index, step in enumerate(steps, start=1):
        outcome = StepOutcome(name=step.name)
        report.outcomes.append(outcome)
        ctx.begin(outcome)
        ctx.console.step(index, total, step.description)

        start = time.monotonic()
        try:
            _run_step(step, ctx, outcome)
        except BootstrapError as e:
            if e.recoverable or not step.fatal:
                ctx.warn(e.message)
            else:
                outcome.status = "failed"
                outcome.error = e.message
                report.error = e
                report.failed_step = step.name
                logger.error("Step %s failed (%s): %s", step.name, e.kind, e.message)
        except OSError as e:
            err = StepFailed(f"{step.name}: {e}")
            if step.fatal:
                outcome.status = "failed"
                outcome.error = err.message
                report.error = err
                report.failed_step = step.name
                logger.exception("Step %s failed", step.name)
            else:
                ctx.warn(err.message)
        finally:
            outcome.duration_ms = int((time.monotonic() - start) * 1000)

        if outcome.warnings and outcome.status == "ran":
            outcome.status = "warned"
        if report.error is not None:
            break

    report.notes = list(ctx.notes)
    report.path_changed = bool(ctx.propagator.persisted_paths)
    ctx.begin(None)
    return report
