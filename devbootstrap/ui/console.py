"""
Terminal output for a bootstrap run.

Progress lines are tagged and coloured the same way for every step:

    [INFO]  green
    [WARN]  yellow
    [ERROR] red

Diagnostic detail goes to ``logging``; only what the user needs to act
on is printed here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from devbootstrap.core.engine.pipeline import PipelineReport

_STATUS_ICONS = {
    "ran": ("✅", "green"),
    "skipped": ("⏭️ ", "cyan"),
    "warned": ("⚠️ ", "yellow"),
    "failed": ("❌", "red"),
}


class Console:
    """click-backed progress output."""

    def __init__(self, *, err: bool = False):
        self.err = err

    def info(self, message: str) -> None:
        click.secho(f"[INFO] {message}", fg="green", err=self.err)

    def warn(self, message: str) -> None:
        click.secho(f"[WARN] {message}", fg="yellow", err=self.err)

    def error(self, message: str) -> None:
        click.secho(f"[ERROR] {message}", fg="red", err=self.err)

    def plain(self, message: str) -> None:
        click.echo(message, err=self.err)

    def step(self, index: int, total: int, description: str) -> None:
        click.secho(f"\n━━ [{index}/{total}] {description}", fg="cyan", bold=True, err=self.err)

    def summary(self, report: PipelineReport) -> None:
        """Render the end-of-run table."""
        click.echo(err=self.err)
        click.secho("━━ Summary", fg="cyan", bold=True, err=self.err)
        for outcome in report.outcomes:
            icon, color = _STATUS_ICONS.get(outcome.status, ("•", "white"))
            click.secho(f"  {icon} {outcome.name:<26}", fg=color, nl=False, err=self.err)
            click.echo(f" {outcome.status}", err=self.err)
            for warning in outcome.warnings:
                click.secho(f"       ↳ {warning}", fg="yellow", err=self.err)
            if outcome.error:
                click.secho(f"       ↳ {outcome.error}", fg="red", err=self.err)

        for line in report.notes:
            click.echo(f"  {line}", err=self.err)

        click.echo(err=self.err)
        if report.ok:
            click.secho("✅ Bootstrap complete.", fg="green", bold=True, err=self.err)
            if report.path_changed:
                click.secho(
                    "   Restart your terminal (or source your shell profile) to pick up the new PATH.",
                    fg="yellow",
                    err=self.err,
                )
        else:
            click.secho(f"❌ Bootstrap stopped at '{report.failed_step}'.", fg="red", bold=True, err=self.err)
