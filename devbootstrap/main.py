"""
devbootstrap — CLI entrypoint.

Usage:
    devbootstrap
    python -m devbootstrap.main --help

There are no behavioural flags.  The run is configured through the
environment:

    PROJECT_REPO                repository to clone
    PROJECT_DIR                 where to clone it (default: ./ezpartyph-flutter)
    SECRETS_BASE_URL            reserved
    SECRETS_TOKEN               reserved
    DEVBOOTSTRAP_LOG_LEVEL      console log level (default: WARNING)
    DEVBOOTSTRAP_LOG_FILE       also log to this file
    DEVBOOTSTRAP_LOG_FILE_LEVEL level for the log file (default: DEBUG)
"""

from __future__ import annotations

import json
import logging
import os
import sys

import click

from devbootstrap import __version__
from devbootstrap.core.observability.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _build_context():
    """Wire config, host, environment and adapters for a real run."""
    from devbootstrap.adapters.registry import build_toolbox
    from devbootstrap.adapters.shell.command import CommandRunner
    from devbootstrap.core.config.loader import load_config, load_toolchain
    from devbootstrap.core.engine.context import StepContext
    from devbootstrap.core.models.environment import EnvironmentState
    from devbootstrap.core.persistence.env_store import open_durable_store
    from devbootstrap.core.services.host import detect_host, expand_path
    from devbootstrap.ui.console import Console
    from devbootstrap.ui.prompt import TerminalPrompter

    config = load_config()
    toolchain = load_toolchain()
    host = detect_host()
    state = EnvironmentState.from_process()
    runner = CommandRunner(state)
    sdk_root = expand_path(toolchain.android.sdk_root.pick(host), state, config.home)

    tools = build_toolbox(
        host,
        runner,
        toolchain,
        sdk_root=sdk_root,
        project_dir=config.project_dir,
        home=config.home,
    )
    return StepContext(
        config=config,
        toolchain=toolchain,
        host=host,
        state=state,
        store=open_durable_store(host, config.home),
        tools=tools,
        prompter=TerminalPrompter(),
        console=Console(),
    )


@click.command()
@click.version_option(version=__version__, prog_name="devbootstrap")
def cli() -> None:
    """Set up this machine for Flutter/Android development.

    Installs the package manager and core packages, clones the project,
    installs Dart, FVM, the pinned Flutter SDK and the Android SDK,
    creates a debug keystore and verifies the toolchain.  Safe to re-run.
    """
    setup_logging(
        level=os.environ.get("DEVBOOTSTRAP_LOG_LEVEL", "WARNING"),
        log_file=os.environ.get("DEVBOOTSTRAP_LOG_FILE"),
        log_file_level=os.environ.get("DEVBOOTSTRAP_LOG_FILE_LEVEL"),
    )

    from devbootstrap.core.config.loader import ConfigError
    from devbootstrap.core.engine.pipeline import run_pipeline
    from devbootstrap.core.steps import build_steps

    try:
        ctx = _build_context()
    except (ConfigError, RuntimeError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"⚡ devbootstrap {__version__}", bold=True)
    click.echo(f"   Host:    {ctx.host}")
    click.echo(f"   Project: {ctx.config.project_dir}")

    report = run_pipeline(build_steps(ctx.host), ctx)
    logger.debug("Run report: %s", json.dumps(report.to_dict(), indent=2))
    ctx.console.summary(report)

    if not report.ok:
        err = report.error
        click.secho(f"[ERROR] {err.message}", fg="red", err=True)
        for line in err.details:
            click.echo(f"   {line}", err=True)
        if err.hint:
            click.secho(f"   → {err.hint}", fg="yellow", err=True)
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
