"""
Command runner — the single place ``subprocess.run`` is called.

Every adapter goes through here so logging, executable resolution and
error capture are identical for apt, git, sdkmanager and friends.

Executables are resolved against the run's in-process PATH (not the
PATH this Python process started with), so a tool installed by an
earlier step is found immediately.

There is deliberately no timeout: a hung download or prompt blocks the
run until the external process exits.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Sequence

from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.environment import EnvironmentState

logger = logging.getLogger(__name__)

_TAIL = 2000


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class CommandRunner:
    """Run external commands with the pipeline's environment."""

    def __init__(self, state: EnvironmentState):
        self.state = state

    def which(self, executable: str) -> str | None:
        """Resolve ``executable`` against the in-process PATH."""
        entries = self.state.path_entries()
        if not entries:
            return shutil.which(executable)
        for directory in entries:
            found = shutil.which(executable, path=directory)
            if found:
                return found
        return None

    def run(
        self,
        argv: Sequence[str],
        *,
        tool: str,
        operation: str,
        cwd: str | None = None,
        input_text: str | None = None,
        env_overrides: dict[str, str] | None = None,
        needs_sudo: bool = False,
        capture: bool = True,
    ) -> Receipt:
        """Run ``argv`` and return a Receipt.  Never raises.

        Args:
            argv: Command and arguments.
            tool: Adapter name recorded on the receipt.
            operation: Operation name recorded on the receipt.
            cwd: Working directory.
            input_text: Text piped to stdin (e.g. license answers).
            env_overrides: Extra variables on top of the run's environment.
            needs_sudo: Prefix with ``sudo`` unless already root.
            capture: Capture stdout/stderr.  When False the child writes
                straight to the terminal so long installs show progress.
        """
        cmd = list(argv)
        resolved = self.which(cmd[0])
        if resolved:
            cmd[0] = resolved
        if needs_sudo and hasattr(os, "geteuid") and os.geteuid() != 0:
            cmd = ["sudo", *cmd]

        env = self.state.as_environ()
        if env_overrides:
            env.update(env_overrides)

        logger.info("CMD %s", _fmt_argv(cmd))
        start = time.monotonic()
        try:
            if capture:
                result = subprocess.run(
                    cmd,
                    input=input_text,
                    capture_output=True,
                    text=True,
                    env=env,
                    cwd=cwd,
                )
            else:
                result = subprocess.run(
                    cmd,
                    input=input_text,
                    text=True,
                    env=env,
                    cwd=cwd,
                )
        except FileNotFoundError:
            return Receipt.failure(
                tool=tool,
                operation=operation,
                error=f"Executable not found: {argv[0]}",
                metadata={"command": _fmt_argv(cmd), "not_found": True},
            )
        except OSError as e:
            logger.exception("Subprocess error: %s", cmd)
            return Receipt.failure(
                tool=tool,
                operation=operation,
                error=f"Command execution error: {e}",
                metadata={"command": _fmt_argv(cmd)},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "")[-_TAIL:]
        stderr = (result.stderr or "")[-_TAIL:]
        if stdout:
            logger.debug("STDOUT %s", stdout.strip())
        if stderr:
            logger.debug("STDERR %s", stderr.strip())

        if result.returncode == 0:
            return Receipt.success(
                tool=tool,
                operation=operation,
                output=stdout.strip(),
                return_code=0,
                duration_ms=elapsed_ms,
                metadata={"command": _fmt_argv(cmd), "stderr": stderr.strip()},
            )
        return Receipt.failure(
            tool=tool,
            operation=operation,
            error=stderr.strip() or f"Command exited with code {result.returncode}",
            return_code=result.returncode,
            output=stdout.strip(),
            duration_ms=elapsed_ms,
            metadata={"command": _fmt_argv(cmd)},
        )


class CommandBacked:
    """Mixin for adapters whose operations are plain command lines."""

    executable: str = ""
    name: str

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def is_available(self) -> bool:
        return self.runner.which(self.executable) is not None

    def _run(self, argv: Sequence[str], operation: str, **kwargs) -> Receipt:
        return self.runner.run(argv, tool=self.name, operation=operation, **kwargs)
