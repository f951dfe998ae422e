"""
Git adapter — clone plus the ssh-agent primitives.

Clone and ssh-add run attached to the terminal: git may ask to confirm
a host key and ssh-add asks for the key passphrase.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbootstrap.adapters.base import VersionControl
from devbootstrap.adapters.shell.command import CommandBacked, CommandRunner
from devbootstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)


def parse_agent_output(stdout: str) -> dict[str, str]:
    """Parse ``ssh-agent -s`` output into env vars.

    Lines look like ``SSH_AUTH_SOCK=/tmp/ssh-XXX/agent.123; export SSH_AUTH_SOCK;``.
    """
    env: dict[str, str] = {}
    for line in stdout.splitlines():
        if "=" in line and ";" in line:
            part = line.split(";")[0]
            key, val = part.split("=", 1)
            env[key.strip()] = val.strip()
    return env


class GitAdapter(CommandBacked, VersionControl):
    """git CLI + OpenSSH agent."""

    executable = "git"

    def __init__(self, runner: CommandRunner, *, windows: bool = False):
        super().__init__(runner)
        self.windows = windows

    @property
    def name(self) -> str:
        return "git"

    def clone(self, url: str, dest: Path) -> Receipt:
        return self._run(["git", "clone", url, str(dest)], "clone", capture=False)

    def agent_running(self) -> bool:
        # Windows OpenSSH talks to the agent service over a named pipe,
        # so there is no SSH_AUTH_SOCK to look for.
        if not self.windows and not self.runner.state.get("SSH_AUTH_SOCK"):
            return False
        r = self._run(["ssh-add", "-l"], "agent")
        # 0 = keys loaded, 1 = agent reachable but empty, 2 = no agent
        return r.return_code in (0, 1)

    def start_agent(self) -> dict[str, str] | None:
        if self.windows:
            r = self._run(
                ["powershell", "-NoProfile", "-Command", "Start-Service ssh-agent"],
                "agent",
            )
            if r.failed:
                logger.error("Failed to start ssh-agent service: %s", r.error)
                return None
            return {}

        r = self._run(["ssh-agent", "-s"], "agent")
        if r.failed:
            logger.error("Failed to start ssh-agent: %s", r.error)
            return None
        env = parse_agent_output(r.output)
        if "SSH_AUTH_SOCK" not in env:
            logger.error("ssh-agent did not report SSH_AUTH_SOCK")
            return None
        logger.info("Started ssh-agent (PID: %s)", env.get("SSH_AGENT_PID", "?"))
        return env

    def add_key(self, key_path: Path) -> Receipt:
        return self._run(["ssh-add", str(key_path)], "add_key", capture=False)
