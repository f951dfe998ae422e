"""
Repository clone with one interactive SSH-key retry.

    Attempt1 ──ok──▶ Cloned
       │ fail
       ▼
    ask "add your key now?" ──no──▶ Aborted (print manual commands)
       │ yes
       ▼
    ask key filename ──missing file──▶ Aborted
       │
       ▼
    ssh-agent + ssh-add ──fail──▶ Aborted
       │
       ▼
    Attempt2 ──ok──▶ Cloned
       │ fail
       ▼
    Aborted

There is exactly one retry.  The answers are collected once and thrown
away when the flow ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from devbootstrap.adapters.base import VersionControl
from devbootstrap.core.services.propagator import EnvironmentPropagator

if TYPE_CHECKING:
    from devbootstrap.ui.console import Console
    from devbootstrap.ui.prompt import Prompter

logger = logging.getLogger(__name__)

MANUAL_KEY_COMMANDS = (
    'eval "$(ssh-agent -s)"',
    "ssh-add ~/.ssh/[YOUR_KEY_FILE]",
)

# CloneResult.reason values for an aborted clone.
REASON_DECLINED = "user declined SSH key setup"
REASON_KEY_MISSING = "key file not found"
REASON_ADD_FAILED = "ssh-add failed"
REASON_RETRY_FAILED = "second clone failed"


class CloneOutcome(str, Enum):
    CLONED = "cloned"
    ABORTED = "aborted"


@dataclass(frozen=True)
class RecoveryDecision:
    """What the user chose after the first clone failed."""

    retry: bool
    key_file: str | None = None


@dataclass
class CloneResult:
    outcome: CloneOutcome
    attempts: int = 0
    reason: str = ""
    decision: RecoveryDecision | None = None
    instructions: list[str] = field(default_factory=list)

    @property
    def cloned(self) -> bool:
        return self.outcome == CloneOutcome.CLONED


def _is_yes(answer: str) -> bool:
    return answer.strip().lower() in ("", "y", "yes")


class CloneRecoveryFlow:
    """Drives one clone through the state machine above."""

    def __init__(
        self,
        vcs: VersionControl,
        propagator: EnvironmentPropagator,
        prompter: Prompter,
        console: Console,
        *,
        default_key: str = "id_ed25519",
    ):
        self.vcs = vcs
        self.propagator = propagator
        self.prompter = prompter
        self.console = console
        self.default_key = default_key

    def run(self, url: str, dest: Path, ssh_dir: Path) -> CloneResult:
        self.console.info(f"Cloning {url} into {dest}")
        if self.vcs.clone(url, dest).ok:
            return CloneResult(CloneOutcome.CLONED, attempts=1)

        self.console.warn("Clone failed. This is usually an SSH key that is not loaded into ssh-agent.")
        decision = self._ask()
        if not decision.retry:
            self.console.error("Skipping SSH key setup. Load your key manually, then re-run:")
            for line in MANUAL_KEY_COMMANDS:
                self.console.plain(f"  {line}")
            return CloneResult(
                CloneOutcome.ABORTED,
                attempts=1,
                reason=REASON_DECLINED,
                decision=decision,
                instructions=list(MANUAL_KEY_COMMANDS),
            )

        key_path = ssh_dir / Path(decision.key_file or self.default_key).expanduser()
        if not key_path.is_file():
            self.console.error(f"SSH key file not found: {key_path}")
            return CloneResult(CloneOutcome.ABORTED, attempts=1, reason=REASON_KEY_MISSING, decision=decision)

        if not self._load_key(key_path):
            self.console.error("Failed to add SSH key. If it has a passphrase, make sure you typed it correctly.")
            return CloneResult(CloneOutcome.ABORTED, attempts=1, reason=REASON_ADD_FAILED, decision=decision)

        self.console.info("SSH key added. Retrying clone...")
        if self.vcs.clone(url, dest).ok:
            return CloneResult(CloneOutcome.CLONED, attempts=2, decision=decision)

        self.console.error("Clone failed again. Please check your repository URL and key permissions.")
        return CloneResult(CloneOutcome.ABORTED, attempts=2, reason=REASON_RETRY_FAILED, decision=decision)

    def _ask(self) -> RecoveryDecision:
        # No readable answer counts as "no".
        try:
            answer = self.prompter.ask("Do you want to try adding your key now? [Y/n]", "")
            if not _is_yes(answer):
                return RecoveryDecision(retry=False)
            key_file = self.prompter.ask(
                f"Enter your private key filename (default: {self.default_key})", self.default_key
            )
        except EOFError:
            logger.info("No answer on stdin; skipping SSH key setup")
            self.console.plain("")
            return RecoveryDecision(retry=False)
        return RecoveryDecision(retry=True, key_file=key_file.strip() or self.default_key)

    def _load_key(self, key_path: Path) -> bool:
        if not self.vcs.agent_running():
            env = self.vcs.start_agent()
            if env is None:
                return False
            for name, value in env.items():
                self.propagator.set_variable(name, value, persist=False)
        return self.vcs.add_key(key_path).ok
