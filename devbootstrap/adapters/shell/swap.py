"""
Swap adapter — Linux swap file creation.

The swap file is created, enabled and registered in /etc/fstab so it
survives a reboot.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from devbootstrap.adapters.base import SwapManager
from devbootstrap.adapters.shell.command import CommandBacked, CommandRunner
from devbootstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)


def parse_swap_total(meminfo: str) -> int:
    """``SwapTotal:  2097148 kB`` → 2097148 (0 when absent)."""
    for line in meminfo.splitlines():
        if line.startswith("SwapTotal:"):
            parts = line.split()
            if len(parts) >= 2 and parts[1].isdigit():
                return int(parts[1])
    return 0


class LinuxSwapAdapter(CommandBacked, SwapManager):
    executable = "swapon"

    def __init__(self, runner: CommandRunner, meminfo: Path = Path("/proc/meminfo")):
        super().__init__(runner)
        self.meminfo = meminfo

    @property
    def name(self) -> str:
        return "swap"

    def total_swap_kib(self) -> int:
        try:
            return parse_swap_total(self.meminfo.read_text(encoding="utf-8"))
        except OSError:
            return 0

    def create_swapfile(self, path: str, size_mib: int) -> Receipt:
        steps = [
            ["dd", "if=/dev/zero", f"of={path}", "bs=1M", f"count={size_mib}"],
            ["chmod", "600", path],
            ["mkswap", path],
            ["swapon", path],
        ]
        for argv in steps:
            r = self._run(argv, "create", needs_sudo=True)
            if r.failed:
                return r

        fstab_line = f"{path} none swap sw 0 0"
        return self._run(
            ["sh", "-c", f"grep -qF {shlex.quote(fstab_line)} /etc/fstab || "
                         f"echo {shlex.quote(fstab_line)} >> /etc/fstab"],
            "fstab",
            needs_sudo=True,
        )
