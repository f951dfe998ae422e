"""
Host detection and path-template expansion.

The pipeline supports three host families, each with its own package
manager: Windows (Chocolatey), Debian/Ubuntu (apt) and Arch (pacman).
"""

from __future__ import annotations

import logging
import platform
import re
from pathlib import Path

from devbootstrap.core.models.environment import EnvironmentState

logger = logging.getLogger(__name__)

_OS_RELEASE = Path("/etc/os-release")

_VAR_PATTERN = re.compile(r"%([A-Za-z_][A-Za-z0-9_]*)%|\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def read_os_release(path: Path = _OS_RELEASE) -> dict[str, str]:
    """Parse ``/etc/os-release`` into a dict (empty when unreadable)."""
    data: dict[str, str] = {}
    try:
        with open(path, encoding="utf-8") as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or "=" not in line or line.startswith("#"):
                    continue
                key, value = line.split("=", 1)
                data[key] = value.strip().strip('"').strip("'")
    except OSError:
        return {}
    return data


def detect_host(system: str | None = None, os_release: dict[str, str] | None = None) -> str:
    """Return ``"windows"``, ``"debian"`` or ``"arch"``.

    Raises:
        RuntimeError: for an unsupported OS or Linux distribution.
    """
    system = system or platform.system()
    if system == "Windows":
        return "windows"
    if system != "Linux":
        raise RuntimeError(f"Unsupported operating system: {system}")

    info = read_os_release() if os_release is None else os_release
    haystack = " ".join(v.lower() for v in (info.get("ID", ""), info.get("ID_LIKE", "")) if v)
    if any(token in haystack for token in ("ubuntu", "debian")):
        return "debian"
    if "arch" in haystack:
        return "arch"
    raise RuntimeError(
        f"Unsupported Linux distribution: {info.get('PRETTY_NAME') or info.get('ID') or 'unknown'}"
    )


def expand_template(template: str, state: EnvironmentState, home: Path) -> str:
    """Expand ``~``, ``%VAR%``, ``$VAR`` and ``${VAR}`` against ``state``.

    Unknown variables are left untouched.
    """

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2) or match.group(3)
        value = state.get(name)
        return value if value is not None else match.group(0)

    expanded = _VAR_PATTERN.sub(_sub, template)
    if expanded == "~" or expanded.startswith(("~/", "~\\")):
        expanded = str(home) + expanded[1:]
    return expanded


def expand_path(template: str, state: EnvironmentState, home: Path) -> Path:
    return Path(expand_template(template, state, home))
