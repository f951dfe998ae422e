"""
Durable per-user environment store.

The in-process ``EnvironmentState`` dies with the process; this store is
what the *next* terminal session sees.

- Windows: ``HKEY_CURRENT_USER\\Environment`` in the registry, followed
  by a ``WM_SETTINGCHANGE`` broadcast so new shells pick it up.
- Linux: a managed block of ``export`` lines in ``~/.bashrc``.

Writes are plain overwrites (last writer wins).  The store is read by
the Environment Probe when looking for tools a previous installer put
on the durable PATH, and never read back by the propagator mid-run.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

BLOCK_BEGIN = "# >>> devbootstrap >>>"
BLOCK_END = "# <<< devbootstrap <<<"

_EXPORT_RE = re.compile(r'^export ([A-Za-z_][A-Za-z0-9_]*)="(.*)"$')
_PATH_EXPORT_RE = re.compile(r'^export PATH="(.*):\$PATH"$')

WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002
_HWND_BROADCAST = 0xFFFF

_USER_ENV_KEY = r"Environment"
_MACHINE_ENV_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"


class DurableEnvStore(ABC):
    """Persisted user environment variables."""

    @abstractmethod
    def get(self, name: str) -> str | None:
        """Return the persisted value of ``name`` (None if unset)."""

    @abstractmethod
    def set(self, name: str, value: str) -> None:
        """Persist ``name=value``, overwriting any previous value."""

    @abstractmethod
    def path_entries(self) -> list[str]:
        """Directories the persisted PATH contributes."""

    @abstractmethod
    def add_path(self, segment: str) -> bool:
        """Persist ``segment`` on PATH.  Returns False if already present."""


# ═══════════════════════════════════════════════════════════════════
#  Linux: ~/.bashrc managed block
# ═══════════════════════════════════════════════════════════════════


class ProfileEnvStore(DurableEnvStore):
    """``export`` lines inside a marked block of a shell rc file."""

    def __init__(self, rc_file: Path):
        self.rc_file = rc_file

    def _read(self) -> str:
        try:
            return self.rc_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def _block_lines(self, text: str) -> list[str]:
        lines = text.splitlines()
        try:
            start = lines.index(BLOCK_BEGIN)
            end = lines.index(BLOCK_END, start)
        except ValueError:
            return []
        return lines[start + 1:end]

    def _write_block(self, block: list[str]) -> None:
        text = self._read()
        lines = text.splitlines()
        rendered = [BLOCK_BEGIN, *block, BLOCK_END]
        if BLOCK_BEGIN in lines and BLOCK_END in lines:
            start = lines.index(BLOCK_BEGIN)
            end = lines.index(BLOCK_END, start)
            lines[start:end + 1] = rendered
        else:
            if lines and lines[-1].strip():
                lines.append("")
            lines.extend(rendered)
        self.rc_file.parent.mkdir(parents=True, exist_ok=True)
        self.rc_file.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def get(self, name: str) -> str | None:
        for line in self._block_lines(self._read()):
            m = _EXPORT_RE.match(line.strip())
            if m and m.group(1) == name and not _PATH_EXPORT_RE.match(line.strip()):
                return m.group(2)
        return None

    def set(self, name: str, value: str) -> None:
        line = f'export {name}="{value}"'
        block = [
            ln for ln in self._block_lines(self._read())
            if not ln.strip().startswith(f"export {name}=")
        ]
        block.append(line)
        self._write_block(block)
        logger.debug("Persisted %s in %s", name, self.rc_file)

    def path_entries(self) -> list[str]:
        entries: list[str] = []
        for line in self._read().splitlines():
            m = _PATH_EXPORT_RE.match(line.strip())
            if m:
                entries.extend(p for p in m.group(1).split(":") if p and p != "$PATH")
        return entries

    def add_path(self, segment: str) -> bool:
        # Substring match over the whole file, so lines added by hand or
        # by an older version of this tool also count.
        if segment in self._read():
            return False
        block = self._block_lines(self._read())
        block.append(f'export PATH="{segment}:$PATH"')
        self._write_block(block)
        logger.debug("Persisted PATH segment %s in %s", segment, self.rc_file)
        return True


# ═══════════════════════════════════════════════════════════════════
#  Windows: HKCU\Environment
# ═══════════════════════════════════════════════════════════════════


class WindowsRegistryStore(DurableEnvStore):
    """User environment variables in the Windows registry."""

    def _query(self, root: int, subkey: str, name: str) -> tuple[str | None, int | None]:
        import winreg

        try:
            with winreg.OpenKey(root, subkey, 0, winreg.KEY_READ) as key:
                value, reg_type = winreg.QueryValueEx(key, name)
                return str(value), reg_type
        except OSError:
            return None, None

    def get(self, name: str) -> str | None:
        import winreg

        value, _ = self._query(winreg.HKEY_CURRENT_USER, _USER_ENV_KEY, name)
        return value

    def set(self, name: str, value: str, reg_type: int | None = None) -> None:
        import winreg

        if reg_type is None:
            reg_type = winreg.REG_EXPAND_SZ if "%" in value else winreg.REG_SZ
        with winreg.OpenKey(
            winreg.HKEY_CURRENT_USER, _USER_ENV_KEY, 0, winreg.KEY_READ | winreg.KEY_WRITE,
        ) as key:
            winreg.SetValueEx(key, name, 0, reg_type, value)
        logger.debug("Persisted %s in HKCU\\Environment", name)
        broadcast_environment_change()

    def path_entries(self) -> list[str]:
        import winreg

        user, _ = self._query(winreg.HKEY_CURRENT_USER, _USER_ENV_KEY, "Path")
        machine, _ = self._query(winreg.HKEY_LOCAL_MACHINE, _MACHINE_ENV_KEY, "Path")
        parts: list[str] = []
        for value in (machine, user):
            if value:
                parts.extend(p for p in value.split(";") if p)
        return parts

    def add_path(self, segment: str) -> bool:
        import winreg

        current, reg_type = self._query(winreg.HKEY_CURRENT_USER, _USER_ENV_KEY, "Path")
        current = current or ""
        if segment in current:
            return False
        new_value = f"{current.rstrip(';')};{segment}" if current else segment
        if reg_type not in (winreg.REG_EXPAND_SZ, winreg.REG_SZ):
            reg_type = winreg.REG_EXPAND_SZ
        self.set("Path", new_value, reg_type=reg_type)
        return True


def broadcast_environment_change() -> None:
    """Tell running Windows shells/explorer that the environment changed."""
    import ctypes

    result = ctypes.c_ulong()
    ok = ctypes.windll.user32.SendMessageTimeoutW(  # type: ignore[attr-defined]
        _HWND_BROADCAST,
        WM_SETTINGCHANGE,
        0,
        "Environment",
        SMTO_ABORTIFHUNG,
        5000,
        ctypes.byref(result),
    )
    if not ok:
        logger.warning("WM_SETTINGCHANGE broadcast did not complete; new terminals may need a sign-out")


def open_durable_store(host: str, home: Path) -> DurableEnvStore:
    """Pick the durable store for this host family."""
    if host == "windows":
        return WindowsRegistryStore()
    return ProfileEnvStore(home / ".bashrc")
