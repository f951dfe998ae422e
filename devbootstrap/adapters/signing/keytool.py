"""
keytool adapter — Android debug keystore generation.
"""

from __future__ import annotations

from pathlib import Path

from devbootstrap.adapters.base import CredentialTool
from devbootstrap.adapters.shell.command import CommandBacked
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.toolchain import KeystoreSettings


class KeytoolAdapter(CommandBacked, CredentialTool):
    executable = "keytool"

    @property
    def name(self) -> str:
        return "keytool"

    def generate(self, keystore: Path, settings: KeystoreSettings) -> Receipt:
        return self._run(
            [
                "keytool", "-genkey", "-v",
                "-keystore", str(keystore),
                "-alias", settings.alias,
                "-storepass", settings.password,
                "-keypass", settings.password,
                "-keyalg", "RSA",
                "-keysize", "2048",
                "-validity", str(settings.validity_days),
                "-dname", settings.dname,
            ],
            "generate",
        )
