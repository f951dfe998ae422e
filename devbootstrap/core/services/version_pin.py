"""
Flutter version pin detection.

The project pins its Flutter version in ``.fvm/fvm_config.json``.  A
missing or unreadable file is not an error: the catalog default is used
and a ``ConfigMissing`` warning is reported.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from devbootstrap.core.errors import ConfigMissing
from devbootstrap.core.models.toolchain import VersionPinSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PinResult:
    version: str
    source: str  # "config" or "default"
    warning: ConfigMissing | None = None


def detect_version_pin(project_dir: Path, settings: VersionPinSettings | None = None) -> PinResult:
    """Read the pinned Flutter version for ``project_dir``.  Never raises."""
    settings = settings or VersionPinSettings()
    config_file = project_dir / settings.file

    if not config_file.is_file():
        return PinResult(
            settings.default,
            "default",
            ConfigMissing(f"{config_file} not found; using Flutter {settings.default}"),
        )

    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Unreadable %s: %s", config_file, e)
        return PinResult(
            settings.default,
            "default",
            ConfigMissing(f"Could not parse {config_file}; using Flutter {settings.default}"),
        )

    version = data.get(settings.field) if isinstance(data, dict) else None
    if not isinstance(version, str) or not version.strip():
        return PinResult(
            settings.default,
            "default",
            ConfigMissing(f"No '{settings.field}' in {config_file}; using Flutter {settings.default}"),
        )

    logger.info("Detected Flutter version pin %s from %s", version.strip(), config_file)
    return PinResult(version.strip(), "config")
