"""
Configuration loader.

Two sources, both read once at process start:

- ``BootstrapConfig`` — the handful of environment-variable overrides
  the CLI recognises (repository URL, project directory, and the
  secrets endpoint reserved for a future secrets fetch).
- ``Toolchain`` — the static catalog in ``core/data/toolchain.yml``,
  read with PyYAML and validated by Pydantic.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict

from devbootstrap.core.models.toolchain import Toolchain

logger = logging.getLogger(__name__)

TOOLCHAIN_FILE = Path(__file__).resolve().parent.parent / "data" / "toolchain.yml"

DEFAULT_REPO_URL = "git@github.com:ezpartyphdev/ezpartyph-flutter.git"
DEFAULT_PROJECT_DIRNAME = "ezpartyph-flutter"
DEFAULT_SECRETS_BASE_URL = "https://secrets.example.com/mobile"


class ConfigError(Exception):
    """Raised when the toolchain catalog is missing or invalid."""


class BootstrapConfig(BaseModel):
    """Pre-run configuration, immutable for the whole run."""

    model_config = ConfigDict(frozen=True)

    repo_url: str = DEFAULT_REPO_URL
    project_dir: Path
    home: Path
    # Reserved for a secrets fetch no step performs yet.
    secrets_base_url: str = DEFAULT_SECRETS_BASE_URL
    secrets_token: str = ""

    @property
    def ssh_dir(self) -> Path:
        return self.home / ".ssh"


def load_config(
    environ: Mapping[str, str] | None = None,
    *,
    cwd: Path | None = None,
    home: Path | None = None,
) -> BootstrapConfig:
    """Build the run configuration from environment overrides.

    Recognised variables (all optional):
        PROJECT_REPO       repository to clone
        PROJECT_DIR        clone destination (default: ./ezpartyph-flutter)
        SECRETS_BASE_URL   secrets endpoint (unused by any step)
        SECRETS_TOKEN      secrets token (unused by any step)
    """
    env = os.environ if environ is None else environ
    cwd = cwd or Path.cwd()
    home = home or Path.home()

    project_dir = env.get("PROJECT_DIR") or str(cwd / DEFAULT_PROJECT_DIRNAME)

    config = BootstrapConfig(
        repo_url=env.get("PROJECT_REPO") or DEFAULT_REPO_URL,
        project_dir=Path(project_dir).expanduser(),
        home=home,
        secrets_base_url=env.get("SECRETS_BASE_URL") or DEFAULT_SECRETS_BASE_URL,
        secrets_token=env.get("SECRETS_TOKEN", ""),
    )
    logger.debug("Config: repo=%s project_dir=%s", config.repo_url, config.project_dir)
    return config


def load_toolchain(path: Path | None = None) -> Toolchain:
    """Load and validate the toolchain catalog.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = path or TOOLCHAIN_FILE

    if not path.is_file():
        raise ConfigError(f"Toolchain catalog not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        toolchain = Toolchain.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid toolchain catalog: {e}") from e

    logger.debug("Loaded toolchain catalog with hosts: %s", ", ".join(toolchain.hosts))
    return toolchain
