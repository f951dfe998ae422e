"""
Archive download, extraction and layout normalization.

The Android command-line tools ship as a zip whose single top-level
directory is ``cmdline-tools/`` (older releases used ``tools/``, some
mirrors use ``cmdline-tools-<build>/``).  ``sdkmanager`` only works
from ``<sdk>/cmdline-tools/latest``, so whatever the top-level
directory is called, it gets relocated there.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import urllib.error
import urllib.request
import zipfile
from collections.abc import Callable
from pathlib import Path

from devbootstrap.core.errors import NetworkFailure, StepFailed

logger = logging.getLogger(__name__)

Downloader = Callable[[str, Path], None]


def download_file(url: str, dest: Path) -> None:
    """Stream ``url`` into ``dest``.

    Raises:
        NetworkFailure: On any HTTP or connection error.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    req = urllib.request.Request(url, headers={"User-Agent": "devbootstrap/1.0"})
    logger.info("Downloading %s", url)
    try:
        with urllib.request.urlopen(req) as resp, open(dest, "wb") as f:
            shutil.copyfileobj(resp, f)
    except (urllib.error.URLError, OSError) as e:
        dest.unlink(missing_ok=True)
        raise NetworkFailure(f"Download failed: {url} ({e})") from e
    logger.debug("Saved %s (%d bytes)", dest, dest.stat().st_size)


def extract_zip(archive: Path, dest: Path) -> None:
    """Extract ``archive`` into ``dest``, keeping Unix execute bits.

    ``zipfile`` drops permissions; the mode is restored from each
    entry's external attributes so ``sdkmanager`` stays runnable.

    Raises:
        StepFailed: If the archive is not a valid zip.
    """
    dest.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                extracted = Path(zf.extract(info, dest))
                mode = (info.external_attr >> 16) & 0o777
                if mode and not info.is_dir():
                    os.chmod(extracted, mode | stat.S_IRUSR)
    except (zipfile.BadZipFile, OSError) as e:
        raise StepFailed(f"Could not extract {archive.name}: {e}") from e


def normalize_single_top_level(extract_dir: Path, dest_latest: Path) -> Path:
    """Move the extracted tree to ``dest_latest``.

    With exactly one top-level directory in ``extract_dir`` that
    directory becomes ``dest_latest``; otherwise ``extract_dir`` itself
    does.  An existing ``dest_latest`` is replaced.
    """
    entries = list(extract_dir.iterdir())
    source = entries[0] if len(entries) == 1 and entries[0].is_dir() else extract_dir

    if dest_latest.exists():
        shutil.rmtree(dest_latest)
    dest_latest.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(dest_latest))
    logger.info("Relocated %s -> %s", source.name, dest_latest)

    if source is not extract_dir and extract_dir.exists():
        shutil.rmtree(extract_dir, ignore_errors=True)
    return dest_latest


def install_archive(url: str, dest_latest: Path, *, downloader: Downloader = download_file) -> Path:
    """Download, extract and normalize ``url`` into ``dest_latest``.

    Staging happens next to ``dest_latest`` so the final move stays on
    one filesystem.
    """
    staging_parent = dest_latest.parent
    staging_parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(prefix=".staging-", dir=staging_parent) as tmp:
        tmp_dir = Path(tmp)
        archive = tmp_dir / "archive.zip"
        downloader(url, archive)
        extract_dir = tmp_dir / "extracted"
        extract_zip(archive, extract_dir)
        return normalize_single_top_level(extract_dir, dest_latest)
