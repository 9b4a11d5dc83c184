# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Helpers for writing generated files through a Filesystem."""

import logging
from pathlib import Path

import yaml

from gitops_generator.exceptions import DirectoryCreationError, ManifestWriteError
from gitops_generator.filesystem import Filesystem

logger = logging.getLogger(__name__)


def dump_yaml(doc: dict) -> bytes:
    """Serialize a single YAML document, keeping the key order of ``doc``."""
    return yaml.safe_dump(doc, default_flow_style=False, sort_keys=False).encode("utf-8")


def ensure_directory(fs: Filesystem, path: str | Path) -> None:
    """Create a directory and its parents.

    Raises:
        DirectoryCreationError: If the filesystem refuses to create it
    """
    try:
        fs.mkdir_all(path, 0o755)
    except OSError as e:
        raise DirectoryCreationError(
            f"failed to MkDirAll {path}: {e}", str(path)
        ) from e


def write_files(fs: Filesystem, directory: str | Path, files: dict[str, bytes]) -> None:
    """Write already serialized files into a directory, in order.

    Raises:
        ManifestWriteError: If a file cannot be written
    """
    for filename, content in files.items():
        path = Path(directory) / filename
        try:
            fs.write_file(path, content, 0o644)
        except OSError as e:
            raise ManifestWriteError(f"failed to write {path}: {e}", str(path)) from e
        logger.debug(f"Wrote {path}")


def remove_files(fs: Filesystem, directory: str | Path, filenames: list[str]) -> list[str]:
    """Remove files from a directory, skipping the ones that do not exist.

    Returns:
        Names of the files that were removed

    Raises:
        ManifestWriteError: If an existing file cannot be removed
    """
    removed = []
    for filename in filenames:
        path = Path(directory) / filename
        if not fs.exists(path):
            continue
        try:
            fs.remove_file(path)
        except OSError as e:
            raise ManifestWriteError(f"failed to remove {path}: {e}", str(path)) from e
        logger.debug(f"Removed {path}")
        removed.append(filename)
    return removed
