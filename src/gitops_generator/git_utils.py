# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Git utilities for committing generated manifests."""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def _git(args: list[str], cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )


def get_git_commit(path: Path) -> str:
    """
    Get the current git commit hash of a directory.

    Args:
        path: Directory to get commit hash for

    Returns:
        Full commit hash (40 characters)

    Raises:
        RuntimeError: If not a git repository or git command fails
    """
    try:
        return _git(["rev-parse", "HEAD"], path).stdout.strip()
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Failed to get git commit for {path}: {e.stderr}") from e


def is_git_dirty(path: Path) -> bool:
    """
    Check if a git directory has uncommitted changes.

    Raises:
        RuntimeError: If not a git repository or git command fails
    """
    try:
        return bool(_git(["status", "--porcelain"], path).stdout.strip())
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Failed to check git status for {path}: {e.stderr}") from e


def create_generated_commit(
    output_dir: Path, version: str, config_commit: str, generated_files: set[Path]
) -> bool:
    """
    Commit the generated files in the output directory.

    Only the generated files are staged; hand-authored files and other local
    changes are left alone.

    Args:
        output_dir: Root of the GitOps repository
        version: Version of gitops-generator
        config_commit: Commit hash of the config directory
        generated_files: Paths written in this run

    Returns:
        True if a commit was created, False if nothing changed

    Raises:
        RuntimeError: If git operations fail
    """
    try:
        paths = sorted(str(p.relative_to(output_dir)) for p in generated_files)
        if paths:
            _git(["add", "--", *paths], output_dir)

        staged = subprocess.run(
            ["git", "diff", "--cached", "--quiet"],
            cwd=output_dir,
            capture_output=True,
            text=True,
        )
        if staged.returncode == 0:
            logger.info("There is nothing to commit.")
            return False
        if staged.returncode != 1:
            raise RuntimeError(
                f"Failed to inspect staged changes in {output_dir}: {staged.stderr}"
            )

        commit_message = (
            f"Generate GitOps resources\n"
            f"\n"
            f"Config commit: {config_commit}\n"
            f"Tool version: {version}"
        )
        _git(["commit", "-m", commit_message], output_dir)
        return True
    except subprocess.CalledProcessError as e:
        raise RuntimeError(
            f"Failed to create git commit in {output_dir}: {e.stderr}"
        ) from e
