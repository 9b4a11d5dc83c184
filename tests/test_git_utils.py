# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Tests for git helpers."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gitops_generator.git_utils import create_generated_commit, get_git_commit


@patch("gitops_generator.git_utils.subprocess.run")
def test_get_git_commit(mock_run: MagicMock, tmp_path: Path) -> None:
    mock_run.return_value = MagicMock(returncode=0, stdout="abc123\n", stderr="")
    assert get_git_commit(tmp_path) == "abc123"
    assert mock_run.call_args.args[0] == ["git", "rev-parse", "HEAD"]


@patch("gitops_generator.git_utils.subprocess.run")
def test_get_git_commit_failure(mock_run: MagicMock, tmp_path: Path) -> None:
    mock_run.side_effect = subprocess.CalledProcessError(128, "git", stderr="not a repo")
    with pytest.raises(RuntimeError, match="not a repo"):
        get_git_commit(tmp_path)


@patch("gitops_generator.git_utils.subprocess.run")
def test_create_commit_stages_only_generated_files(mock_run: MagicMock, tmp_path: Path) -> None:
    mock_run.side_effect = [
        MagicMock(returncode=0, stdout="", stderr=""),  # git add
        MagicMock(returncode=1, stdout="", stderr=""),  # git diff --cached
        MagicMock(returncode=0, stdout="", stderr=""),  # git commit
    ]
    generated = {tmp_path / "b/kustomization.yaml", tmp_path / "a/deployment.yaml"}

    assert create_generated_commit(tmp_path, "0.1.0", "abc123", generated)

    add_args = mock_run.call_args_list[0].args[0]
    assert add_args == ["git", "add", "--", "a/deployment.yaml", "b/kustomization.yaml"]
    commit_args = mock_run.call_args_list[2].args[0]
    assert commit_args[:3] == ["git", "commit", "-m"]
    assert "Config commit: abc123" in commit_args[3]
    assert "Tool version: 0.1.0" in commit_args[3]


@patch("gitops_generator.git_utils.subprocess.run")
def test_create_commit_nothing_to_commit(mock_run: MagicMock, tmp_path: Path) -> None:
    mock_run.side_effect = [
        MagicMock(returncode=0, stdout="", stderr=""),
        MagicMock(returncode=0, stdout="", stderr=""),
    ]
    assert not create_generated_commit(tmp_path, "0.1.0", "abc123", {tmp_path / "x.yaml"})
    assert mock_run.call_count == 2
