"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import TOOLCHAIN_TOP, FakeRunner, commit_file, make_archive, run_git


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def git_remote(tmp_path: Path) -> Path:
    """A local repository with a ``main`` branch and a requirements manifest."""
    path = tmp_path / "remote"
    path.mkdir()
    run_git(["init", "--quiet"], cwd=path)
    run_git(["checkout", "--quiet", "-b", "main"], cwd=path)
    run_git(["config", "user.email", "tfm@example.com"], cwd=path)
    run_git(["config", "user.name", "TFM Test"], cwd=path)
    commit_file(path, "README.md", "trusted firmware\n")
    commit_file(path, "tools/requirements.txt", "pyyaml\n")
    return path


@pytest.fixture
def toolchain_archive(tmp_path: Path) -> Path:
    return make_archive(tmp_path / "mirror", top=TOOLCHAIN_TOP)
