"""Helpers shared by the test modules."""

from __future__ import annotations

import subprocess
import tarfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from tfmbuild.process import CommandResult

TOOLCHAIN_TOP = "gcc-arm-none-eabi-10.3-2021.10"


@dataclass
class RecordedCall:
    argv: tuple[str, ...]
    cwd: Path | None
    env: dict[str, str] | None


@dataclass
class FakeRunner:
    """Stand-in for ``run_command`` that records calls instead of spawning tools."""

    calls: list[RecordedCall] = field(default_factory=list)
    failures: dict[str, tuple[int, str]] = field(default_factory=dict)
    outputs: dict[str, str] = field(default_factory=dict)
    side_effects: list[Callable[[tuple[str, ...]], None]] = field(default_factory=list)

    def fail_on(self, token: str, *, returncode: int = 1, stderr: str = "boom") -> None:
        self.failures[token] = (returncode, stderr)

    def respond(self, token: str, stdout: str) -> None:
        self.outputs[token] = stdout

    def __call__(
        self,
        argv: object,
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        command = tuple(str(arg) for arg in argv)  # type: ignore[attr-defined]
        self.calls.append(RecordedCall(argv=command, cwd=cwd, env=dict(env) if env else None))
        for token, (returncode, stderr) in self.failures.items():
            if token in command:
                return CommandResult(argv=command, returncode=returncode, stdout="", stderr=stderr)
        for effect in self.side_effects:
            effect(command)
        stdout = next((out for token, out in self.outputs.items() if token in command), "")
        return CommandResult(argv=command, returncode=0, stdout=stdout, stderr="")


def commit_file(repo: Path, name: str, content: str, *, message: str | None = None) -> str:
    target = repo / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    run_git(["add", name], cwd=repo)
    run_git(["commit", "--quiet", "-m", message or f"add {name}"], cwd=repo)
    return run_git(["rev-parse", "HEAD"], cwd=repo)


def make_archive(directory: Path, *, top: str) -> Path:
    staging = directory / "staging" / top / "bin"
    staging.mkdir(parents=True)
    for tool in ("arm-none-eabi-gcc", "arm-none-eabi-g++"):
        binary = staging / tool
        binary.write_text("#!/bin/sh\n", encoding="utf-8")
        binary.chmod(0o755)
    archive_path = directory / "gcc-arm-none-eabi-10.3-2021.10-x86_64-linux.tar.bz2"
    with tarfile.open(archive_path, "w:bz2") as archive:
        archive.add(directory / "staging" / top, arcname=top)
    return archive_path


def run_git(argv: list[str], *, cwd: Path) -> str:
    completed = subprocess.run(
        ["git", *argv],
        cwd=cwd,
        check=False,
        text=True,
        capture_output=True,
    )
    if completed.returncode != 0:
        raise RuntimeError(f"git {' '.join(argv)} failed: {completed.stderr.strip()}")
    return completed.stdout.strip()
