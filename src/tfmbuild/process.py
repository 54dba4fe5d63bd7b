"""Child-process execution with scoped environments."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

STDERR_TAIL = 2000


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def failure_context(self) -> dict[str, str]:
        return {
            "argv": " ".join(self.argv),
            "returncode": str(self.returncode),
            "stderr": self.stderr.strip()[-STDERR_TAIL:],
        }


def child_env(
    *,
    prepend_path: Sequence[str | Path] = (),
    overrides: Mapping[str, str] | None = None,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return a copy of the inherited environment with overrides applied.

    Entries in *prepend_path* are placed ahead of the inherited ``PATH``.
    The parent process environment is never modified.
    """
    env = dict(os.environ if base is None else base)
    env.update(overrides or {})
    if prepend_path:
        entries = [str(entry) for entry in prepend_path]
        inherited = env.get("PATH", "")
        if inherited:
            entries.append(inherited)
        env["PATH"] = os.pathsep.join(entries)
    return env


def run_command(
    argv: Sequence[str | Path],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    command = tuple(str(arg) for arg in argv)
    try:
        completed = subprocess.run(
            command,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            check=False,
            text=True,
            capture_output=True,
        )
    except OSError as exc:
        # Missing or non-executable tool; report it the way a shell would.
        return CommandResult(argv=command, returncode=127, stdout="", stderr=str(exc))
    return CommandResult(
        argv=command,
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


__all__ = ["CommandResult", "child_env", "run_command"]
