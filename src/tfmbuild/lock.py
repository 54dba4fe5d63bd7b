"""Exclusive per-output-root run lock."""

from __future__ import annotations

import fcntl
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from tfmbuild.errors import LockError


@contextmanager
def run_lock(path: str | Path, *, blocking: bool = True) -> Iterator[Path]:
    """Hold an exclusive ``flock`` on *path* for the duration of the block."""
    lock_path = Path(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    with lock_path.open("a+") as handle:
        try:
            fcntl.flock(handle.fileno(), flags)
        except BlockingIOError as exc:
            raise LockError(
                "Another pipeline run holds the output directory lock.",
                hint="Wait for the other run to finish or use a different output directory.",
                context={"operation": "run_lock", "path": str(lock_path)},
            ) from exc
        try:
            yield lock_path
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


__all__ = ["run_lock"]
