"""Mutable source checkout sync with clone-on-missing and re-clone on failure."""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from tfmbuild.errors import FailedStep, SyncError
from tfmbuild.models import SourceTree
from tfmbuild.observability import StructuredLogger
from tfmbuild.process import CommandResult, child_env, run_command

STEP = "source"


@dataclass(slots=True)
class SourceRepositorySync:
    """Keep a local checkout of a tracked remote branch up to date.

    A present checkout is pulled in place. If the pull fails for any reason
    the checkout is discarded and cloned again; the pipeline never modifies
    the tree, so no local state is lost.
    """

    git: str = "git"
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def sync(self, target_dir: str | Path, remote_url: str, ref: str) -> SourceTree:
        target = Path(target_dir)
        if target.exists():
            pulled = self._pull(target, remote_url=remote_url, ref=ref)
            if pulled.ok:
                self.logger.log(
                    operation="sync_pull",
                    step=STEP,
                    message=f"Updated {target.name} from {remote_url} ({ref}).",
                )
                return SourceTree(path=target, remote=remote_url, ref=ref, action="updated")

            self.logger.log(
                operation="sync_pull_failed",
                step=STEP,
                level="warning",
                message=f"Pull failed; discarding {target.name} and cloning again.",
                extra=pulled.failure_context(),
            )
            self._remove(target)
            self._clone(target, remote_url=remote_url, ref=ref)
            return SourceTree(path=target, remote=remote_url, ref=ref, action="recloned")

        self._clone(target, remote_url=remote_url, ref=ref)
        return SourceTree(path=target, remote=remote_url, ref=ref, action="cloned")

    def _pull(self, target: Path, *, remote_url: str, ref: str) -> CommandResult:
        # Without its own .git, git would resolve an enclosing repository instead.
        if not (target / ".git").exists():
            return CommandResult(
                argv=(self.git, "pull"),
                returncode=128,
                stdout="",
                stderr=f"{target} is not a git checkout",
            )
        return self._run_git(["pull", "--ff-only", remote_url, ref], cwd=target)

    def _remove(self, target: Path) -> None:
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise SyncError(
                "Failed to remove stale source checkout.",
                step=FailedStep.REMOVE,
                hint="Check permissions on the output directory.",
                context={"operation": "sync", "path": str(target), "error": str(exc)},
            ) from exc

    def _clone(self, target: Path, *, remote_url: str, ref: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_root = Path(tempfile.mkdtemp(prefix=f".{target.name}-", dir=str(target.parent)))
        except OSError as exc:
            raise SyncError(
                "Failed to create a staging directory for the clone.",
                step=FailedStep.CLONE,
                hint="Check free space and permissions on the output directory.",
                context={"operation": "sync", "path": str(target.parent), "error": str(exc)},
            ) from exc
        try:
            cloned = self._run_git(
                ["clone", "--quiet", "--branch", ref, remote_url, str(temp_root)],
            )
            if not cloned.ok:
                raise SyncError(
                    "Failed to clone source repository.",
                    step=FailedStep.CLONE,
                    hint="Ensure the repository URL and branch are valid and reachable.",
                    context={"operation": "sync", "repo": remote_url, "ref": ref}
                    | cloned.failure_context(),
                )
            try:
                shutil.move(str(temp_root), target)
            except OSError as exc:
                raise SyncError(
                    "Failed to move the cloned checkout into place.",
                    step=FailedStep.CLONE,
                    context={"operation": "sync", "path": str(target), "error": str(exc)},
                ) from exc
        finally:
            if temp_root.exists():
                shutil.rmtree(temp_root, ignore_errors=True)
        self.logger.log(
            operation="sync_clone",
            step=STEP,
            message=f"Cloned {remote_url} ({ref}) into {target.name}.",
        )

    def _run_git(self, argv: list[str], cwd: Path | None = None) -> CommandResult:
        env = child_env(overrides={"GIT_TERMINAL_PROMPT": "0"})
        return run_command([self.git, *argv], cwd=cwd, env=env)
