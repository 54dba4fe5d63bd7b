"""Isolated Python environment provisioning for the firmware build tools."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from tfmbuild.errors import FailedStep, ProvisionError
from tfmbuild.models import IsolatedEnvironment
from tfmbuild.observability import StructuredLogger
from tfmbuild.process import child_env, run_command

STEP = "environment"


def environment_variables(env: IsolatedEnvironment) -> dict[str, str]:
    return {"VIRTUAL_ENV": str(env.path)}


@dataclass(slots=True)
class IsolatedEnvironmentProvisioner:
    python: str = "python3"
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def ensure(self, env_dir: str | Path, manifest: str | Path) -> IsolatedEnvironment:
        """Create *env_dir* and install *manifest* into it unless it already exists.

        Presence of the directory is taken to mean a complete environment, so
        a failed install removes the directory again.
        """
        root = Path(env_dir)
        env = IsolatedEnvironment(path=root, created=False)
        if root.exists():
            self.logger.log(
                operation="environment_skip",
                step=STEP,
                message="Python virtual environment already exists, skipping creation.",
                extra={"path": str(root)},
            )
            return env

        manifest_path = Path(manifest)
        self.logger.log(
            operation="environment_create",
            step=STEP,
            message="Creating Python virtual environment.",
        )
        created = run_command([self.python, "-m", "venv", str(root)])
        if not created.ok:
            shutil.rmtree(root, ignore_errors=True)
            raise ProvisionError(
                "Failed to create Python virtual environment.",
                step=FailedStep.CREATE,
                hint="Ensure the interpreter ships the venv module.",
                context={"operation": "provision", "path": str(root)} | created.failure_context(),
            )

        self.logger.log(
            operation="environment_install",
            step=STEP,
            message=f"Installing Python dependencies from {manifest_path.name}.",
        )
        install_env = child_env(prepend_path=(env.bin_dir,), overrides=environment_variables(env))
        installed = run_command(
            [env.bin_dir / "pip", "install", "-r", manifest_path],
            env=install_env,
        )
        if not installed.ok:
            shutil.rmtree(root, ignore_errors=True)
            raise ProvisionError(
                "Failed to install Python dependencies.",
                step=FailedStep.INSTALL,
                hint="Check that the manifest exists in the synced source tree.",
                context={"operation": "provision", "manifest": str(manifest_path)}
                | installed.failure_context(),
            )

        self.logger.log(
            operation="environment_ready",
            step=STEP,
            message="Python virtual environment prepared successfully.",
        )
        return IsolatedEnvironment(path=root, created=True)
