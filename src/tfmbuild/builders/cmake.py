"""CMake generate/build/install driver for the secure firmware."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tfmbuild.builders.base import BuildRequest
from tfmbuild.environment import environment_variables
from tfmbuild.errors import BuildError, FailedStep
from tfmbuild.models import BuildOutput
from tfmbuild.observability import StructuredLogger
from tfmbuild.process import child_env, run_command

STEP = "build"


@dataclass(slots=True)
class CMakeBuilder:
    tool: str = "cmake"
    jobs: int | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def configure_command(self, request: BuildRequest) -> tuple[str, ...]:
        defines = request.profile.cmake_defines(request.toolchain)
        defines["CMAKE_INSTALL_PREFIX"] = str(request.install_dir)
        return (
            self.tool,
            "-S",
            str(request.source.path),
            "-B",
            str(request.build_dir),
            *(f"-D{key}={value}" for key, value in defines.items()),
        )

    def build_command(self, request: BuildRequest) -> tuple[str, ...]:
        command = [self.tool, "--build", str(request.build_dir)]
        if self.jobs is not None:
            command.extend(["--parallel", str(self.jobs)])
        return tuple(command)

    def install_command(self, request: BuildRequest) -> tuple[str, ...]:
        return (self.tool, "--install", str(request.build_dir), "--prefix", str(request.install_dir))

    def build(self, request: BuildRequest) -> BuildOutput:
        request.build_dir.mkdir(parents=True, exist_ok=True)
        env = child_env(
            prepend_path=(request.env.bin_dir,),
            overrides=environment_variables(request.env),
        )
        stages = (
            (FailedStep.CONFIGURE, self.configure_command(request)),
            (FailedStep.COMPILE, self.build_command(request)),
            (FailedStep.INSTALL_TREE, self.install_command(request)),
        )
        for stage, command in stages:
            self.logger.log(
                operation=f"cmake_{stage.value}",
                step=STEP,
                message=f"Running cmake {stage.value} stage.",
                extra={"argv": list(command)},
            )
            result = run_command(command, env=env)
            if not result.ok:
                raise BuildError(
                    f"CMake {stage.value} stage failed.",
                    step=stage,
                    hint="Inspect the build log in stderr; rerun after fixing the cause.",
                    context={
                        "operation": "build",
                        "source": str(request.source.path),
                        "build_dir": str(request.build_dir),
                    }
                    | result.failure_context(),
                )

        output = BuildOutput(root=Path(request.install_dir), build_dir=request.build_dir)
        self.logger.log(
            operation="build_complete",
            step=STEP,
            message="Firmware built and installed.",
            extra={"install_dir": str(output.root)},
        )
        return output
