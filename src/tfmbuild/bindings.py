"""Binding generation for the firmware's public crypto header."""

from __future__ import annotations

import contextlib
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from tfmbuild.errors import FailedStep, GenError
from tfmbuild.models import BindingModule
from tfmbuild.observability import StructuredLogger
from tfmbuild.process import run_command

STEP = "bindings"


@dataclass(slots=True)
class BindingGenerator:
    """Run ``bindgen`` against a header and write the module it emits.

    Output never assumes a hosted standard library (``--use-core``). The
    module is regenerated on every call.
    """

    tool: str = "bindgen"
    extra_args: tuple[str, ...] = ()
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def command(
        self,
        header: Path,
        include_dirs: Sequence[Path],
        defines: Mapping[str, str],
    ) -> tuple[str, ...]:
        clang_args = [f"-I{directory}" for directory in include_dirs]
        clang_args.extend(f"-D{name}={value}" for name, value in defines.items())
        return (self.tool, str(header), "--use-core", *self.extra_args, "--", *clang_args)

    def generate(
        self,
        header: str | Path,
        include_dirs: Sequence[str | Path],
        defines: Mapping[str, str],
        output_path: str | Path,
        *,
        profile_digest: str = "",
    ) -> BindingModule:
        header_path = Path(header)
        output = Path(output_path)
        if not header_path.is_file():
            raise GenError(
                "Public header not found in build output.",
                step=FailedStep.PARSE,
                hint="Check that the firmware install step produced interface/include.",
                context={"operation": "generate", "header": str(header_path)},
            )

        command = self.command(header_path, [Path(d) for d in include_dirs], defines)
        self.logger.log(
            operation="bindings_generate",
            step=STEP,
            message=f"Generating bindings for {header_path.name}.",
            extra={"argv": list(command)},
        )
        result = run_command(command)
        if not result.ok:
            raise GenError(
                "Unable to generate bindings.",
                step=FailedStep.PARSE,
                hint="Check that the preprocessor defines match the built profile.",
                context={"operation": "generate", "header": str(header_path)}
                | result.failure_context(),
            )

        banner = "// Generated by tfmbuild. Do not edit.\n"
        if profile_digest:
            banner += f"// Build profile digest: {profile_digest}\n"
        self._write(output, banner + result.stdout)
        self.logger.log(
            operation="bindings_written",
            step=STEP,
            message=f"Wrote {output.name}.",
        )
        return BindingModule(path=output, header=header_path, profile_digest=profile_digest)

    def _write(self, output: Path, content: str) -> None:
        temp_path = output.with_name(output.name + ".tmp")
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content, encoding="utf-8")
            os.replace(temp_path, output)
        except OSError as exc:
            with contextlib.suppress(OSError):
                temp_path.unlink()
            raise GenError(
                "Couldn't write bindings.",
                step=FailedStep.WRITE,
                context={"operation": "generate", "path": str(output), "error": str(exc)},
            ) from exc
