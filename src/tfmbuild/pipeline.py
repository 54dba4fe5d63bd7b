"""Sequential provisioning and build pipeline.

Steps run strictly in order::

    START -> SOURCE_SYNCED -> TOOLCHAIN_READY -> ENV_READY -> BUILT
          -> BINDINGS_GENERATED -> EXPORTED

Any :class:`TfmBuildError` moves the run to ``ABORTED`` and is re-raised.
A bare :class:`OSError` is wrapped in :class:`FilesystemError` first.
There is no resume: a new run starts over and relies on each step's own
presence checks to skip finished work.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from tfmbuild.bindings import BindingGenerator
from tfmbuild.builders import Builder, BuildRequest, CMakeBuilder
from tfmbuild.config import PipelineConfig
from tfmbuild.environment import IsolatedEnvironmentProvisioner
from tfmbuild.errors import FilesystemError, TfmBuildError
from tfmbuild.fetch import ArchiveFetcher, SourceRepositorySync
from tfmbuild.layout import OutputLayout
from tfmbuild.linkplan import LinkPlan
from tfmbuild.lock import run_lock
from tfmbuild.models import (
    BindingModule,
    BuildOutput,
    IsolatedEnvironment,
    PipelineState,
    SourceTree,
    ToolchainBundle,
)
from tfmbuild.observability import StructuredLogger

STEP = "pipeline"


class SourceSync(Protocol):
    def sync(self, target_dir: str | Path, remote_url: str, ref: str) -> SourceTree:
        """Ensure an up-to-date checkout exists at *target_dir*."""


class ToolchainFetcher(Protocol):
    def ensure(self, toolchain_dir: str | Path, url: str, archive_name: str) -> ToolchainBundle:
        """Ensure the toolchain is extracted at *toolchain_dir*."""


class EnvironmentProvisioner(Protocol):
    def ensure(self, env_dir: str | Path, manifest: str | Path) -> IsolatedEnvironment:
        """Ensure an isolated environment exists at *env_dir*."""


class BindingEmitter(Protocol):
    def generate(
        self,
        header: str | Path,
        include_dirs: Sequence[str | Path],
        defines: Mapping[str, str],
        output_path: str | Path,
        *,
        profile_digest: str = "",
    ) -> BindingModule:
        """Generate the binding module for *header*."""


@dataclass(slots=True)
class PipelineResult:
    state: PipelineState = PipelineState.START
    transitions: list[PipelineState] = field(default_factory=lambda: [PipelineState.START])
    source: SourceTree | None = None
    toolchain: ToolchainBundle | None = None
    env: IsolatedEnvironment | None = None
    output: BuildOutput | None = None
    bindings: BindingModule | None = None
    link_plan: LinkPlan | None = None
    failure: TfmBuildError | None = None
    report_path: Path | None = None

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.transitions.append(state)


@dataclass(slots=True)
class Pipeline:
    config: PipelineConfig
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    sync: SourceSync | None = None
    fetcher: ToolchainFetcher | None = None
    provisioner: EnvironmentProvisioner | None = None
    builder: Builder | None = None
    binder: BindingEmitter | None = None
    last_result: PipelineResult | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        if self.sync is None:
            self.sync = SourceRepositorySync(logger=self.logger)
        if self.fetcher is None:
            self.fetcher = ArchiveFetcher(
                extracted_dir=self.config.toolchain_extracted_dir,
                logger=self.logger,
            )
        if self.provisioner is None:
            self.provisioner = IsolatedEnvironmentProvisioner(
                python=self.config.python,
                logger=self.logger,
            )
        if self.builder is None:
            self.builder = CMakeBuilder(tool=self.config.cmake, logger=self.logger)
        if self.binder is None:
            self.binder = BindingGenerator(tool=self.config.bindgen, logger=self.logger)

    @property
    def layout(self) -> OutputLayout:
        return self.config.layout

    def run(self) -> PipelineResult:
        layout = self.layout
        layout.root.mkdir(parents=True, exist_ok=True)
        result = PipelineResult()
        self.last_result = result
        with run_lock(layout.lock_path, blocking=self.config.wait_for_lock):
            try:
                try:
                    self._execute(result, layout)
                except OSError as exc:
                    raise FilesystemError(
                        f"Filesystem operation failed after {result.state.value}.",
                        hint="Check free space and permissions under the output directory.",
                        context={
                            "operation": "pipeline",
                            "path": str(exc.filename or ""),
                            "error": exc.strerror or str(exc),
                        },
                    ) from exc
            except TfmBuildError as exc:
                self._abort(result, exc)
                raise
            finally:
                result.report_path = self._write_report(result, layout)
        return result

    def _abort(self, result: PipelineResult, exc: TfmBuildError) -> None:
        result.failure = exc
        result.advance(PipelineState.ABORTED)
        self.logger.log(
            operation="pipeline_aborted",
            step=exc.step.value if exc.step is not None else STEP,
            level="error",
            message=str(exc).splitlines()[0],
            extra={"code": exc.code},
        )

    def _execute(self, result: PipelineResult, layout: OutputLayout) -> None:
        config = self.config
        profile = config.profile
        digest = profile.digest()
        self._discard_previous_outputs(layout)

        result.source = self.sync.sync(layout.source_dir, config.source_url, config.source_ref)
        result.advance(PipelineState.SOURCE_SYNCED)

        result.toolchain = self.fetcher.ensure(
            layout.toolchain_dir,
            config.toolchain_url,
            config.toolchain_archive,
        )
        result.advance(PipelineState.TOOLCHAIN_READY)

        result.env = self.provisioner.ensure(
            layout.env_dir,
            result.source.path / config.manifest_path,
        )
        result.advance(PipelineState.ENV_READY)

        result.output = self.builder.build(
            BuildRequest(
                source=result.source,
                toolchain=result.toolchain,
                env=result.env,
                profile=profile,
                build_dir=layout.build_dir,
                install_dir=layout.install_dir,
            ),
        )
        result.advance(PipelineState.BUILT)

        result.bindings = self.binder.generate(
            result.output.public_header,
            [result.output.include_dir],
            profile.preprocessor_defines(result.source.path),
            layout.bindings_path,
            profile_digest=digest,
        )
        result.advance(PipelineState.BINDINGS_GENERATED)

        result.link_plan = LinkPlan.from_outputs(
            output=result.output,
            toolchain=result.toolchain,
            bindings_path=result.bindings.path,
            profile_digest=digest,
            watched=profile.config_headers(result.source.path),
        )
        result.link_plan.write(layout.facts_path)
        result.advance(PipelineState.EXPORTED)
        self.logger.log(
            operation="pipeline_exported",
            step=STEP,
            message="Exported link arguments and build facts.",
            extra=result.link_plan.facts.as_dict(),
        )

    def _discard_previous_outputs(self, layout: OutputLayout) -> None:
        # Bindings and facts describe a single run; stale copies must not outlive a failure.
        for path in (layout.bindings_path, layout.facts_path):
            path.unlink(missing_ok=True)

    def _write_report(self, result: PipelineResult, layout: OutputLayout) -> Path:
        payload: dict[str, Any] = {
            "state": result.state.value,
            "transitions": [state.value for state in result.transitions],
            "profile": {**self.config.profile.payload(), "digest": self.config.profile.digest()},
            "layout": layout.as_dict(),
            "artifacts": {
                "source": str(result.source.path) if result.source else None,
                "toolchain": str(result.toolchain.path) if result.toolchain else None,
                "env": str(result.env.path) if result.env else None,
                "install": str(result.output.root) if result.output else None,
                "bindings": str(result.bindings.path) if result.bindings else None,
            },
            "failure": result.failure.to_dict() if result.failure is not None else None,
            "logs": list(self.logger.records),
        }
        layout.report_path.write_text(
            json.dumps(payload, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return layout.report_path
