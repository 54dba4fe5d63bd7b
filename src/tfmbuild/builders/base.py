"""Typed interfaces for external build system invocations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tfmbuild.models import BuildOutput, IsolatedEnvironment, SourceTree, ToolchainBundle
from tfmbuild.profile import BuildProfile


@dataclass(frozen=True, slots=True)
class BuildRequest:
    source: SourceTree
    toolchain: ToolchainBundle
    env: IsolatedEnvironment
    profile: BuildProfile
    build_dir: Path
    install_dir: Path


class Builder(Protocol):
    def build(self, request: BuildRequest) -> BuildOutput:
        """Configure, compile and install the firmware, returning the installed tree."""
