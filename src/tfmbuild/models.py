"""Core typed models for provisioned targets and build products."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Literal

SyncAction = Literal["cloned", "updated", "recloned"]

INTERFACE_INCLUDE = Path("interface/include")
INTERFACE_LIB = Path("interface/lib")
PUBLIC_HEADER = INTERFACE_INCLUDE / "psa" / "crypto.h"
VENEER_OBJECT = INTERFACE_LIB / "s_veneers.o"


class PipelineState(StrEnum):
    START = "start"
    SOURCE_SYNCED = "source_synced"
    TOOLCHAIN_READY = "toolchain_ready"
    ENV_READY = "env_ready"
    BUILT = "built"
    BINDINGS_GENERATED = "bindings_generated"
    EXPORTED = "exported"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class SourceTree:
    path: Path
    remote: str
    ref: str
    action: SyncAction


@dataclass(frozen=True, slots=True)
class ToolchainBundle:
    path: Path
    url: str
    fetched: bool

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"

    def tool(self, name: str) -> Path:
        return self.bin_dir / name


@dataclass(frozen=True, slots=True)
class IsolatedEnvironment:
    path: Path
    created: bool

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"


@dataclass(frozen=True, slots=True)
class BuildOutput:
    """Installed tree produced by the external build system."""

    root: Path
    build_dir: Path

    @property
    def include_dir(self) -> Path:
        return self.root / INTERFACE_INCLUDE

    @property
    def lib_dir(self) -> Path:
        return self.root / INTERFACE_LIB

    @property
    def public_header(self) -> Path:
        return self.root / PUBLIC_HEADER

    @property
    def veneer_path(self) -> Path:
        return self.root / VENEER_OBJECT


@dataclass(frozen=True, slots=True)
class BindingModule:
    path: Path
    header: Path
    profile_digest: str
