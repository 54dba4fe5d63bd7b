"""Deterministic on-disk layout rooted at a run's output directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

SOURCE_DIRNAME = "trusted-firmware-m"
TOOLCHAIN_DIRNAME = "gcc-arm-none-eabi"
ENV_DIRNAME = "tfm_venv"
BINDINGS_FILENAME = "tfm_bindings.rs"


@dataclass(frozen=True, slots=True)
class OutputLayout:
    root: Path

    @classmethod
    def for_root(cls, root: str | Path) -> OutputLayout:
        return cls(root=Path(root).absolute())

    @property
    def source_dir(self) -> Path:
        return self.root / SOURCE_DIRNAME

    @property
    def toolchain_dir(self) -> Path:
        return self.root / TOOLCHAIN_DIRNAME

    @property
    def env_dir(self) -> Path:
        return self.root / ENV_DIRNAME

    @property
    def build_dir(self) -> Path:
        return self.root / "build"

    @property
    def install_dir(self) -> Path:
        return self.root / "install"

    @property
    def bindings_path(self) -> Path:
        return self.root / BINDINGS_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.root / ".tfmbuild.lock"

    @property
    def report_path(self) -> Path:
        return self.root / "tfmbuild-report.json"

    @property
    def facts_path(self) -> Path:
        return self.root / "tfmbuild-facts.json"

    def as_dict(self) -> dict[str, str]:
        return {
            "root": str(self.root),
            "source_dir": str(self.source_dir),
            "toolchain_dir": str(self.toolchain_dir),
            "env_dir": str(self.env_dir),
            "build_dir": str(self.build_dir),
            "install_dir": str(self.install_dir),
            "bindings_path": str(self.bindings_path),
            "lock_path": str(self.lock_path),
            "report_path": str(self.report_path),
            "facts_path": str(self.facts_path),
        }
