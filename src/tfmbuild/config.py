"""Pipeline configuration."""

from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Self

from tfmbuild.errors import ValidationError
from tfmbuild.layout import OutputLayout
from tfmbuild.profile import BuildProfile

TFM_REPOSITORY = "https://git.trustedfirmware.org/TF-M/trusted-firmware-m.git"
TFM_REF = "main"
TOOLCHAIN_URL = (
    "https://developer.arm.com/-/media/Files/downloads/gnu-rm/10.3-2021.10/"
    "gcc-arm-none-eabi-10.3-2021.10-x86_64-linux.tar.bz2"
)
TOOLCHAIN_ARCHIVE = "gcc-arm-none-eabi-10.3-2021.10-x86_64-linux.tar.bz2"
TOOLCHAIN_EXTRACTED_DIR = "gcc-arm-none-eabi-10.3-2021.10"
REQUIREMENTS_PATH = "tools/requirements.txt"

TOOL_OVERRIDES = {
    "TFMBUILD_CMAKE": "cmake",
    "TFMBUILD_BINDGEN": "bindgen",
    "TFMBUILD_PYTHON": "python",
}


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    out_dir: Path
    source_url: str = TFM_REPOSITORY
    source_ref: str = TFM_REF
    toolchain_url: str = TOOLCHAIN_URL
    toolchain_archive: str = TOOLCHAIN_ARCHIVE
    toolchain_extracted_dir: str = TOOLCHAIN_EXTRACTED_DIR
    manifest_path: str = REQUIREMENTS_PATH
    python: str = field(default_factory=lambda: sys.executable or "python3")
    cmake: str = "cmake"
    bindgen: str = "bindgen"
    profile: BuildProfile = field(default_factory=BuildProfile)
    wait_for_lock: bool = True

    def __post_init__(self) -> None:
        if not self.source_ref:
            raise ValidationError("PipelineConfig requires a source ref.")

    @property
    def layout(self) -> OutputLayout:
        return OutputLayout.for_root(self.out_dir)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        *,
        out_dir: str | Path | None = None,
    ) -> Self:
        """Build a config from the enclosing build's environment.

        ``OUT_DIR`` supplies the output root unless *out_dir* is given.
        Tool locations can be overridden with ``TFMBUILD_*`` variables; the
        build profile cannot.
        """
        root = out_dir if out_dir is not None else environ.get("OUT_DIR")
        if not root:
            raise ValidationError(
                "No output directory configured.",
                hint="Pass --out-dir or set OUT_DIR.",
            )
        config = cls(out_dir=Path(root))
        overrides = {
            attribute: environ[variable]
            for variable, attribute in TOOL_OVERRIDES.items()
            if environ.get(variable)
        }
        return replace(config, **overrides) if overrides else config
