"""Link arguments and environment facts handed to the enclosing build."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from tfmbuild.models import BuildOutput, ToolchainBundle

BUILD_DIR_FACT = "TFM_BUILD_DIR"
TOOLCHAIN_DIR_FACT = "ARM_TOOLCHAIN_DIR"
PROFILE_DIGEST_FACT = "TFM_PROFILE_DIGEST"


@dataclass(frozen=True, slots=True)
class ExportedFacts:
    build_dir: Path
    toolchain_dir: Path
    profile_digest: str

    def as_dict(self) -> dict[str, str]:
        return {
            BUILD_DIR_FACT: str(self.build_dir),
            TOOLCHAIN_DIR_FACT: str(self.toolchain_dir),
            PROFILE_DIGEST_FACT: self.profile_digest,
        }


@dataclass(frozen=True, slots=True)
class LinkPlan:
    link_args: tuple[str, ...]
    facts: ExportedFacts
    bindings_path: Path
    rerun_if_changed: tuple[str, ...] = ()

    @classmethod
    def from_outputs(
        cls,
        *,
        output: BuildOutput,
        toolchain: ToolchainBundle,
        bindings_path: Path,
        profile_digest: str,
        watched: Sequence[str | Path] = (),
    ) -> LinkPlan:
        """Collect what the enclosing build needs from a finished run.

        The public header is always watched; *watched* adds further inputs,
        such as the configuration headers the bindings were generated with.
        """
        rerun = dict.fromkeys(str(path) for path in (output.public_header, *watched))
        return cls(
            link_args=(str(output.veneer_path),),
            facts=ExportedFacts(
                build_dir=output.root,
                toolchain_dir=toolchain.path,
                profile_digest=profile_digest,
            ),
            bindings_path=bindings_path,
            rerun_if_changed=tuple(rerun),
        )

    def cargo_directives(self) -> list[str]:
        lines = [f"cargo:rustc-link-arg={arg}" for arg in self.link_args]
        lines.extend(f"cargo:rustc-env={key}={value}" for key, value in self.facts.as_dict().items())
        lines.extend(f"cargo:rerun-if-changed={path}" for path in self.rerun_if_changed)
        return lines

    def to_json(self) -> str:
        payload = {
            "link_args": list(self.link_args),
            "facts": self.facts.as_dict(),
            "bindings": str(self.bindings_path),
            "rerun_if_changed": list(self.rerun_if_changed),
        }
        return json.dumps(payload, indent=2, sort_keys=True) + "\n"

    def write(self, path: str | Path) -> Path:
        facts_path = Path(path)
        facts_path.parent.mkdir(parents=True, exist_ok=True)
        facts_path.write_text(self.to_json(), encoding="utf-8")
        return facts_path
