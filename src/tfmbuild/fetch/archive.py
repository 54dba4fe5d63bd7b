"""Versioned toolchain archive download and extraction."""

from __future__ import annotations

import shutil
import tarfile
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from urllib.error import URLError
from urllib.request import urlopen

from tfmbuild.errors import FailedStep, FetchError
from tfmbuild.models import ToolchainBundle
from tfmbuild.observability import StructuredLogger

STEP = "toolchain"


@dataclass(slots=True)
class ArchiveFetcher:
    """Download and unpack an immutable archive into a stable directory.

    A present ``toolchain_dir`` is a cache hit and is never verified or
    fetched again.
    """

    extracted_dir: str
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def ensure(self, toolchain_dir: str | Path, url: str, archive_name: str) -> ToolchainBundle:
        destination = Path(toolchain_dir)
        if destination.exists():
            self.logger.log(
                operation="toolchain_skip",
                step=STEP,
                message="Toolchain already exists, skipping download.",
                extra={"path": str(destination)},
            )
            return ToolchainBundle(path=destination, url=url, fetched=False)

        parent = destination.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=f".{destination.name}-", dir=str(parent)))
        except OSError as exc:
            raise FetchError(
                "Failed to create a staging directory for the toolchain.",
                step=FailedStep.EXTRACT,
                hint="Check free space and permissions on the output directory.",
                context={"operation": "fetch", "path": str(parent), "error": str(exc)},
            ) from exc
        archive_path = parent / archive_name
        try:
            self.logger.log(operation="toolchain_download", step=STEP, message=f"Downloading {url}.")
            self._download(url, archive_path)
            self.logger.log(
                operation="toolchain_extract",
                step=STEP,
                message=f"Extracting {archive_name}.",
            )
            self._extract(archive_path, staging)
            self._rename(staging / self.extracted_dir, destination)
        finally:
            archive_path.unlink(missing_ok=True)
            shutil.rmtree(staging, ignore_errors=True)

        self.logger.log(
            operation="toolchain_ready",
            step=STEP,
            message="Toolchain prepared successfully.",
            extra={"path": str(destination)},
        )
        return ToolchainBundle(path=destination, url=url, fetched=True)

    def _download(self, url: str, archive_path: Path) -> None:
        try:
            with urlopen(url) as response, archive_path.open("wb") as output:  # noqa: S310
                shutil.copyfileobj(response, output)
        except (URLError, OSError, ValueError) as exc:
            raise FetchError(
                "Failed to download toolchain archive.",
                step=FailedStep.DOWNLOAD,
                hint="Check network access and the toolchain URL.",
                context={"operation": "fetch", "url": url, "error": str(exc)},
            ) from exc

    def _extract(self, archive_path: Path, staging: Path) -> None:
        try:
            with tarfile.open(archive_path, "r:*") as archive:
                archive.extractall(staging, filter="data")
        except (tarfile.TarError, OSError) as exc:
            raise FetchError(
                "Failed to extract toolchain archive.",
                step=FailedStep.EXTRACT,
                hint="The download may be truncated; rerun to fetch it again.",
                context={"operation": "fetch", "archive": str(archive_path), "error": str(exc)},
            ) from exc

    def _rename(self, extracted: Path, destination: Path) -> None:
        try:
            extracted.rename(destination)
        except OSError as exc:
            raise FetchError(
                "Failed to rename extracted toolchain directory.",
                step=FailedStep.RENAME,
                hint="Verify the archive's top-level directory name.",
                context={
                    "operation": "fetch",
                    "expected": extracted.name,
                    "destination": str(destination),
                    "error": str(exc),
                },
            ) from exc
