import os
from pathlib import Path

import pytest
from helpers import TOOLCHAIN_TOP, make_archive

from tfmbuild.errors import ErrorCode, FailedStep, FetchError
from tfmbuild.fetch import ArchiveFetcher

ARCHIVE_NAME = "gcc-arm-none-eabi-10.3-2021.10-x86_64-linux.tar.bz2"


def _snapshot(root: Path) -> list[str]:
    return sorted(str(path.relative_to(root)) for path in root.rglob("*"))


def _no_network(*args: object, **kwargs: object) -> None:
    raise AssertionError("network access is not expected")


def test_ensure_downloads_extracts_and_renames(tmp_path: Path, toolchain_archive: Path) -> None:
    root = tmp_path / "out"
    fetcher = ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP)

    bundle = fetcher.ensure(root / "gcc-arm-none-eabi", toolchain_archive.as_uri(), ARCHIVE_NAME)

    assert bundle.fetched is True
    assert bundle.path == root / "gcc-arm-none-eabi"
    assert bundle.tool("arm-none-eabi-gcc").is_file()
    assert os.access(bundle.tool("arm-none-eabi-gcc"), os.X_OK)
    assert sorted(p.name for p in root.iterdir()) == ["gcc-arm-none-eabi"]


def test_ensure_twice_is_idempotent_without_network(
    tmp_path: Path,
    toolchain_archive: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    root = tmp_path / "out"
    fetcher = ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP)
    fetcher.ensure(root / "gcc-arm-none-eabi", toolchain_archive.as_uri(), ARCHIVE_NAME)
    before = _snapshot(root)
    monkeypatch.setattr("tfmbuild.fetch.archive.urlopen", _no_network)

    bundle = fetcher.ensure(root / "gcc-arm-none-eabi", toolchain_archive.as_uri(), ARCHIVE_NAME)

    assert bundle.fetched is False
    assert _snapshot(root) == before
    assert fetcher.logger.operations()[-1] == "toolchain_skip"


def test_ensure_present_directory_is_a_cache_hit(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    toolchain_dir = tmp_path / "out" / "gcc-arm-none-eabi"
    toolchain_dir.mkdir(parents=True)
    monkeypatch.setattr("tfmbuild.fetch.archive.urlopen", _no_network)

    bundle = ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP).ensure(
        toolchain_dir,
        "https://example.invalid/toolchain.tar.bz2",
        ARCHIVE_NAME,
    )

    assert bundle.fetched is False
    assert bundle.path == toolchain_dir


def test_ensure_download_failure_is_fatal(tmp_path: Path) -> None:
    root = tmp_path / "out"
    missing = (tmp_path / "mirror" / "missing.tar.bz2").as_uri()

    with pytest.raises(FetchError) as excinfo:
        ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP).ensure(
            root / "gcc-arm-none-eabi",
            missing,
            ARCHIVE_NAME,
        )

    assert excinfo.value.step is FailedStep.DOWNLOAD
    assert excinfo.value.code == ErrorCode.FETCH.value
    assert list(root.iterdir()) == []


def test_ensure_extract_failure_removes_temporary_archive(tmp_path: Path) -> None:
    root = tmp_path / "out"
    corrupt = tmp_path / "mirror" / ARCHIVE_NAME
    corrupt.parent.mkdir(parents=True)
    corrupt.write_bytes(b"this is not a tarball")

    with pytest.raises(FetchError) as excinfo:
        ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP).ensure(
            root / "gcc-arm-none-eabi",
            corrupt.as_uri(),
            ARCHIVE_NAME,
        )

    assert excinfo.value.step is FailedStep.EXTRACT
    assert not (root / ARCHIVE_NAME).exists()
    assert list(root.iterdir()) == []


def test_ensure_rename_failure_removes_temporary_archive(tmp_path: Path) -> None:
    root = tmp_path / "out"
    archive = make_archive(tmp_path / "mirror", top="unexpected-top-level")

    with pytest.raises(FetchError) as excinfo:
        ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP).ensure(
            root / "gcc-arm-none-eabi",
            archive.as_uri(),
            ARCHIVE_NAME,
        )

    assert excinfo.value.step is FailedStep.RENAME
    assert excinfo.value.context["expected"] == TOOLCHAIN_TOP
    assert not (root / "gcc-arm-none-eabi").exists()
    assert list(root.iterdir()) == []


def test_ensure_staging_failure_is_an_extract_error(
    tmp_path: Path,
    toolchain_archive: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def no_space(*args: object, **kwargs: object) -> str:
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("tfmbuild.fetch.archive.tempfile.mkdtemp", no_space)
    monkeypatch.setattr("tfmbuild.fetch.archive.urlopen", _no_network)
    root = tmp_path / "out"

    with pytest.raises(FetchError) as excinfo:
        ArchiveFetcher(extracted_dir=TOOLCHAIN_TOP).ensure(
            root / "gcc-arm-none-eabi",
            toolchain_archive.as_uri(),
            ARCHIVE_NAME,
        )

    assert excinfo.value.step is FailedStep.EXTRACT
    assert excinfo.value.context["path"] == str(root)
    assert list(root.iterdir()) == []
