"""Source checkout and toolchain archive provisioning."""

from .archive import ArchiveFetcher
from .git import SourceRepositorySync

__all__ = ["ArchiveFetcher", "SourceRepositorySync"]
