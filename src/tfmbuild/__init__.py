"""Provisioning and build pipeline for the TF-M secure firmware and its bindings."""

from .bindings import BindingGenerator
from .builders import BuildRequest, CMakeBuilder
from .config import PipelineConfig
from .environment import IsolatedEnvironmentProvisioner
from .errors import (
    BuildError,
    ErrorCode,
    FailedStep,
    FetchError,
    FilesystemError,
    GenError,
    LockError,
    ProvisionError,
    SyncError,
    TfmBuildError,
    ValidationError,
)
from .fetch import ArchiveFetcher, SourceRepositorySync
from .layout import OutputLayout
from .linkplan import ExportedFacts, LinkPlan
from .models import (
    BindingModule,
    BuildOutput,
    IsolatedEnvironment,
    PipelineState,
    SourceTree,
    ToolchainBundle,
)
from .pipeline import Pipeline, PipelineResult
from .profile import BuildProfile

__all__ = [
    "ArchiveFetcher",
    "BindingGenerator",
    "BindingModule",
    "BuildError",
    "BuildOutput",
    "BuildProfile",
    "BuildRequest",
    "CMakeBuilder",
    "ErrorCode",
    "ExportedFacts",
    "FailedStep",
    "FetchError",
    "FilesystemError",
    "GenError",
    "IsolatedEnvironment",
    "IsolatedEnvironmentProvisioner",
    "LinkPlan",
    "LockError",
    "OutputLayout",
    "Pipeline",
    "PipelineConfig",
    "PipelineResult",
    "PipelineState",
    "ProvisionError",
    "SourceRepositorySync",
    "SourceTree",
    "SyncError",
    "TfmBuildError",
    "ToolchainBundle",
    "ValidationError",
]
