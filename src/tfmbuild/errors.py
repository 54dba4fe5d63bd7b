"""Typed pipeline error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the pipeline and CLI."""

    VALIDATION = "E_VALIDATION"
    SYNC = "E_SYNC"
    FETCH = "E_FETCH"
    PROVISION = "E_PROVISION"
    BUILD = "E_BUILD"
    GEN = "E_GEN"
    LOCK = "E_LOCK"
    FILESYSTEM = "E_FILESYSTEM"


class FailedStep(StrEnum):
    """Sub-step that failed inside a pipeline component."""

    CLONE = "clone"
    PULL = "pull"
    REMOVE = "remove"
    DOWNLOAD = "download"
    EXTRACT = "extract"
    RENAME = "rename"
    CREATE = "create"
    INSTALL = "install"
    CONFIGURE = "configure"
    COMPILE = "compile"
    INSTALL_TREE = "install_tree"
    PARSE = "parse"
    WRITE = "write"


class TfmBuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]
    step: FailedStep | None

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        step: FailedStep | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.step = step
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.step is not None:
            payload["step"] = self.step.value
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class SyncError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        step: FailedStep,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SYNC, step=step, hint=hint, context=context)


class FetchError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        step: FailedStep,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FETCH, step=step, hint=hint, context=context)


class ProvisionError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        step: FailedStep,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PROVISION, step=step, hint=hint, context=context)


class BuildError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        step: FailedStep,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BUILD, step=step, hint=hint, context=context)


class GenError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        step: FailedStep,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.GEN, step=step, hint=hint, context=context)


class LockError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.LOCK, hint=hint, context=context)


class FilesystemError(TfmBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FILESYSTEM, hint=hint, context=context)


__all__ = [
    "BuildError",
    "ErrorCode",
    "FailedStep",
    "FetchError",
    "FilesystemError",
    "GenError",
    "LockError",
    "ProvisionError",
    "SyncError",
    "TfmBuildError",
    "ValidationError",
]
