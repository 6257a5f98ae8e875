"""Error taxonomy for the generation pipeline and sandbox sessions."""

from __future__ import annotations

from typing import ClassVar, Optional

from sitesmith.models.sandbox import FailureKind


class SitesmithError(Exception):
    """Base class for all pipeline and sandbox failures."""


class CollaboratorError(SitesmithError):
    """The generation collaborator failed or returned unusable data."""


class EmptyFileMapError(SitesmithError):
    """No files remained after scaffold defaults were applied."""


class TreeConflictError(SitesmithError, ValueError):
    """A flat path cannot be placed in the file tree."""


class RetryExhausted(SitesmithError):
    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class SandboxError(SitesmithError):
    """A sandbox stage failed; the session ends in ``Failed(kind)``."""

    kind: ClassVar[Optional[FailureKind]] = None


class BootExhausted(SandboxError):
    kind = FailureKind.BOOT_EXHAUSTED

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"Sandbox failed to boot after {attempts} attempts: {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


class MountError(SandboxError):
    kind = FailureKind.MOUNT_ERROR


class InstallError(SandboxError):
    kind = FailureKind.INSTALL_ERROR

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class ServerRuntimeError(SandboxError):
    """The running dev server reported an error before becoming ready."""

    kind = FailureKind.RUNTIME_ERROR
