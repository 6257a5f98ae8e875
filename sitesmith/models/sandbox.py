"""Data models for sandbox sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SandboxPhase(str, Enum):
    IDLE = "idle"
    BOOTING = "booting"
    READY = "ready"
    MOUNTING = "mounting"
    INSTALLING = "installing"
    STARTING = "starting"
    SERVING = "serving"
    FAILED = "failed"


class FailureKind(str, Enum):
    BOOT_EXHAUSTED = "BootExhausted"
    MOUNT_ERROR = "MountError"
    INSTALL_ERROR = "InstallError"
    RUNTIME_ERROR = "RuntimeError"


@dataclass(frozen=True)
class SandboxState:
    phase: SandboxPhase
    url: Optional[str] = None
    failure: Optional[FailureKind] = None
    message: Optional[str] = None

    @classmethod
    def serving(cls, url: str) -> SandboxState:
        return cls(phase=SandboxPhase.SERVING, url=url)

    @classmethod
    def failed(cls, failure: FailureKind, message: str) -> SandboxState:
        return cls(phase=SandboxPhase.FAILED, failure=failure, message=message)

    @property
    def is_settled(self) -> bool:
        return self.phase in (SandboxPhase.SERVING, SandboxPhase.FAILED)

    def describe(self) -> str:
        if self.phase is SandboxPhase.SERVING:
            return f"Preview ready at {self.url}"
        if self.phase is SandboxPhase.FAILED and self.failure is not None:
            return f"Preview failed ({self.failure.value}): {self.message}"
        return f"Preview {self.phase.value}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "url": self.url,
            "failure": self.failure.value if self.failure else None,
            "message": self.message,
            "detail": self.describe(),
        }


IDLE = SandboxState(phase=SandboxPhase.IDLE)
