"""Sandbox service interface."""

from __future__ import annotations

from typing import AsyncIterator, Callable, Literal, Protocol, Sequence

from sitesmith.models.tree import MountEntry

SandboxEvent = Literal["ready", "error"]

READY_EVENT: SandboxEvent = "ready"
ERROR_EVENT: SandboxEvent = "error"


class Subscription(Protocol):
    def release(self) -> None:
        ...


class SandboxProcess(Protocol):
    @property
    def output(self) -> AsyncIterator[str]:
        ...

    async def wait(self) -> int:
        ...


class SandboxHandle(Protocol):
    async def mount(self, tree: MountEntry) -> None:
        ...

    async def spawn(self, command: str, args: Sequence[str] = ()) -> SandboxProcess:
        ...

    def subscribe(
        self, event: SandboxEvent, callback: Callable[[str], None]
    ) -> Subscription:
        """``ready`` callbacks receive the preview URL, ``error`` a message."""
        ...


class SandboxService(Protocol):
    async def boot(self) -> SandboxHandle:
        ...
