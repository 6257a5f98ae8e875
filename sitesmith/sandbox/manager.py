"""Keep a single active sandbox session per preview."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from loguru import logger

from sitesmith.models.sandbox import IDLE, SandboxState
from sitesmith.models.tree import FileNode
from sitesmith.providers.sandbox.base import SandboxHandle, SandboxService
from sitesmith.sandbox.session import SandboxSession


class PreviewManager:
    """Owns the current :class:`SandboxSession` for one logical preview.

    A new launch closes the previous session and stops its dev server before
    the next one subscribes, so at most one session ever holds live
    ``ready``/``error`` listeners. The booted sandbox handle is reused across
    launches.
    """

    def __init__(
        self,
        service: SandboxService,
        session_factory: Optional[Callable[..., SandboxSession]] = None,
        **session_options: Any,
    ) -> None:
        self._service = service
        self._session_factory = session_factory or SandboxSession
        self._session_options = session_options
        self._session: Optional[SandboxSession] = None
        self._handle: Optional[SandboxHandle] = None
        self._task: Optional[asyncio.Task[SandboxState]] = None

    @property
    def session(self) -> Optional[SandboxSession]:
        return self._session

    @property
    def state(self) -> SandboxState:
        return self._session.state if self._session else IDLE

    async def launch(self, tree: list[FileNode]) -> SandboxState:
        session = self._replace_session()
        return await self._run_session(session, tree)

    def launch_in_background(self, tree: list[FileNode]) -> asyncio.Task[SandboxState]:
        """Install a fresh session now and drive it on a task.

        :attr:`state` reflects the new session as soon as this returns.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()
        session = self._replace_session()
        self._task = asyncio.create_task(self._run_session(session, tree))
        return self._task

    async def wait_launched(self, timeout: Optional[float] = None) -> SandboxState:
        """Wait for the latest background launch to finish its stages."""
        task = self._task
        while task is not None:
            # a newer launch may cancel this task; asyncio.wait does not raise for that
            await asyncio.wait({task}, timeout=timeout)
            if task is self._task:
                break
            task = self._task
        return self.state

    async def wait_settled(self, timeout: Optional[float] = None) -> SandboxState:
        """Wait until the current session serves or fails.

        A session superseded while waiting hands over to its replacement.
        """
        while True:
            await self.wait_launched(timeout)
            session = self._session
            if session is None:
                return IDLE
            state = await session.wait_settled(timeout)
            if session is self._session:
                return state

    def close(self) -> None:
        if self._session is not None:
            logger.debug("preview.session_superseded phase={}", self._session.state.phase.value)
            self._session.close()
            self._session.stop_server()

    def _replace_session(self) -> SandboxSession:
        self.close()
        session = self._session_factory(
            self._service, handle=self._handle, **self._session_options
        )
        self._session = session
        return session

    async def _run_session(self, session: SandboxSession, tree: list[FileNode]) -> SandboxState:
        state = await session.launch(tree)
        if session.handle is not None:
            self._handle = session.handle
        return state
