"""Sandbox session state machine: boot, mount, install, run, serve."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable, Optional, Sequence

from loguru import logger

from sitesmith.errors import (
    BootExhausted,
    InstallError,
    MountError,
    RetryExhausted,
    SandboxError,
    ServerRuntimeError,
)
from sitesmith.models.sandbox import IDLE, FailureKind, SandboxPhase, SandboxState
from sitesmith.models.tree import FileNode
from sitesmith.pipeline.tree import to_mount_structure
from sitesmith.providers.sandbox.base import (
    ERROR_EVENT,
    READY_EVENT,
    SandboxHandle,
    SandboxProcess,
    SandboxService,
    Subscription,
)
from sitesmith.retry import Sleep, retry_async

OutputSink = Callable[[str, str], None]
StateListener = Callable[[SandboxState], None]

INSTALL_COMMAND: tuple[str, ...] = ("npm", "install")
RUN_COMMAND: tuple[str, ...] = ("npm", "run", "dev")


def log_output(label: str, line: str) -> None:
    logger.info("[{}] {}", label, line)


class SandboxSession:
    """One boot → mount → install → run → serve sequence.

    The session owns its ``ready``/``error`` subscriptions and releases them
    as soon as either fires, and again on :meth:`close`. Callbacks that land
    after the session settled or closed never change its state.
    """

    def __init__(
        self,
        service: SandboxService,
        *,
        handle: Optional[SandboxHandle] = None,
        install_command: Sequence[str] = INSTALL_COMMAND,
        run_command: Sequence[str] = RUN_COMMAND,
        boot_attempts: int = 3,
        boot_delay_s: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        output_sink: OutputSink = log_output,
        on_state_change: Optional[StateListener] = None,
    ) -> None:
        self._service = service
        self._handle = handle
        self._install_command = tuple(install_command)
        self._run_command = tuple(run_command)
        self._boot_attempts = boot_attempts
        self._boot_delay_s = boot_delay_s
        self._sleep = sleep
        self._output_sink = output_sink
        self._on_state_change = on_state_change
        self._state = IDLE if handle is None else SandboxState(phase=SandboxPhase.READY)
        self._subscriptions: list[Subscription] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._settled = asyncio.Event()
        self._closed = False
        self._server: Optional[SandboxProcess] = None
        self.boot_attempts_made = 0

    @property
    def state(self) -> SandboxState:
        return self._state

    @property
    def handle(self) -> Optional[SandboxHandle]:
        return self._handle

    @property
    def closed(self) -> bool:
        return self._closed

    async def boot(self) -> SandboxState:
        if self._handle is not None or self._state.phase is not SandboxPhase.IDLE:
            return self._state
        self._set_state(SandboxState(phase=SandboxPhase.BOOTING))

        def count_attempt(attempt: int) -> None:
            self.boot_attempts_made = attempt

        try:
            self._handle = await retry_async(
                self._service.boot,
                max_attempts=self._boot_attempts,
                delay_s=self._boot_delay_s,
                sleep=self._sleep,
                label="sandbox.boot",
                on_attempt=count_attempt,
            )
        except RetryExhausted as exc:
            return self._fail(BootExhausted(exc.attempts, exc.last_error))
        self._set_state(SandboxState(phase=SandboxPhase.READY))
        return self._state

    async def launch(self, tree: list[FileNode]) -> SandboxState:
        """Run every stage up to starting the server and return the state.

        The returned state is ``Starting`` while the server has not yet
        announced itself; use :meth:`wait_settled` to await the outcome.
        """
        await self.boot()
        if self._state.phase is not SandboxPhase.READY or self._closed:
            return self._state
        try:
            await self._mount(tree)
            if not self._closed:
                await self._install()
            if not self._closed:
                await self._run()
        except SandboxError as exc:
            return self._fail(exc)
        return self._state

    async def wait_settled(self, timeout: Optional[float] = None) -> SandboxState:
        """Return once the session serves, fails or is closed."""
        if timeout is None:
            await self._settled.wait()
        else:
            await asyncio.wait_for(self._settled.wait(), timeout)
        return self._state

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._release_subscriptions()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._settled.set()
        logger.debug("sandbox.session_closed phase={}", self._state.phase.value)

    def stop_server(self) -> None:
        """Kill the dev server this session spawned, when the process allows it."""
        server, self._server = self._server, None
        kill = getattr(server, "kill", None)
        if kill is not None:
            logger.debug("sandbox.server_stopped")
            kill()

    async def _mount(self, tree: list[FileNode]) -> None:
        self._set_state(SandboxState(phase=SandboxPhase.MOUNTING))
        handle = self._require_handle()
        try:
            await handle.mount(to_mount_structure(tree))
        except Exception as exc:
            raise MountError(f"Failed to mount project files: {exc}") from exc

    async def _install(self) -> None:
        self._set_state(SandboxState(phase=SandboxPhase.INSTALLING))
        handle = self._require_handle()
        command, *args = self._install_command
        try:
            process = await handle.spawn(command, args)
        except Exception as exc:
            raise InstallError(f"Failed to start dependency installation: {exc}") from exc
        self._forward(" ".join(self._install_command), process.output)
        exit_code = await process.wait()
        if exit_code != 0:
            raise InstallError(
                f"Dependency installation failed with exit code {exit_code}",
                exit_code=exit_code,
            )

    async def _run(self) -> None:
        self._set_state(SandboxState(phase=SandboxPhase.STARTING))
        handle = self._require_handle()
        self._subscriptions = [
            handle.subscribe(READY_EVENT, self._on_ready),
            handle.subscribe(ERROR_EVENT, self._on_error),
        ]
        command, *args = self._run_command
        try:
            process = await handle.spawn(command, args)
        except Exception as exc:
            raise ServerRuntimeError(f"Failed to start dev server: {exc}") from exc
        self._server = process
        if self._closed:
            self.stop_server()
            return
        self._forward(" ".join(self._run_command), process.output)

    def _on_ready(self, url: str) -> None:
        if self._closed or self._state.is_settled:
            return
        logger.info("sandbox.serving url={}", url)
        self._release_subscriptions()
        self._set_state(SandboxState.serving(url))

    def _on_error(self, message: str) -> None:
        if self._closed or self._state.is_settled:
            return
        self._release_subscriptions()
        self._fail(ServerRuntimeError(f"Preview failed: {message}"))

    def _forward(self, label: str, lines: AsyncIterator[str]) -> None:
        async def pump() -> None:
            async for line in lines:
                self._output_sink(label, line)

        task = asyncio.create_task(pump())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _release_subscriptions(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.release()

    def _require_handle(self) -> SandboxHandle:
        if self._handle is None:
            raise RuntimeError("Sandbox has not been booted")
        return self._handle

    def _fail(self, exc: SandboxError) -> SandboxState:
        kind = exc.kind or FailureKind.RUNTIME_ERROR
        logger.error("sandbox.failed kind={} error={}", kind.value, exc)
        self._release_subscriptions()
        self._set_state(SandboxState.failed(kind, str(exc)))
        return self._state

    def _set_state(self, state: SandboxState) -> None:
        self._state = state
        if state.is_settled:
            self._settled.set()
        if self._on_state_change is not None and not self._closed:
            self._on_state_change(state)
