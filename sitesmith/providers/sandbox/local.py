"""Local sandbox service backed by a temporary directory and subprocesses."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
import os
from pathlib import Path
import re
import shutil
import tempfile
from typing import AsyncIterator, Callable, Optional, Sequence
from uuid import uuid4

from loguru import logger

from sitesmith.models.tree import MountEntry
from sitesmith.providers.sandbox.base import (
    ERROR_EVENT,
    READY_EVENT,
    SandboxEvent,
    SandboxHandle,
    SandboxProcess,
    SandboxService,
)

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_LOCAL_URL = re.compile(
    r"https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0|\[::1\])(?::\d+)?(?:/[^\s]*)?"
)

Emit = Callable[[SandboxEvent, str], None]


def find_local_url(line: str) -> Optional[str]:
    match = _LOCAL_URL.search(_ANSI_ESCAPE.sub("", line))
    return match.group(0) if match else None


@dataclass(frozen=True)
class _SandboxRecord:
    sandbox_id: str
    root: Path


class _Listener:
    """A callback that only hears processes spawned after it subscribed."""

    def __init__(self, callback: Callable[[str], None], since: int) -> None:
        self.callback = callback
        self.since = since

    def hears(self, origin: int) -> bool:
        return origin > self.since


class _Subscription:
    def __init__(self, listeners: list[_Listener], listener: _Listener) -> None:
        self._listeners = listeners
        self._listener = listener

    def release(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class LocalProcess(SandboxProcess):
    def __init__(self, label: str, process: asyncio.subprocess.Process, emit: Emit) -> None:
        self._label = label
        self._process = process
        self._emit = emit
        self._lines: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._announced = False
        self._pump = asyncio.create_task(self._read_output())

    @property
    def output(self) -> AsyncIterator[str]:
        return self._iter_lines()

    async def wait(self) -> int:
        await self._pump
        return await self._process.wait()

    @property
    def exited(self) -> bool:
        return self._process.returncode is not None

    def kill(self) -> None:
        if self._process.returncode is None:
            self._process.kill()

    async def _iter_lines(self) -> AsyncIterator[str]:
        while True:
            line = await self._lines.get()
            if line is None:
                return
            yield line

    async def _read_output(self) -> None:
        stream = self._process.stdout
        try:
            if stream is not None:
                while True:
                    raw = await stream.readline()
                    if not raw:
                        break
                    line = raw.decode("utf-8", errors="replace").rstrip()
                    self._scan(line)
                    await self._lines.put(line)
        finally:
            await self._lines.put(None)
        exit_code = await self._process.wait()
        if exit_code != 0:
            self._emit(ERROR_EVENT, f"{self._label} exited with code {exit_code}")

    def _scan(self, line: str) -> None:
        if self._announced:
            return
        url = find_local_url(line)
        if url:
            self._announced = True
            self._emit(READY_EVENT, url)


class LocalSandbox(SandboxHandle):
    def __init__(self, record: _SandboxRecord, env: dict[str, str] | None = None) -> None:
        self._record = record
        self._env = env
        self._listeners: dict[str, list[_Listener]] = {
            READY_EVENT: [],
            ERROR_EVENT: [],
        }
        self._processes: list[LocalProcess] = []
        self._spawn_count = 0

    @property
    def sandbox_id(self) -> str:
        return self._record.sandbox_id

    @property
    def root(self) -> Path:
        return self._record.root

    async def mount(self, tree: MountEntry) -> None:
        await asyncio.to_thread(self._write_tree, tree, "")

    async def spawn(self, command: str, args: Sequence[str] = ()) -> LocalProcess:
        self._spawn_count += 1
        origin = self._spawn_count
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            cwd=self._record.root,
            env=self._merge_env(self._env),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        label = " ".join([command, *args])
        spawned = LocalProcess(label, process, partial(self._emit, origin=origin))
        self._processes = [item for item in self._processes if not item.exited]
        self._processes.append(spawned)
        return spawned

    def subscribe(
        self, event: SandboxEvent, callback: Callable[[str], None]
    ) -> _Subscription:
        if event not in self._listeners:
            raise ValueError(f"Unknown sandbox event: {event}")
        listeners = self._listeners[event]
        listener = _Listener(callback, since=self._spawn_count)
        listeners.append(listener)
        return _Subscription(listeners, listener)

    @property
    def processes(self) -> list[LocalProcess]:
        return list(self._processes)

    def listener_count(self, event: SandboxEvent) -> int:
        return len(self._listeners[event])

    def terminate(self) -> None:
        for process in self._processes:
            process.kill()
        self._processes.clear()

    def _emit(self, event: SandboxEvent, payload: str, origin: int) -> None:
        for listener in list(self._listeners[event]):
            if not listener.hears(origin):
                continue
            try:
                listener.callback(payload)
            except Exception:
                logger.opt(exception=True).warning(
                    "sandbox.listener_failed sandbox={} event={}", self.sandbox_id, event
                )

    def _write_tree(self, tree: MountEntry, prefix: str) -> None:
        for name, entry in tree.items():
            path = f"{prefix}/{name}" if prefix else name
            if "directory" in entry:
                self._resolve_path(path).mkdir(parents=True, exist_ok=True)
                self._write_tree(entry["directory"], path)
            elif "file" in entry:
                target = self._resolve_path(path)
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(entry["file"].get("contents", ""), encoding="utf-8")
            else:
                raise ValueError(f"Invalid mount entry for {path}")

    def _resolve_path(self, path: str) -> Path:
        root = self._record.root.resolve()
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = root / candidate
        resolved = candidate.resolve()
        if root != resolved and root not in resolved.parents:
            raise ValueError(f"Path escapes sandbox: {path}")
        return resolved

    def _merge_env(self, env: dict[str, str] | None) -> dict[str, str]:
        merged = os.environ.copy()
        if env:
            merged.update(env)
        return merged


class LocalSandboxService(SandboxService):
    def __init__(
        self,
        base_dir: str | None = None,
        name: str = "preview",
        env: dict[str, str] | None = None,
    ) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path(
            tempfile.mkdtemp(prefix="sitesmith-local-")
        )
        self._name = name
        self._env = env
        self._sandboxes: dict[str, LocalSandbox] = {}

    async def boot(self) -> LocalSandbox:
        sandbox_id = f"{self._name}-{uuid4().hex[:8]}"
        root = self._base_dir / sandbox_id
        root.mkdir(parents=True, exist_ok=False)
        sandbox = LocalSandbox(_SandboxRecord(sandbox_id=sandbox_id, root=root), self._env)
        self._sandboxes[sandbox_id] = sandbox
        logger.info("sandbox.booted sandbox={} root={}", sandbox_id, root)
        return sandbox

    def delete_sandbox(self, sandbox_id: str) -> None:
        sandbox = self._get_sandbox(sandbox_id)
        sandbox.terminate()
        shutil.rmtree(sandbox.root, ignore_errors=True)
        self._sandboxes.pop(sandbox_id, None)

    def teardown(self) -> None:
        for sandbox_id in list(self._sandboxes):
            self.delete_sandbox(sandbox_id)

    def _get_sandbox(self, sandbox_id: str) -> LocalSandbox:
        if sandbox_id not in self._sandboxes:
            raise KeyError(f"Unknown sandbox id: {sandbox_id}")
        return self._sandboxes[sandbox_id]
