from __future__ import annotations

import asyncio

import pytest

from fakes import FakeSandboxService
from sitesmith.models.sandbox import FailureKind, SandboxPhase
from sitesmith.pipeline.tree import build_file_tree
from sitesmith.sandbox.manager import PreviewManager

TREE = build_file_tree({"package.json": "{}", "index.js": "listen()"})


def _manager(service: FakeSandboxService, sleep) -> PreviewManager:
    return PreviewManager(service, sleep=sleep, output_sink=lambda label, line: None)


@pytest.mark.asyncio
async def test_idle_before_first_launch(recording_sleep) -> None:
    manager = _manager(FakeSandboxService(), recording_sleep)

    assert manager.state.phase is SandboxPhase.IDLE
    assert manager.session is None


@pytest.mark.asyncio
async def test_relaunch_releases_previous_subscriptions(recording_sleep) -> None:
    service = FakeSandboxService()
    manager = _manager(service, recording_sleep)

    await manager.launch(TREE)
    first = manager.session
    stale_ready = list(service.handle.listeners["ready"])
    await manager.launch(TREE)
    second = manager.session

    assert first is not second
    assert first.closed
    assert service.handle.listener_count() == 2
    assert all(sub.released for sub in service.handle.subscriptions[:2])

    for callback in stale_ready:
        callback("http://localhost:1111/")
    assert first.state.phase is SandboxPhase.STARTING
    assert second.state.phase is SandboxPhase.STARTING

    service.handle.fire("ready", "http://localhost:2222/")
    assert second.state.url == "http://localhost:2222/"
    assert first.state.url is None


@pytest.mark.asyncio
async def test_booted_handle_is_reused(recording_sleep) -> None:
    service = FakeSandboxService()
    manager = _manager(service, recording_sleep)

    await manager.launch(TREE)
    await manager.launch(TREE)

    assert service.boot_calls == 1
    assert len(service.handle.mounted) == 2


@pytest.mark.asyncio
async def test_background_launch_settles(recording_sleep) -> None:
    service = FakeSandboxService()
    manager = _manager(service, recording_sleep)

    task = manager.launch_in_background(TREE)
    await task
    service.handle.fire("ready", "http://localhost:5173/")
    state = await manager.wait_settled(timeout=1)

    assert state.phase is SandboxPhase.SERVING
    assert manager.state.describe() == "Preview ready at http://localhost:5173/"


@pytest.mark.asyncio
async def test_close_releases_active_session(recording_sleep) -> None:
    service = FakeSandboxService()
    manager = _manager(service, recording_sleep)
    await manager.launch(TREE)

    manager.close()

    assert service.handle.listener_count() == 0


@pytest.mark.asyncio
async def test_failing_boot_stops_at_the_attempt_bound(recording_sleep) -> None:
    service = FakeSandboxService(failures=100)
    manager = _manager(service, recording_sleep)

    state = await manager.launch(TREE)

    assert state.phase is SandboxPhase.FAILED
    assert state.failure is FailureKind.BOOT_EXHAUSTED
    assert service.boot_calls == 3
    assert recording_sleep.delays == [1.0, 1.0]
    assert service.handle.mounted == []


@pytest.mark.asyncio
async def test_background_launch_exposes_new_session_immediately(recording_sleep) -> None:
    service = FakeSandboxService()
    manager = _manager(service, recording_sleep)
    await manager.launch(TREE)
    service.handle.fire("ready", "http://localhost:1111/")
    assert manager.state.phase is SandboxPhase.SERVING

    manager.launch_in_background(TREE)

    assert manager.state.phase is SandboxPhase.READY
    assert manager.state.url is None
    await manager.wait_launched(timeout=1)
    assert manager.state.phase is SandboxPhase.STARTING


@pytest.mark.asyncio
async def test_wait_settled_survives_a_superseded_launch() -> None:
    service = FakeSandboxService(failures=1)
    manager = PreviewManager(
        service, sleep=asyncio.sleep, boot_delay_s=0, output_sink=lambda label, line: None
    )

    first = manager.launch_in_background(TREE)
    waiter = asyncio.create_task(manager.wait_settled(timeout=1))
    await asyncio.sleep(0)
    manager.launch_in_background(TREE)
    await manager.wait_launched(timeout=1)
    service.handle.fire("ready", "http://localhost:5173/")
    state = await waiter

    assert first.cancelled()
    assert state.phase is SandboxPhase.SERVING
    assert service.boot_calls == 2
    assert state.url == "http://localhost:5173/"


@pytest.mark.asyncio
async def test_superseded_session_server_is_stopped(recording_sleep) -> None:
    service = FakeSandboxService()
    manager = _manager(service, recording_sleep)
    await manager.launch(TREE)
    server = service.handle.processes[-1]

    await manager.launch(TREE)

    assert server.killed
    assert not service.handle.processes[-1].killed
