from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from fakes import FakeCollaborator, FakeSandboxService, RecordingSleep, make_result
from sitesmith.api.main import create_app
from sitesmith.config import Settings

RAW = '<action type="file" path="index.js">listen()</action>'


@pytest.fixture
def service() -> FakeSandboxService:
    return FakeSandboxService()


@pytest.fixture
def client(service: FakeSandboxService) -> TestClient:
    collaborator = FakeCollaborator(make_result({"index.js": "listen()"}, RAW))
    app = create_app(Settings(), collaborator=collaborator, sandbox_service=service)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_generate_returns_tree_and_steps(client: TestClient) -> None:
    response = client.post("/generate", json={"prompt": "an api"})

    body = response.json()
    assert response.status_code == 200
    assert body["error"] is None
    assert body["tree"] == [
        {"name": "index.js", "path": "index.js", "kind": "file", "content": "listen()"}
    ]
    assert body["steps"][0]["path"] == "index.js"


def test_blank_prompt_is_rejected(client: TestClient) -> None:
    response = client.post("/generate", json={"prompt": "   "})

    assert response.status_code == 400


def test_preview_requires_a_generated_tree(client: TestClient) -> None:
    response = client.post("/preview")

    assert response.status_code == 409
    assert client.get("/preview").json()["phase"] == "idle"


def test_preview_reports_the_new_session(client: TestClient, service: FakeSandboxService) -> None:
    previews = client.app.state.previews
    client.post("/generate", json={"prompt": "an api"})

    first = client.post("/preview")
    launched = client.portal.call(previews.wait_launched, 1)
    client.portal.call(service.handle.fire, "ready", "http://localhost:5173/")
    serving = client.get("/preview").json()
    second = client.post("/preview")

    assert first.status_code == 200
    assert first.json()["phase"] == "idle"
    assert launched.phase.value == "starting"
    assert serving["phase"] == "serving"
    assert serving["url"] == "http://localhost:5173/"
    assert second.json()["phase"] == "ready"
    assert second.json()["url"] is None
    assert service.boot_calls == 1


def test_preview_boot_failure_is_bounded() -> None:
    service = FakeSandboxService(failures=100)
    sleep = RecordingSleep()
    collaborator = FakeCollaborator(make_result({"index.js": "listen()"}, RAW))
    app = create_app(Settings(), collaborator=collaborator, sandbox_service=service, sleep=sleep)

    with TestClient(app) as client:
        client.post("/generate", json={"prompt": "an api"})
        client.post("/preview")
        client.portal.call(app.state.previews.wait_settled, 1)
        body = client.get("/preview").json()

    assert body["phase"] == "failed"
    assert body["failure"] == "BootExhausted"
    assert "boot failure 3" in body["message"]
    assert service.boot_calls == 3
    assert len(sleep.delays) == 2
