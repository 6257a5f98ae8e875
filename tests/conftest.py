from __future__ import annotations

import pytest

from fakes import FakeHandle, RecordingSleep


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_handle() -> FakeHandle:
    return FakeHandle()
