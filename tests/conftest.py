from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from staterelay.main import create_app
from staterelay.models import RelaySettings


@pytest.fixture
def initial_state() -> str:
    return "aqab...bk..."


@pytest.fixture
def make_client(initial_state):
    """Build a TestClient for an app with the given settings overrides.

    Use it as a context manager so every WebSocket shares one event loop.
    """

    def _make(**overrides) -> TestClient:
        fields = {"initial_state": initial_state, "allow_any_origin": True}
        fields.update(overrides)
        return TestClient(create_app(RelaySettings(**fields)))

    return _make
