from __future__ import annotations

import pytest

from chatwire import ChatAPI

from .fakes import FakeChatServer


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)


@pytest.fixture
def fake_server() -> FakeChatServer:
    return FakeChatServer()


@pytest.fixture
def api(fake_server: FakeChatServer) -> ChatAPI:
    return ChatAPI(
        model="gpt-4o-mini",
        api_key="sk-test",
        client_args={"transport": fake_server.transport},
    )
