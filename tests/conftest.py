from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from vnova_voice.ai.openai_client import OracleClient
from vnova_voice.config.settings import Settings, get_settings
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.infra.catalog_memory import InMemoryCatalog
from vnova_voice.infra.event_bus import InMemoryEventBus
from vnova_voice.infra.storefront_memory import InMemoryStorefront
from vnova_voice.infra.transport_memory import RecordingTransport
from vnova_voice.infra.user_info_memory import InMemoryUserInfoStore


class FakeClock:
    """Relógio monotônico controlado pelo teste (segundos)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Registra os atrasos pedidos e retorna imediatamente."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class FlakyTransport(RecordingTransport):
    """Transporte cujo start() falha com as exceções enfileiradas."""

    def __init__(self, failures: list[Exception] | None = None) -> None:
        super().__init__()
        self.failures = list(failures or [])
        self.stop_error: Exception | None = None

    async def start(self, session_id: str) -> None:
        self.started_with.append(session_id)
        if self.failures:
            raise self.failures.pop(0)

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error


def chat_response(content: str) -> SimpleNamespace:
    """Resposta no formato de chat.completions.create."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def scripted_chat_client(responder: Callable[[str], Any]) -> SimpleNamespace:
    """Cliente OpenAI falso; responder(prompt) retorna texto ou lança exceção."""

    async def create(**kwargs: Any) -> SimpleNamespace:
        prompt = kwargs["messages"][0]["content"]
        result = responder(prompt)
        if isinstance(result, Exception):
            raise result
        return chat_response(result)

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(side_effect=create))))


@pytest.fixture()
def settings() -> Settings:
    get_settings.cache_clear()
    return Settings(vapi_assistant_id="assistant-test", log_level="WARNING")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture()
def action_log() -> ActionLog:
    return ActionLog()


@pytest.fixture()
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture()
def storefront(catalog: InMemoryCatalog) -> InMemoryStorefront:
    return InMemoryStorefront(catalog)


@pytest.fixture()
def user_info() -> InMemoryUserInfoStore:
    return InMemoryUserInfoStore()


@pytest.fixture()
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture()
def oracle() -> AsyncMock:
    """Oráculo com classify() controlável pelo teste."""
    mock = AsyncMock(spec=OracleClient)
    mock.enabled = True
    return mock


@pytest.fixture()
def speak() -> Callable[[str], bool]:
    spoken: list[str] = []

    def _speak(text: str) -> bool:
        spoken.append(text)
        return True

    _speak.spoken = spoken  # type: ignore[attr-defined]
    return _speak
