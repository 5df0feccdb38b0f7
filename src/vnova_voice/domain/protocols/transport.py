"""Contrato do transporte de fala (STT + sessão + síntese)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class SpeechTransport(ABC):
    """Superfície mínima consumida pelo núcleo.

    Eventos (session-started, session-ended, speech-started, speech-ended,
    transcript, error) são entregues pelo integrador ao VoiceSessionManager.
    """

    @abstractmethod
    async def start(self, session_id: str) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    @abstractmethod
    def send(self, message: Mapping[str, Any]) -> None: ...
