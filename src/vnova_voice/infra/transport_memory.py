"""Transporte de fala em memória: registra chamadas e mensagens enviadas.

Usado pela API HTTP (comandos sem áudio real) e pelos testes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from vnova_voice.domain.protocols.transport import SpeechTransport
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class RecordingTransport(SpeechTransport):
    """Transporte sem rede; start/stop sempre têm sucesso."""

    def __init__(self) -> None:
        self.started_with: list[str] = []
        self.stop_calls = 0
        self.sent: list[dict[str, Any]] = []

    async def start(self, session_id: str) -> None:
        self.started_with.append(session_id)
        logger.debug("recording_transport_started")

    async def stop(self) -> None:
        self.stop_calls += 1

    def send(self, message: Mapping[str, Any]) -> None:
        self.sent.append(dict(message))

    def drain_spoken(self) -> list[str]:
        """Retorna e limpa os textos falados desde a última chamada."""
        spoken = [extract_spoken_text(message) for message in self.sent]
        self.sent.clear()
        return [text for text in spoken if text]


def extract_spoken_text(message: Mapping[str, Any]) -> str | None:
    """Recupera o texto de uma mensagem add-message de fala."""
    content = (message.get("message") or {}).get("content") or ""
    prefix = 'Say this to the user: "'
    if content.startswith(prefix) and content.endswith('"'):
        return content[len(prefix) : -1]
    return None
