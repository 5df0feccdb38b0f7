"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from vnova_voice.application.assistant import VoiceAssistant
from vnova_voice.config.settings import Settings
from vnova_voice.infra.transport_memory import RecordingTransport


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_assistant(request: Request) -> VoiceAssistant:
    """Retorna o assistente de voz do processo."""

    return request.app.state.assistant


def get_recording_transport(request: Request) -> RecordingTransport | None:
    """Transporte em memória, quando em uso (permite devolver o que foi falado)."""
    transport = getattr(request.app.state, "transport", None)
    return transport if isinstance(transport, RecordingTransport) else None
