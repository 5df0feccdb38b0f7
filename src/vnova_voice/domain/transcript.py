"""Evento imutável de transcrição vindo do transporte."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from vnova_voice.domain.enums import TranscriptRole


@dataclass(frozen=True, slots=True)
class TranscriptEvent:
    """Trecho transcrito; consumido uma única vez pelo gate da sessão."""

    role: TranscriptRole
    text: str
    is_final: bool
    timestamp: float

    @property
    def is_dispatchable(self) -> bool:
        """Somente falas finais do usuário podem chegar ao dispatcher."""
        return self.role == TranscriptRole.USER and self.is_final

    @classmethod
    def from_transport(cls, message: Mapping[str, Any], timestamp: float) -> TranscriptEvent | None:
        """Constrói o evento a partir da mensagem crua do transporte.

        Aceita a mensagem crua ({"type": "transcript", "role", "transcriptType", "transcript"})
        ou o evento simplificado ({"role", "text", "isFinal"}). Retorna None para
        mensagens de outro tipo.
        """
        if message.get("type", "transcript") != "transcript":
            return None
        try:
            role = TranscriptRole(str(message.get("role", "")).lower())
        except ValueError:
            role = TranscriptRole.ASSISTANT
        return cls(
            role=role,
            text=str(message.get("transcript") or message.get("text") or ""),
            is_final=message.get("transcriptType") == "final" or message.get("isFinal") is True,
            timestamp=timestamp,
        )
