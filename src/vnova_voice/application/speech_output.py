"""Canal de saída de fala (TTS via transporte), com throttle anti-feedback."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from vnova_voice.domain.action_log import ActionLog
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

SPEAK_INSTRUCTION = 'Say this to the user: "{text}"'


def build_speak_message(text: str) -> dict[str, Any]:
    """Mensagem de sistema que faz o transporte falar o texto."""
    return {
        "type": "add-message",
        "message": {"role": "system", "content": SPEAK_INSTRUCTION.format(text=text)},
    }


class SpeechOutput:
    """Ponto único speak(text) consumido por handlers e pelo checkout.

    Contrato:
    - Chamadas a menos de throttle_ms da anterior são descartadas
    - A guarda de eco é armada ANTES do envio ao transporte
    - Falha do transporte é logada e não propaga (fala é fire-and-forget)
    """

    def __init__(
        self,
        send: Callable[[Mapping[str, Any]], None],
        *,
        arm_echo_guard: Callable[[str], float],
        can_speak: Callable[[], bool],
        throttle_ms: int = 500,
        action_log: ActionLog | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._send = send
        self._arm_echo_guard = arm_echo_guard
        self._can_speak = can_speak
        self._throttle_seconds = throttle_ms / 1000
        self._action_log = action_log
        self._clock = clock or time.monotonic
        self._last_spoken_at: float | None = None

    def speak(self, text: str) -> bool:
        """Fala o texto; retorna True se foi entregue ao transporte."""
        text = text.strip()
        if not text:
            return False

        now = self._clock()
        if self._last_spoken_at is not None and now - self._last_spoken_at < self._throttle_seconds:
            logger.info("speak_throttled", extra={"text_length": len(text)})
            return False
        self._last_spoken_at = now

        if self._action_log is not None:
            self._action_log.record(text)

        if not self._can_speak():
            logger.info("speak_skipped_not_connected")
            return False

        guard_ms = self._arm_echo_guard(text)
        try:
            self._send(build_speak_message(text))
        except Exception as exc:
            logger.warning("speak_send_failed", extra={"error_type": type(exc).__name__})
            return False

        logger.debug("speak_sent", extra={"text_length": len(text), "echo_guard_ms": guard_ms})
        return True
