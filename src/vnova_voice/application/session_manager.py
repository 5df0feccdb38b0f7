"""Ciclo de vida da sessão de voz: conexão, reconexão, guarda de eco e gate.

Responsabilidades:
- start/stop/shutdown do transporte
- Reconexão automática (indefinida) enquanto a sessão deve estar conectada
- Guarda de eco dinâmica (pré-armada no speak, recalculada no fim da fala)
- Gate de transcrições antes do dispatcher

wasIntentionallyActive, reconnectAttempts e echoGuardUntil pertencem
exclusivamente a este módulo.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from vnova_voice.application.speech_output import SpeechOutput
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.enums import SessionStatus, TranscriptRole, TransportErrorKind
from vnova_voice.domain.protocols.transport import SpeechTransport
from vnova_voice.domain.transcript import TranscriptEvent
from vnova_voice.observability.logging import get_logger

if TYPE_CHECKING:
    from vnova_voice.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

TranscriptHandler = Callable[[str], Awaitable[Any]]

_AUTH_MARKERS = ("401", "unauthorized", "invalid api key", "invalid key", "authentication failed")
_BLOCKED_MARKERS = ("permission denied", "notallowederror", "not allowed", "microphone")
_EJECTION_MARKERS = ("daily-error", "ejection", "ejected", "meeting has ended", "meeting ended")


class ReconnectReason(StrEnum):
    """Origem de um agendamento de reconexão."""

    SESSION_ENDED = "session_ended"
    INITIAL_RETRY = "initial_retry"
    EJECTION = "ejection"
    GENERIC = "generic"


class GateReason(StrEnum):
    """Motivo de descarte de uma transcrição no gate."""

    NOT_USER = "not_user"
    NOT_FINAL = "not_final"
    SPEAKING = "speaking"
    ECHO_GUARD = "echo_guard"
    NOISE = "noise"


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """Atrasos de reconexão, em segundos.

    - session_ended: atraso fixo, sem limite de tentativas
    - initial_retry: uma tentativa rápida após falha do start()
    - ejection/generic: base * 2^falhas até o teto; depois do teto, intervalo longo
    """

    after_end_seconds: float = 1.0
    initial_retry_seconds: float = 1.5
    ejection_seconds: float = 1.5
    generic_seconds: float = 3.0
    backoff_max_seconds: float = 10.0
    long_interval_seconds: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> ReconnectPolicy:
        return cls(
            after_end_seconds=settings.reconnect_after_end_seconds,
            initial_retry_seconds=settings.reconnect_initial_retry_seconds,
            ejection_seconds=settings.reconnect_ejection_seconds,
            generic_seconds=settings.reconnect_generic_seconds,
            backoff_max_seconds=settings.reconnect_backoff_max_seconds,
            long_interval_seconds=settings.reconnect_long_interval_seconds,
        )

    def backoff(self, base_seconds: float, failures: int) -> float:
        """generic: 3, 6, 10, 15, 15, ...; ejection: 1.5, 3, 6, 10, 15, ..."""
        delay = base_seconds
        for _ in range(failures):
            if delay >= self.backoff_max_seconds:
                return self.long_interval_seconds
            delay = min(delay * 2, self.backoff_max_seconds)
        return delay

    def delay_for(self, reason: ReconnectReason, failures: int = 0) -> float:
        if reason == ReconnectReason.SESSION_ENDED:
            return self.after_end_seconds
        if reason == ReconnectReason.INITIAL_RETRY:
            return self.initial_retry_seconds
        if reason == ReconnectReason.EJECTION:
            return self.backoff(self.ejection_seconds, failures)
        return self.backoff(self.generic_seconds, failures)


@dataclass(frozen=True, slots=True)
class EchoGuardConfig:
    """Janela de descarte de transcrições em torno da fala do assistente (ms)."""

    min_ms: int = 3000
    max_ms: int = 8000
    tail_ms: int = 2000
    ms_per_word: int = 150
    min_estimate_ms: int = 2000
    prearm_buffer_ms: int = 3000

    @classmethod
    def from_settings(cls, settings: Settings) -> EchoGuardConfig:
        return cls(
            min_ms=settings.echo_guard_min_ms,
            max_ms=settings.echo_guard_max_ms,
            tail_ms=settings.echo_guard_tail_ms,
            ms_per_word=settings.speech_ms_per_word,
            min_estimate_ms=settings.speech_min_estimate_ms,
            prearm_buffer_ms=settings.speech_prearm_buffer_ms,
        )

    def estimate_speech_ms(self, text: str) -> int:
        return max(len(text.split()) * self.ms_per_word, self.min_estimate_ms)

    def prearm_ms(self, text: str) -> int:
        """Guarda armada antes do speech-start (estimativa + buffer)."""
        return self.estimate_speech_ms(text) + self.prearm_buffer_ms

    def post_speech_ms(self, duration_ms: float) -> int:
        """Guarda após o speech-end: clamp(duração + cauda, min, max)."""
        return int(min(max(duration_ms + self.tail_ms, self.min_ms), self.max_ms))


def _error_text(error: Any) -> str:
    if isinstance(error, Mapping):
        parts: list[Any] = []
        inner = error.get("error")
        if isinstance(inner, Mapping):
            parts.extend([inner.get("msg"), inner.get("message"), inner.get("type")])
        elif inner:
            parts.append(inner)
        parts.extend([error.get("errorMsg"), error.get("message"), error.get("type"), error.get("status")])
        return " ".join(str(part) for part in parts if part).lower()
    status = getattr(error, "status_code", None)
    return f"{type(error).__name__} {status or ''} {error}".lower()


def classify_transport_error(error: Any) -> TransportErrorKind:
    """Classifica um erro do transporte (dict cru, exceção ou texto)."""
    text = _error_text(error)
    if any(marker in text for marker in _AUTH_MARKERS):
        return TransportErrorKind.AUTH_FATAL
    if any(marker in text for marker in _BLOCKED_MARKERS):
        return TransportErrorKind.BLOCKED
    if any(marker in text for marker in _EJECTION_MARKERS):
        return TransportErrorKind.EJECTION
    return TransportErrorKind.GENERIC


class VoiceSessionManager:
    """Dono da conexão com o transporte de fala.

    Invariantes:
    - Reconexão só quando was_intentionally_active e status != blocked
    - stop()/shutdown() cancelam qualquer reconexão pendente
    - Um único timer de reconexão pendente por vez
    """

    def __init__(
        self,
        transport: SpeechTransport,
        handler: TranscriptHandler,
        *,
        session_id: str | None = None,
        policy: ReconnectPolicy | None = None,
        echo: EchoGuardConfig | None = None,
        min_transcript_chars: int = 2,
        speak_throttle_ms: int = 500,
        action_log: ActionLog | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._handler = handler
        self._session_id = session_id or ""
        self._policy = policy or ReconnectPolicy()
        self._echo = echo or EchoGuardConfig()
        self._min_chars = min_transcript_chars
        self._clock = clock or time.monotonic
        self._sleep = sleep

        self._status = SessionStatus.IDLE
        self._intentional = False
        self._reconnect_attempts = 0
        self._failure_streak = 0
        self._echo_guard_until: float | None = None
        self._speaking_since: float | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._pending_delay: float | None = None

        self._output = SpeechOutput(
            transport.send,
            arm_echo_guard=self.arm_echo_guard,
            can_speak=lambda: self.is_connected,
            throttle_ms=speak_throttle_ms,
            action_log=action_log,
            clock=self._clock,
        )

    # Estado observável

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def was_intentionally_active(self) -> bool:
        return self._intentional

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def echo_guard_until(self) -> float | None:
        return self._echo_guard_until

    @property
    def speaking_since(self) -> float | None:
        return self._speaking_since

    @property
    def is_speaking(self) -> bool:
        return self._speaking_since is not None

    @property
    def is_connected(self) -> bool:
        return self._status in (SessionStatus.ACTIVE, SessionStatus.SPEAKING)

    @property
    def pending_reconnect_delay(self) -> float | None:
        """Atraso do timer de reconexão pendente (None se não houver)."""
        if self._reconnect_task is None or self._reconnect_task.done():
            return None
        return self._pending_delay

    @property
    def reconnect_task(self) -> asyncio.Task[None] | None:
        return self._reconnect_task

    # Ciclo de vida

    async def start(self, session_id: str | None = None) -> bool:
        """Conecta o transporte. Em falha agenda uma tentativa rápida e retorna False."""
        if session_id:
            self._session_id = session_id
        self._intentional = True
        self._cancel_reconnect()
        self._status = SessionStatus.CONNECTING
        try:
            await self._transport.start(self._session_id)
        except Exception as exc:
            logger.warning("transport_start_failed", extra={"error_type": type(exc).__name__})
            self._status = SessionStatus.IDLE
            self._schedule_reconnect(ReconnectReason.INITIAL_RETRY)
            return False
        self._mark_connected()
        return True

    async def stop(self) -> None:
        """Parada manual: único caminho que suprime reconexões de forma durável."""
        self._intentional = False
        self._cancel_reconnect()
        self._reconnect_attempts = 0
        self._speaking_since = None
        self._status = SessionStatus.IDLE
        logger.info("voice_session_stopped")
        await self._transport.stop()

    async def shutdown(self) -> None:
        """Teardown: cancela timers e desconecta, engolindo erros de stop."""
        self._intentional = False
        self._cancel_reconnect()
        self._speaking_since = None
        self._status = SessionStatus.IDLE
        try:
            await self._transport.stop()
        except Exception as exc:
            logger.warning("transport_stop_failed", extra={"error_type": type(exc).__name__})

    # Eventos do transporte

    def on_session_started(self) -> None:
        if self._pending_delay is not None:
            # Só o timer ainda dormindo; um start em andamento segue até o fim
            self._cancel_reconnect()
        self._mark_connected()

    def on_session_ended(self) -> None:
        self._speaking_since = None
        if self._status not in (SessionStatus.BLOCKED, SessionStatus.ERROR):
            self._status = SessionStatus.IDLE
        logger.info("voice_session_ended", extra={"intentional": self._intentional})

        if not self._should_reconnect():
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            # Timer com backoff já agendado ou reconexão em andamento
            return
        self._schedule_reconnect(ReconnectReason.SESSION_ENDED)

    def on_speech_started(self) -> None:
        self._speaking_since = self._clock()
        if self.is_connected:
            self._status = SessionStatus.SPEAKING

    def on_speech_ended(self) -> None:
        now = self._clock()
        duration_ms = (now - self._speaking_since) * 1000 if self._speaking_since is not None else 0.0
        guard_ms = self._echo.post_speech_ms(duration_ms)
        self._echo_guard_until = now + guard_ms / 1000
        self._speaking_since = None
        if self._status == SessionStatus.SPEAKING:
            self._status = SessionStatus.ACTIVE
        logger.debug("echo_guard_armed", extra={"guard_ms": guard_ms, "phase": "post_speech"})

    def on_transport_error(self, error: Any) -> TransportErrorKind:
        kind = classify_transport_error(error)
        self._speaking_since = None

        if kind in (TransportErrorKind.AUTH_FATAL, TransportErrorKind.BLOCKED):
            self._intentional = False
            self._cancel_reconnect()
            self._status = SessionStatus.ERROR if kind == TransportErrorKind.AUTH_FATAL else SessionStatus.BLOCKED
            logger.error("transport_error_fatal", extra={"kind": kind.value})
            return kind

        self._status = SessionStatus.IDLE
        logger.warning("transport_error", extra={"kind": kind.value, "failures": self._failure_streak})
        if self._should_reconnect():
            reason = ReconnectReason.EJECTION if kind == TransportErrorKind.EJECTION else ReconnectReason.GENERIC
            self._schedule_reconnect(reason, failures=self._failure_streak)
            self._failure_streak += 1
        return kind

    async def handle_transport_event(self, name: str, payload: Mapping[str, Any] | None = None) -> Any:
        """Ponto único de entrada dos eventos crus do transporte."""
        payload = payload or {}
        if name in ("session-started", "call-start"):
            self.on_session_started()
        elif name in ("session-ended", "call-end"):
            self.on_session_ended()
        elif name in ("speech-started", "speech-start"):
            self.on_speech_started()
        elif name in ("speech-ended", "speech-end"):
            self.on_speech_ended()
        elif name == "error":
            return self.on_transport_error(payload)
        elif name in ("transcript", "message"):
            event = TranscriptEvent.from_transport(payload, timestamp=self._clock())
            if event is not None:
                return await self.on_transcript(event)
        else:
            logger.debug("transport_event_ignored", extra={"event_name": name})
        return None

    # Gate e guarda de eco

    def arm_echo_guard(self, text: str) -> int:
        """Pré-arma a guarda antes do transporte reportar speech-start."""
        guard_ms = self._echo.prearm_ms(text)
        until = self._clock() + guard_ms / 1000
        if self._echo_guard_until is None or until > self._echo_guard_until:
            self._echo_guard_until = until
        logger.debug("echo_guard_armed", extra={"guard_ms": guard_ms, "phase": "prearm"})
        return guard_ms

    def gate_reason(self, event: TranscriptEvent) -> GateReason | None:
        if event.role != TranscriptRole.USER:
            return GateReason.NOT_USER
        if not event.is_final:
            return GateReason.NOT_FINAL
        if self.is_speaking:
            return GateReason.SPEAKING
        if self._echo_guard_until is not None and self._clock() < self._echo_guard_until:
            return GateReason.ECHO_GUARD
        if len(event.text.strip()) < self._min_chars:
            return GateReason.NOISE
        return None

    def accept(self, event: TranscriptEvent) -> bool:
        return self.gate_reason(event) is None

    async def on_transcript(self, event: TranscriptEvent) -> Any:
        """Aplica o gate e repassa o texto ao handler corrente."""
        reason = self.gate_reason(event)
        if reason is not None:
            logger.debug("transcript_gated", extra={"reason": reason.value})
            return None
        return await self._handler(event.text.strip())

    def speak(self, text: str) -> bool:
        return self._output.speak(text)

    # Reconexão

    def _should_reconnect(self) -> bool:
        return self._intentional and self._status != SessionStatus.BLOCKED

    def _mark_connected(self) -> None:
        self._intentional = True
        self._reconnect_attempts = 0
        self._failure_streak = 0
        self._status = SessionStatus.ACTIVE
        logger.info("voice_session_active")

    def _schedule_reconnect(self, reason: ReconnectReason, failures: int = 0) -> None:
        self._cancel_reconnect()
        delay = self._policy.delay_for(reason, failures)
        self._reconnect_attempts += 1
        self._pending_delay = delay
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_after(delay, reason))
        logger.info(
            "reconnect_scheduled",
            extra={"reason": reason.value, "delay_seconds": delay, "attempt": self._reconnect_attempts},
        )

    def _cancel_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        self._pending_delay = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _release_reconnect_task(self) -> None:
        if self._reconnect_task is asyncio.current_task():
            self._reconnect_task = None
            self._pending_delay = None

    async def _reconnect_after(self, delay: float, reason: ReconnectReason) -> None:
        """Dorme, reconecta e só então marca ativo.

        A task continua registrada durante o start() do transporte, para que
        stop()/shutdown() concorrentes a cancelem.
        """
        try:
            await self._sleep(delay)
            self._pending_delay = None
            if not self._should_reconnect():
                return

            self._status = SessionStatus.CONNECTING
            try:
                await self._transport.start(self._session_id)
            except Exception as exc:
                logger.warning(
                    "reconnect_failed",
                    extra={"reason": reason.value, "error_type": type(exc).__name__},
                )
                if reason == ReconnectReason.INITIAL_RETRY:
                    self._status = SessionStatus.IDLE
                    return
                self.on_transport_error(exc)
                return

            if not self._should_reconnect():
                # Erro fatal ou parada chegaram durante o start()
                logger.info("reconnect_discarded", extra={"reason": reason.value, "status": self._status.value})
                try:
                    await self._transport.stop()
                except Exception as exc:
                    logger.warning("transport_stop_failed", extra={"error_type": type(exc).__name__})
                return
            self._mark_connected()
        finally:
            self._release_reconnect_task()
