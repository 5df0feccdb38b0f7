"""Despacho single-flight de uma fala por vez para o handler correto.

Fluxo:
1. Checkout guiado ativo → roteia exclusivamente para o diálogo
2. Fast-path por palavra-chave → order_completion sem oráculo
3. Oráculo classifica a intenção (falha → general_command)
4. Re-checa o checkout (pode ter sido ativado durante a classificação)
5. Handler da intenção; general_command tenta navegação e carrinho
6. Registra o resultado no ActionLog; sem handler que aceite, fala FALLBACK_RESPONSE

Chamadas concorrentes são descartadas, nunca enfileiradas.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass

from vnova_voice.ai import prompts
from vnova_voice.ai.openai_client import OracleClient, OracleError
from vnova_voice.application.checkout_flow import CheckoutDialogue
from vnova_voice.domain.action_log import ActionLog
from vnova_voice.domain.enums import Intent
from vnova_voice.observability.logging import get_logger, log_fallback
from vnova_voice.observability.middleware import correlation_scope
from vnova_voice.observability.timing import timed

logger: logging.Logger = get_logger(__name__)

Handler = Callable[[str], Awaitable[bool]]

FAST_PATH_PHRASES: tuple[str, ...] = (
    "checkout",
    "check out",
    "place order",
    "place my order",
    "complete purchase",
    "buy now",
)
FALLBACK_RESPONSE = "I couldn't understand, please repeat."

_FAST_PATH = re.compile(
    r"\b(" + "|".join(re.escape(phrase) for phrase in FAST_PATH_PHRASES) + r")\b",
    re.IGNORECASE,
)


def fast_path_intent(transcript: str) -> Intent | None:
    """Override determinístico para o caminho crítico de conversão."""
    if _FAST_PATH.search(transcript):
        return Intent.ORDER_COMPLETION
    return None


@dataclass(slots=True)
class DispatchOutcome:
    """Resultado observável de um dispatch."""

    transcript: str
    handled: bool = False
    dropped: bool = False
    intent: Intent | None = None
    routed_to_checkout: bool = False
    fast_path: bool = False
    response: str | None = None
    error: str | None = None


class CommandDispatcher:
    """Roteador single-flight de falas.

    O lock é um flag simples: a execução é cooperativa (um event loop), então
    check-and-set sem await no meio é atômico.
    """

    def __init__(
        self,
        oracle: OracleClient,
        checkout: CheckoutDialogue,
        handlers: Mapping[Intent, Handler],
        *,
        speak: Callable[[str], bool],
        order_trigger: Callable[[], None],
        action_log: ActionLog,
        fallback_handlers: Sequence[Handler] = (),
    ) -> None:
        self._oracle = oracle
        self._checkout = checkout
        self._handlers = dict(handlers)
        self._fallback_handlers = tuple(fallback_handlers)
        self._speak = speak
        self._order_trigger = order_trigger
        self._action_log = action_log
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def dispatch(self, transcript: str) -> DispatchOutcome:
        """Processa uma fala; nunca propaga exceções de handler."""
        if self._in_flight:
            logger.info("dispatch_dropped_in_flight", extra={"text_length": len(transcript)})
            return DispatchOutcome(transcript=transcript, dropped=True)

        self._in_flight = True
        try:
            with correlation_scope(), timed("dispatch", text_length=len(transcript)) as watch:
                outcome = await self._dispatch(transcript.strip())
                watch.fields["handled"] = outcome.handled
                return outcome
        finally:
            self._in_flight = False

    async def _dispatch(self, transcript: str) -> DispatchOutcome:
        outcome = DispatchOutcome(transcript=transcript)

        if self._checkout.is_active:
            return await self._route_to_checkout(transcript, outcome)

        self._action_log.record(f'Processing: "{transcript}"')
        try:
            intent = fast_path_intent(transcript)
            outcome.fast_path = intent is not None
            if intent is None:
                intent = await self._classify(transcript)
            outcome.intent = intent
            self._action_log.record(f"Intent: {intent.value}")

            if self._checkout.is_active:
                logger.info("dispatch_checkout_activated_mid_classification")
                return await self._route_to_checkout(transcript, outcome)

            outcome.handled = await self._run_handlers(intent, transcript)
        except Exception as exc:
            logger.exception("dispatch_handler_failed", extra={"intent": str(outcome.intent)})
            outcome.error = type(exc).__name__
            self._respond_fallback(outcome)
            self._action_log.record("Error processing command", success=False)
            return outcome

        if not outcome.handled:
            self._respond_fallback(outcome)
            self._action_log.record("Command not recognized")
        logger.info(
            "dispatch_completed",
            extra={
                "intent": intent.value,
                "handled": outcome.handled,
                "fast_path": outcome.fast_path,
            },
        )
        return outcome

    def _respond_fallback(self, outcome: DispatchOutcome) -> None:
        outcome.response = FALLBACK_RESPONSE
        self._speak(FALLBACK_RESPONSE)

    async def _classify(self, transcript: str) -> Intent:
        with timed("intent_classification") as watch:
            try:
                label = await self._oracle.classify(prompts.format_intent_classification(transcript))
            except OracleError as exc:
                watch.fields["fallback_used"] = True
                log_fallback(
                    logger,
                    "intent_classification",
                    reason="rate_limited" if exc.rate_limited else "oracle_unavailable",
                    elapsed_ms=watch.elapsed_ms,
                )
                return Intent.GENERAL_COMMAND
            intent = Intent.parse(label)
            watch.fields["intent"] = intent.value
            return intent

    async def _run_handlers(self, intent: Intent, transcript: str) -> bool:
        handler = self._handlers.get(intent)
        if handler is not None and await handler(transcript):
            return True
        if intent != Intent.GENERAL_COMMAND:
            return False
        for fallback in self._fallback_handlers:
            if await fallback(transcript):
                return True
        return False

    async def _route_to_checkout(self, transcript: str, outcome: DispatchOutcome) -> DispatchOutcome:
        outcome.routed_to_checkout = True
        try:
            turn = await self._checkout.process_answer(transcript)
            if turn is None:
                outcome.dropped = True
                return outcome

            outcome.handled = turn.success
            outcome.response = turn.prompt or None
            if turn.prompt:
                self._speak(turn.prompt)
            if turn.should_confirm_order:
                self._order_trigger()
                self._action_log.record("Submitting order")
        except Exception as exc:
            logger.exception("dispatch_checkout_failed", extra={"step": self._checkout.current_step.value})
            self._action_log.record("Error processing command", success=False)
            outcome.error = type(exc).__name__
        return outcome
