"""Diálogo de checkout guiado: máquina de estados com extração por passo.

Conforme a tabela total em domain/checkout/transitions.py:
- Um campo por passo, na ordem fixa name → ... → cvv → confirm → complete
- O ponteiro de passo só avança após extração + validação
- Escritas no store de user-info são fire-and-forget (sem rollback)
- Logs nunca carregam valores capturados (apenas passo e campo)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from vnova_voice.ai.contracts.field_extraction import FieldExtractionResult
from vnova_voice.application.extraction import FieldExtractor
from vnova_voice.domain.checkout import (
    CANCEL_PROMPT,
    CONFIRM_REPROMPT,
    INACTIVE_STEPS,
    STEP_PROMPTS,
    STEP_TABLE,
    CheckoutStep,
    StepSpec,
)
from vnova_voice.domain.checkout.transitions import is_affirmative, is_negative
from vnova_voice.domain.protocols.user_info import (
    FIELD_UPDATED_TOPIC,
    EventBusProtocol,
    UserInfoStoreProtocol,
)
from vnova_voice.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

# Mensagem montada pelo próprio extrator quando o oráculo não explicou a falha
_BARE_EXTRACT_ERROR = re.compile(r"Could not extract [\w ]+")


@dataclass(frozen=True, slots=True)
class CheckoutTurn:
    """Resultado de um processAnswer."""

    success: bool
    prompt: str
    step: CheckoutStep
    should_confirm_order: bool = False


def build_reprompt(spec: StepSpec, result: FieldExtractionResult, transcript: str) -> str:
    """Reprompt para extração sem valor; nunca vazio.

    - Rate limit: mensagem de alta demanda
    - Oráculo respondeu com texto de erro próprio: usa o texto como está
    - Oráculo fora do ar, regras locais ou erro genérico do extrator: reprompt do
      normalizador (telefone, cartão, CVV...) ou pedido genérico de repetição
    """
    if result.rate_limited:
        return (
            f"I'm having trouble processing your {spec.label} due to high demand. "
            "Please try again in a moment."
        )
    error = (result.error or "").strip()
    oracle_text = result.source == "oracle" and not result.unavailable
    if error and oracle_text and not _BARE_EXTRACT_ERROR.fullmatch(error):
        return error
    check = spec.normalize(transcript)
    if check.reprompt:
        return check.reprompt
    return f"I couldn't understand your {spec.label}. Could you please repeat it?"


class CheckoutDialogue:
    """Instância da máquina de estados do checkout guiado.

    Invariantes:
    - is_active == (current_step não é idle nem complete)
    - collected_fields só recebe valores já validados
    - process_answer é serializado: chamada concorrente retorna None
    """

    def __init__(
        self,
        extractor: FieldExtractor,
        user_info: UserInfoStoreProtocol,
        event_bus: EventBusProtocol | None = None,
    ) -> None:
        self._extractor = extractor
        self._user_info = user_info
        self._event_bus = event_bus
        self._step = CheckoutStep.IDLE
        self._collected: dict[str, str] = {}
        self._processing = False

    @property
    def current_step(self) -> CheckoutStep:
        return self._step

    @property
    def collected_fields(self) -> dict[str, str]:
        return dict(self._collected)

    @property
    def is_active(self) -> bool:
        return self._step not in INACTIVE_STEPS

    def current_prompt(self) -> str:
        return STEP_PROMPTS[self._step]

    def start_flow(self) -> str:
        """Reinicia em name, limpa campos coletados e retorna o prompt de name."""
        self._collected.clear()
        self._set_step(CheckoutStep.NAME)
        logger.info("checkout_flow_started")
        return STEP_PROMPTS[CheckoutStep.NAME]

    def stop_flow(self) -> None:
        """Volta para idle; o store de user-info não é revertido."""
        if self._step != CheckoutStep.IDLE:
            logger.info("checkout_flow_stopped", extra={"step": self._step.value})
        self._set_step(CheckoutStep.IDLE)

    async def process_answer(self, transcript: str) -> CheckoutTurn | None:
        """Processa uma resposta do usuário no passo corrente.

        Returns:
            CheckoutTurn, ou None se outra resposta ainda está sendo processada
        """
        if self._processing:
            logger.info("checkout_answer_dropped", extra={"step": self._step.value})
            return None

        self._processing = True
        try:
            return await self._process(transcript)
        finally:
            self._processing = False

    async def _process(self, transcript: str) -> CheckoutTurn:
        step = self._step
        if step in INACTIVE_STEPS:
            return CheckoutTurn(success=False, prompt="", step=step)
        if step == CheckoutStep.CONFIRM:
            return self._process_confirmation(transcript)

        spec = STEP_TABLE[step]
        result = await self._extractor.extract(transcript, spec.field_type)
        if not result.found:
            logger.info(
                "checkout_extraction_failed",
                extra={
                    "step": step.value,
                    "rate_limited": result.rate_limited,
                    "source": result.source,
                },
            )
            return CheckoutTurn(success=False, prompt=build_reprompt(spec, result, transcript), step=step)

        check = spec.normalize(result.value or "")
        if not check.ok:
            logger.info("checkout_validation_failed", extra={"step": step.value})
            return CheckoutTurn(success=False, prompt=check.reprompt or "", step=step)

        self._commit(spec, check.value or "")
        self._set_step(spec.next_step)
        return CheckoutTurn(success=True, prompt=STEP_PROMPTS[self._step], step=self._step)

    def _process_confirmation(self, transcript: str) -> CheckoutTurn:
        # "no, don't place it" contém "place": negativa tem precedência
        if is_negative(transcript):
            self.stop_flow()
            return CheckoutTurn(success=True, prompt=CANCEL_PROMPT, step=self._step)
        if is_affirmative(transcript):
            self._set_step(CheckoutStep.COMPLETE)
            logger.info("checkout_confirmed")
            return CheckoutTurn(
                success=True,
                prompt=STEP_PROMPTS[CheckoutStep.COMPLETE],
                step=self._step,
                should_confirm_order=True,
            )
        return CheckoutTurn(success=False, prompt=CONFIRM_REPROMPT, step=self._step)

    def _commit(self, spec: StepSpec, value: str) -> None:
        field_name = spec.user_info_field
        self._collected[field_name] = value
        self._user_info.update({field_name: value})
        self._publish(
            FIELD_UPDATED_TOPIC,
            {
                "message": f"{spec.step.value} updated",
                "updatedFields": [field_name],
            },
        )
        logger.info("checkout_field_captured", extra={"step": spec.step.value, "field": field_name})

    def _set_step(self, step: CheckoutStep) -> None:
        previous = self._step
        self._step = step
        if previous != step:
            logger.debug("checkout_step_changed", extra={"from_step": previous.value, "to_step": step.value})

    def _publish(self, topic: str, payload: dict) -> None:
        if self._event_bus is None:
            return
        try:
            self._event_bus.publish(topic, payload)
        except Exception as exc:
            logger.warning(
                "checkout_event_publish_failed",
                extra={"topic": topic, "error_type": type(exc).__name__},
            )
