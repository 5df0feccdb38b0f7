"""Tabela total de transições do checkout guiado.

STEP_TABLE[passo] = (tipo de campo, campo no user-info, normalizador, próximo passo, prompt).
Validação pura: sem side effects. A tabela é verificada na importação para
cobrir exatamente os passos de coleta.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from vnova_voice.domain.checkout import normalizers
from vnova_voice.domain.checkout.normalizers import FieldCheck
from vnova_voice.domain.checkout.steps import (
    COLLECTING_STEPS,
    STEP_ORDER,
    CheckoutStep,
    FieldType,
)

STEP_PROMPTS: dict[CheckoutStep, str] = {
    CheckoutStep.IDLE: "",
    CheckoutStep.NAME: "Let's complete your order. What is your full name?",
    CheckoutStep.EMAIL: "Great! What is your email address?",
    CheckoutStep.ADDRESS: "What is your shipping address?",
    CheckoutStep.PHONE: "What is your phone number?",
    CheckoutStep.CARD_NAME: "Now for payment details. What name is on your card?",
    CheckoutStep.CARD_NUMBER: "What is your card number?",
    CheckoutStep.EXPIRY_DATE: "What is the expiry date? Please say it as month and year.",
    CheckoutStep.CVV: "What is the CVV or security code on the back of your card?",
    CheckoutStep.CONFIRM: "I have all your details. Would you like me to place the order?",
    CheckoutStep.COMPLETE: "Your order has been placed successfully!",
}

STEP_LABELS: dict[CheckoutStep, str] = {
    CheckoutStep.NAME: "name",
    CheckoutStep.EMAIL: "email",
    CheckoutStep.ADDRESS: "address",
    CheckoutStep.PHONE: "phone number",
    CheckoutStep.CARD_NAME: "name on the card",
    CheckoutStep.CARD_NUMBER: "card number",
    CheckoutStep.EXPIRY_DATE: "expiry date",
    CheckoutStep.CVV: "security code",
}
"""Rótulo falado de cada passo nos reprompts."""

CANCEL_PROMPT = "Order cancelled. Let me know if you need anything else."
CONFIRM_REPROMPT = "Please say yes to confirm or no to cancel."

AFFIRMATIVE_KEYWORDS: tuple[str, ...] = ("yes", "place", "confirm", "proceed", "okay", "sure")
NEGATIVE_KEYWORDS: tuple[str, ...] = ("no", "cancel")


@dataclass(frozen=True, slots=True)
class StepSpec:
    """Especificação de um passo de coleta."""

    step: CheckoutStep
    field_type: FieldType
    user_info_field: str
    normalize: Callable[[str], FieldCheck]
    next_step: CheckoutStep

    @property
    def prompt(self) -> str:
        return STEP_PROMPTS[self.step]

    @property
    def label(self) -> str:
        return STEP_LABELS[self.step]


def _next_in_order(step: CheckoutStep) -> CheckoutStep:
    index = STEP_ORDER.index(step)
    if index >= len(STEP_ORDER) - 1:
        return CheckoutStep.COMPLETE
    return STEP_ORDER[index + 1]


_SPECS: tuple[tuple[CheckoutStep, FieldType, Callable[[str], FieldCheck]], ...] = (
    (CheckoutStep.NAME, FieldType.NAME, partial(normalizers.normalize_text, label="name")),
    (CheckoutStep.EMAIL, FieldType.EMAIL, normalizers.normalize_email),
    (CheckoutStep.ADDRESS, FieldType.ADDRESS, partial(normalizers.normalize_text, label="address")),
    (CheckoutStep.PHONE, FieldType.PHONE, normalizers.normalize_phone),
    (
        CheckoutStep.CARD_NAME,
        FieldType.CARD_NAME,
        partial(normalizers.normalize_text, label=STEP_LABELS[CheckoutStep.CARD_NAME]),
    ),
    (CheckoutStep.CARD_NUMBER, FieldType.CARD_NUMBER, normalizers.normalize_card_number),
    (CheckoutStep.EXPIRY_DATE, FieldType.EXPIRY_DATE, normalizers.normalize_expiry),
    (CheckoutStep.CVV, FieldType.CVV, normalizers.normalize_cvv),
)

STEP_TABLE: dict[CheckoutStep, StepSpec] = {
    step: StepSpec(
        step=step,
        field_type=field_type,
        user_info_field=step.value,
        normalize=normalize,
        next_step=_next_in_order(step),
    )
    for step, field_type, normalize in _SPECS
}


def _check_exhaustive() -> None:
    missing = COLLECTING_STEPS - STEP_TABLE.keys()
    extra = STEP_TABLE.keys() - COLLECTING_STEPS
    if missing or extra:
        raise RuntimeError(f"Tabela de checkout inconsistente: missing={missing} extra={extra}")


_check_exhaustive()


def is_affirmative(transcript: str) -> bool:
    lower = transcript.lower()
    return any(keyword in lower for keyword in AFFIRMATIVE_KEYWORDS)


def is_negative(transcript: str) -> bool:
    """Negativa por palavra inteira ("no"), para não casar "know"/"now"."""
    words = re.findall(r"[a-z']+", transcript.lower())
    return any(keyword in words for keyword in NEGATIVE_KEYWORDS)
