"""Checkout guiado: passos, tabela de transições e normalizadores.

Exporta:
- CheckoutStep / FieldType
- STEP_ORDER, STEP_TABLE, STEP_PROMPTS
"""

from vnova_voice.domain.checkout.steps import (
    COLLECTING_STEPS,
    INACTIVE_STEPS,
    STEP_ORDER,
    CheckoutStep,
    FieldType,
)
from vnova_voice.domain.checkout.transitions import (
    CANCEL_PROMPT,
    CONFIRM_REPROMPT,
    STEP_LABELS,
    STEP_PROMPTS,
    STEP_TABLE,
    StepSpec,
)

__all__ = [
    "CheckoutStep",
    "FieldType",
    "STEP_ORDER",
    "STEP_TABLE",
    "STEP_PROMPTS",
    "StepSpec",
    "COLLECTING_STEPS",
    "INACTIVE_STEPS",
    "STEP_LABELS",
    "CANCEL_PROMPT",
    "CONFIRM_REPROMPT",
]
