"""Passos canônicos do checkout guiado por voz.

- Ordem total e fixa de visita
- idle é inicial e também o estado após cancelamento
- complete é terminal (só sai via start_flow)
"""

from __future__ import annotations

from enum import StrEnum


class CheckoutStep(StrEnum):
    """11 passos do diálogo de checkout."""

    IDLE = "idle"
    NAME = "name"
    EMAIL = "email"
    ADDRESS = "address"
    PHONE = "phone"
    CARD_NAME = "cardName"
    CARD_NUMBER = "cardNumber"
    EXPIRY_DATE = "expiryDate"
    CVV = "cvv"
    CONFIRM = "confirm"
    COMPLETE = "complete"


class FieldType(StrEnum):
    """Tag de tipo de campo enviada ao oráculo de extração."""

    NAME = "NAME"
    EMAIL = "EMAIL"
    ADDRESS = "ADDRESS"
    PHONE = "PHONE"
    CARD_NAME = "CARD_NAME"
    CARD_NUMBER = "CARD_NUMBER"
    EXPIRY_DATE = "EXPIRY_DATE"
    CVV = "CVV"


STEP_ORDER: tuple[CheckoutStep, ...] = (
    CheckoutStep.NAME,
    CheckoutStep.EMAIL,
    CheckoutStep.ADDRESS,
    CheckoutStep.PHONE,
    CheckoutStep.CARD_NAME,
    CheckoutStep.CARD_NUMBER,
    CheckoutStep.EXPIRY_DATE,
    CheckoutStep.CVV,
    CheckoutStep.CONFIRM,
)
"""Ordem de visita após idle; confirm leva a complete."""

COLLECTING_STEPS = frozenset(STEP_ORDER[:-1])
"""Passos que capturam exatamente um campo."""

INACTIVE_STEPS = frozenset({CheckoutStep.IDLE, CheckoutStep.COMPLETE})
"""Passos em que o diálogo não trava o roteamento."""
